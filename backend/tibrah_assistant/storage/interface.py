"""
Storage Interface - Abstract base class for all storage implementations.
Keeps the memory stores independent of where (and how) their JSON lands,
e.g. local disk today, an encrypting or server-held backend later.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageInterface(ABC):
    """
    Abstract key/value storage contract used by the conversation store and
    the health memory. Implementations must not raise on I/O failure; they
    log and report it through their return value.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path.

        Args:
            path: Relative key (e.g., "health/tibrah_health_memory.json")
            content: Content to save (bytes or text)

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Args:
            path: Relative key to load from

        Returns:
            Optional[bytes]: Content as bytes, or None if missing or unreadable
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a value is stored under the key."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete the value stored under the key.

        Returns:
            bool: True if something was deleted
        """
        pass
