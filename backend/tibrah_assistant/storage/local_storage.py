"""
Local Filesystem Storage.

Backs the conversation archive (conversations/tibrah_conversations.json) and
the health profile (health/tibrah_health_memory.json) with plain files under
`local_storage_path`. Last write wins; there is one process per directory.
"""

import logging
import aiofiles
from pathlib import Path
from typing import Optional
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """
    JSON documents keyed by relative path under one root directory.
    I/O errors are logged and reported as False/None, never raised.
    """

    def __init__(self, base_dir: str = "./data"):
        """
        Args:
            base_dir: Root directory, created if missing
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve_key(self, key: str) -> Path:
        """Map a storage key to a file, refusing keys that escape base_dir."""
        full_path = (self.base_dir / key).resolve()
        if not full_path.is_relative_to(self.base_dir):
            raise ValueError(f"Invalid storage key: {key} - path traversal detected")
        return full_path

    async def save(self, path: str, content: bytes | str) -> bool:
        try:
            full_path = self._resolve_key(path)
            full_path.parent.mkdir(parents=True, exist_ok=True)

            if isinstance(content, str):
                async with aiofiles.open(full_path, 'w', encoding='utf-8') as f:
                    await f.write(content)
            else:
                async with aiofiles.open(full_path, 'wb') as f:
                    await f.write(content)

            return True
        except Exception as e:
            logger.error(f"Failed to persist {path}: {e}")
            return False

    async def load(self, path: str) -> Optional[bytes]:
        """Raw document bytes, or None when the key was never written."""
        if not await self.exists(path):
            return None
        try:
            async with aiofiles.open(self._resolve_key(path), 'rb') as f:
                return await f.read()
        except Exception as e:
            logger.error(f"Failed to read {path}: {e}")
            return None

    async def exists(self, path: str) -> bool:
        try:
            return self._resolve_key(path).is_file()
        except ValueError as e:
            logger.warning(str(e))
            return False

    async def delete(self, path: str) -> bool:
        """Remove a document; used when the user clears a memory."""
        try:
            full_path = self._resolve_key(path)
            if full_path.exists():
                full_path.unlink()
                return True
            return False
        except Exception as e:
            logger.error(f"Failed to delete {path}: {e}")
            return False
