"""API module."""

from .chat import router as chat_router
from .conversations import router as conversations_router
from .memory import router as memory_router

__all__ = ['chat_router', 'conversations_router', 'memory_router']
