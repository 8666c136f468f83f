"""Core module - rate limiting, conversation memory, health memory and the AI gateway."""

from .rate_limiter import RateLimiter, RateLimitResult, get_client_ip
from .conversation_store import ConversationStore
from .health_memory import HealthMemory
from .gateway import AIGateway, ChatResult

__all__ = [
    'RateLimiter', 'RateLimitResult', 'get_client_ip',
    'ConversationStore', 'HealthMemory', 'AIGateway', 'ChatResult',
]
