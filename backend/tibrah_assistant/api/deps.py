"""
Request-scoped access to the state objects built in the app lifespan.
"""

import logging
from fastapi import Request

from ..config import settings
from ..core import AIGateway, ConversationStore, HealthMemory, RateLimiter, get_client_ip
from ..errors import ThrottleError

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_conversation_store(request: Request) -> ConversationStore:
    return request.app.state.conversation_store


def get_health_memory(request: Request) -> HealthMemory:
    return request.app.state.health_memory


def get_gateway(request: Request) -> AIGateway:
    return request.app.state.gateway


async def enforce_rate_limit(request: Request) -> None:
    """Count the request against its client's window; raise ThrottleError when over quota."""
    limiter = get_rate_limiter(request)
    client_ip = get_client_ip(request, trust_forwarded_for=settings.trust_forwarded_for)
    result = limiter.check(
        client_ip,
        max_requests=settings.rate_limit_max_requests,
        window_ms=settings.rate_limit_window_ms,
    )
    if result.limited:
        logger.warning(
            f"Rate limit exceeded for {client_ip} on {request.url.path}",
            extra={"extra_fields": {
                "client": client_ip,
                "count": result.count,
                "reset_in_ms": result.reset_in_ms,
            }}
        )
        raise ThrottleError(remaining=result.remaining, reset_in_ms=result.reset_in_ms)
