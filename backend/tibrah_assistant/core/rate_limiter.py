"""
Rate Limiter - Fixed-window request counter keyed by client identifier.

Gatekeeps the chat endpoint. Entries live in process memory only and are
evicted by a periodic sweep once their window has expired.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.requests import Request

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 30
DEFAULT_WINDOW_MS = 60 * 1000


@dataclass
class RateLimitEntry:
    count: int
    window_reset_at: float  # ms on the limiter's clock


@dataclass
class RateLimitResult:
    """Outcome of a single rate-limit check."""
    limited: bool
    remaining: int
    reset_in_ms: int
    count: int


class RateLimiter:
    """
    Fixed-window counter. A burst straddling a window boundary can admit up
    to 2x max_requests; acceptable for abuse deterrence.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 sweep_interval_seconds: float = 60.0):
        """
        Args:
            clock: Monotonic clock returning seconds
            sweep_interval_seconds: Period of the background expiry sweep
        """
        self._entries: Dict[str, RateLimitEntry] = {}
        self._clock = clock
        self.sweep_interval_seconds = sweep_interval_seconds
        self._sweep_task: Optional[asyncio.Task] = None

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def check(
        self,
        client_id: str,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_ms: int = DEFAULT_WINDOW_MS,
    ) -> RateLimitResult:
        """
        Count a request for client_id and report whether it is over quota.

        Args:
            client_id: Client identifier (usually the network address)
            max_requests: Max requests admitted per window
            window_ms: Window length in milliseconds

        Returns:
            RateLimitResult for this request
        """
        now = self._now_ms()
        entry = self._entries.get(client_id)

        if entry is None or now > entry.window_reset_at:
            self._entries[client_id] = RateLimitEntry(count=1, window_reset_at=now + window_ms)
            return RateLimitResult(
                limited=1 > max_requests,
                remaining=max(0, max_requests - 1),
                reset_in_ms=int(window_ms),
                count=1,
            )

        entry.count += 1
        return RateLimitResult(
            limited=entry.count > max_requests,
            remaining=max(0, max_requests - entry.count),
            reset_in_ms=int(entry.window_reset_at - now),
            count=entry.count,
        )

    def sweep(self) -> int:
        """Delete entries whose window has expired. Returns the number removed."""
        now = self._now_ms()
        expired = [key for key, entry in self._entries.items() if now > entry.window_reset_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Rate limiter swept {len(expired)} expired entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()

    def start(self) -> None:
        """Start the background sweep on the running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the background sweep."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None


def get_client_ip(request: Request, trust_forwarded_for: bool = True) -> str:
    """
    Best-effort client address: first X-Forwarded-For hop, then the socket peer.

    The forwarded header is client-controlled unless a trusted proxy sets it;
    deployments without one should pass trust_forwarded_for=False, otherwise a
    client can rotate the header to dodge the rate limit.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
