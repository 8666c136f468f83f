"""
ASGI middleware for logging API requests and responses.

Uses pure ASGI middleware (not BaseHTTPMiddleware) so it stays transparent
to the wrapped app.

This middleware logs:
- Request: method, path, client address
- Response: status code, processing time
- Bodies only when enabled, with credentials and health content masked
"""

import json
import logging
import time
from typing import Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)


def _sanitize_body(data: bytes, max_length: int = 2000) -> str:
    """Mask sensitive JSON fields, fall back to a length marker for non-JSON."""
    text = data.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return f"<{len(text)} chars of non-JSON>"
    filtered = filter_sensitive_data(payload)
    return truncate_large_data(json.dumps(filtered, ensure_ascii=False), max_length=max_length)


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log all API requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None, log_bodies: bool = False):
        """
        Initialize the logging middleware.

        Args:
            app: The ASGI application
            exclude_paths: Paths to skip entirely (e.g., ["/health"])
            log_bodies: Also log filtered request/response bodies
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]
        self.log_bodies = log_bodies

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point."""
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = id(scope)
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        client = scope.get("client")
        client_host = client[0] if client else None

        body_chunks = []
        response_chunks = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if self.log_bodies and message["type"] == "http.request":
                body_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif self.log_bodies and message["type"] == "http.response.body":
                response_chunks.append(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        fields = {
            "request_id": request_id,
            "method": method,
            "path": path,
            "client": client_host,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
        }
        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"

        if self.log_bodies:
            request_body = b"".join(body_chunks)
            response_body = b"".join(response_chunks)
            fields["request_body"] = _sanitize_body(request_body) if request_body else None
            fields["response_body"] = _sanitize_body(response_body) if response_body else None
            message += f" | request_body={fields['request_body'] or '-'}"

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        logger.log(log_level, message, extra={"extra_fields": fields})
