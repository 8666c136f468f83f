"""
Error taxonomy for the assistant API.

Only client, throttle and exhaustion errors are user-visible. Provider errors
are raised by adapters and absorbed by the gateway's fallback loop.
"""

from typing import Dict, Optional


RATE_LIMITED_TEXT = "⚠️ طلبات كثيرة، يرجى المحاولة بعد دقيقة"

PROVIDERS_EXHAUSTED_TEXT = """⚠️ تعذر الاتصال بالذكاء الاصطناعي

**الحلول:**
1. تحقق من اتصالك بالإنترنت
2. أعد المحاولة بعد دقيقة
3. تواصل معنا على واتساب للمساعدة"""

SERVER_ERROR_TEXT = "⚠️ حدث خطأ في الخادم، يرجى المحاولة مرة أخرى"


class AssistantError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or SERVER_ERROR_TEXT
        self.headers = headers or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, object]:
        return {
            "error": self.error,
            "message": self.message,
            "text": self.message,
            "success": False,
        }


class ClientError(AssistantError):
    """Malformed request (missing field, bad body)."""

    status_code = 400

    def __init__(self, error: str, details: Optional[object] = None):
        self.error = error
        self.details = details
        super().__init__(error)

    def to_dict(self) -> Dict[str, object]:
        data = super().to_dict()
        if self.details is not None:
            data["details"] = self.details
        return data


class MethodNotAllowedError(AssistantError):
    status_code = 405
    error = "Method not allowed"

    def __init__(self, allowed: str = "POST"):
        super().__init__(self.error, headers={"Allow": allowed})


class ThrottleError(AssistantError):
    """Client exceeded its request quota for the current window."""

    status_code = 429
    error = "Too many requests"

    def __init__(self, remaining: int = 0, reset_in_ms: int = 0):
        self.remaining = remaining
        self.reset_in_ms = reset_in_ms
        retry_after = max(1, -(-reset_in_ms // 1000))
        super().__init__(RATE_LIMITED_TEXT, headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Remaining": str(remaining),
        })

    def to_dict(self) -> Dict[str, object]:
        data = super().to_dict()
        data["remaining"] = self.remaining
        data["resetInMs"] = self.reset_in_ms
        return data


class ProviderError(Exception):
    """A single provider call failed or returned nothing usable."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


class ProviderExhaustedError(AssistantError):
    """Every configured provider failed; never answered with fabricated text."""

    status_code = 503
    error = "AI service unavailable"

    def __init__(self, attempted: Optional[list] = None):
        self.attempted = attempted or []
        super().__init__(PROVIDERS_EXHAUSTED_TEXT)
