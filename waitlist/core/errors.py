"""
Error taxonomy for the waitlist backend.

Every error carries the HTTP status it maps to and the short, user-facing
message returned as ``{"ok": false, "error": ...}``. Extra fields (such as
``retryAfterMs``) are merged into the response body by the exception handler.
"""
from typing import Any, Dict, Optional


class WaitlistError(Exception):
    """Base class for errors that are reported to the client as-is"""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra: Dict[str, Any] = {k: v for k, v in extra.items() if v is not None}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message, **self.extra}


class ValidationError(WaitlistError):
    status_code = 400
    default_message = "Invalid payload."


class AuthenticationFailure(WaitlistError):
    status_code = 401
    default_message = "Invalid OTP."


class ForbiddenError(WaitlistError):
    status_code = 403
    default_message = "Forbidden."


class NotFoundError(WaitlistError):
    status_code = 404
    default_message = "OTP request not found."


class ConflictError(WaitlistError):
    status_code = 409
    default_message = "Conflict."


class ExpiredError(WaitlistError):
    status_code = 410
    default_message = "OTP expired."


class RateLimitedError(WaitlistError):
    status_code = 429
    default_message = "Too many requests."

    def __init__(self, message: Optional[str] = None, retry_after_ms: Optional[int] = None):
        super().__init__(message, retryAfterMs=retry_after_ms)
        self.retry_after_ms = retry_after_ms


class AttemptsExceededError(RateLimitedError):
    default_message = "Maximum OTP attempts exceeded."


class UpstreamFailure(WaitlistError):
    status_code = 502
    default_message = "Upstream service failed."


class ServiceUnavailable(WaitlistError):
    status_code = 503
    default_message = "Service is not configured."
