"""
Expired-challenge sweep.

No background timer: every inbound request first drops the OTP challenges
whose expiry has passed.
"""
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class OTPSweepMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        otp_service = getattr(request.app.state, "otp_service", None)
        if otp_service is not None:
            otp_service.sweep_expired()
        return await call_next(request)
