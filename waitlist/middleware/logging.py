"""
Access logging: one JSON line per request.

Bodies are never logged; OTP payloads carry codes and phone numbers.
"""
import json
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = getattr(request.state, "request_id", None)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "[HTTP] Unhandled error on %s %s after %sms: %s",
                request.method,
                request.url.path,
                _elapsed_ms(start),
                str(e),
            )
            # Re-raise so the exception handlers can respond
            raise

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": _elapsed_ms(start),
            "remote_addr": request.client.host if request.client else None,
        }
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, f"[HTTP] {json.dumps(log_data)}")
        return response
