"""
Exception handlers.

Register these on a FastAPI app instance via `register_exception_handlers(app)`.
Every error body has the shape ``{"ok": false, "error": "<message>"}``.
"""
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.errors import ValidationError, WaitlistError

logger = logging.getLogger(__name__)

HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


async def waitlist_error_handler(request: Request, exc: WaitlistError):
    """Domain errors carry their own status and user-facing message."""
    if exc.status_code >= 500:
        logger.warning(
            "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON or wrongly typed fields"""
    logger.debug(f"Invalid payload on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=ValidationError().to_payload())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = HTTP_ERROR_MESSAGES.get(exc.status_code)
    if message is None:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": message},
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors; details stay in the logs"""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc
    )
    return JSONResponse(status_code=500, content={"ok": False, "error": "Server error"})


def register_exception_handlers(app):
    """Register all exception handlers on the given FastAPI app."""
    app.add_exception_handler(WaitlistError, waitlist_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
