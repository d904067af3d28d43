"""
CORS configuration.

The waitlist API is called from the same-origin web app and from local dev
servers; every origin is allowed and no credentials are shared. Pre-flight
requests are answered with 204 and an empty body.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ",".join(CORS_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
}


class PreflightMiddleware(BaseHTTPMiddleware):
    """Answer every OPTIONS request with 204 before routing"""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PREFLIGHT_HEADERS)
        return await call_next(request)


def configure_cors(app: FastAPI):
    """Attach CORSMiddleware and the pre-flight short-circuit to the app."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )
    # Added last so it runs first
    app.add_middleware(PreflightMiddleware)
    logger.info("CORS configured: all origins, methods=%s", CORS_METHODS)
