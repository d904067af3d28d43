"""
Waitlist backend entry point.

Run with ``uvicorn waitlist.main:app`` or ``python -m waitlist.main``.
"""
import logging
import sys
from typing import Optional

from fastapi import FastAPI

from .core.config import Settings, settings, validate_config
from .core.env import get_env_name
from .cors_config import configure_cors
from .exception_handlers import register_exception_handlers
from .middleware.logging import LoggingMiddleware
from .middleware.otp_sweep import OTPSweepMiddleware
from .middleware.request_id import RequestIDMiddleware
from .routers import otp, profiles
from .services.otp import OTPRequestStore, OTPService
from .services.profile_service import ProfileService
from .services.profile_store import ProfileStore, build_profile_store

# Configure logging for production visibility
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("waitlist")

_UNSET = object()


def create_app(
    config: Optional[Settings] = None,
    profile_store=_UNSET,
    otp_service: Optional[OTPService] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to use (defaults to the env-loaded singleton)
        profile_store: ProfileStore to use; None means "not configured".
            Defaults to the HTTP store built from config.
        otp_service: Prebuilt OTP service (tests inject one with a fake clock)
    """
    config = config or settings
    validate_config(config)

    store: Optional[ProfileStore]
    if profile_store is _UNSET:
        store = build_profile_store(config)
    else:
        store = profile_store

    profile_service = ProfileService(
        store=store,
        admin_user_ids=config.admin_user_ids,
        max_list_rows=config.PROFILE_LIST_MAX_ROWS,
    )
    if otp_service is None:
        otp_service = OTPService.from_settings(config, OTPRequestStore(), profile_service)

    app = FastAPI(title="Waitlist Backend", version="1.0.0")
    app.state.settings = config
    app.state.profile_service = profile_service
    app.state.otp_service = otp_service

    register_exception_handlers(app)

    # Last added runs first: preflight -> CORS -> request id -> logging -> sweep
    app.add_middleware(OTPSweepMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    configure_cors(app)

    app.include_router(otp.router)
    app.include_router(profiles.router)

    logger.info(f"Waitlist backend ready (ENV={get_env_name()})")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.OTP_SERVER_PORT)
