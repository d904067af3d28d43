from pydantic import BaseModel
import logging
import os
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file before the defaults below are read
load_dotenv()

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    # Environment (dev, staging, prod)
    ENV: str = os.getenv("ENV", "dev")
    OTP_SERVER_PORT: int = int(os.getenv("OTP_SERVER_PORT", "8787"))

    # OTP challenge configuration
    OTP_CODE_LENGTH: int = int(os.getenv("OTP_CODE_LENGTH", "4"))
    OTP_TTL_MS: int = int(os.getenv("OTP_TTL_MS", str(5 * 60 * 1000)))  # 5 minutes
    OTP_MAX_ATTEMPTS: int = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
    OTP_RESEND_COOLDOWN_MS: int = int(os.getenv("OTP_RESEND_COOLDOWN_MS", str(30 * 1000)))  # 30 seconds
    OTP_HASH_COST: int = int(os.getenv("OTP_HASH_COST", "16384"))  # scrypt N, must be a power of two

    # Delivery webhook (receives the plaintext code and forwards it to the phone)
    OTP_DISPATCH_WEBHOOK_URL: str = os.getenv("OTP_DISPATCH_WEBHOOK_URL", "")
    OTP_WEBHOOK_TIMEOUT_MS: int = int(os.getenv("OTP_WEBHOOK_TIMEOUT_MS", "10000"))

    # External profile store
    PROFILE_STORE_URL: str = os.getenv("PROFILE_STORE_URL", "")
    PROFILE_STORE_ADMIN_KEY: str = os.getenv("PROFILE_STORE_ADMIN_KEY", "")
    PROFILE_STORE_TIMEOUT_MS: int = int(os.getenv("PROFILE_STORE_TIMEOUT_MS", "10000"))
    PROFILE_LIST_MAX_ROWS: int = int(os.getenv("PROFILE_LIST_MAX_ROWS", "500"))

    # Shared secret for service-to-service reads/writes (never the end-user session)
    BACKEND_WRITE_KEY: str = os.getenv("BACKEND_WRITE_KEY", "")

    # Comma-separated identities allowed to open the admin profile list
    ADMIN_USER_IDS: str = os.getenv("ADMIN_USER_IDS", "")

    @property
    def admin_user_ids(self) -> frozenset:
        """Parsed admin allow-list."""
        return frozenset(
            value.strip() for value in self.ADMIN_USER_IDS.split(",") if value.strip()
        )

    @property
    def profile_store_enabled(self) -> bool:
        """True when both the store endpoint and its admin key are set."""
        return bool(self.PROFILE_STORE_URL and self.PROFILE_STORE_ADMIN_KEY)


settings = Settings()


def validate_config(config: Settings = None) -> List[str]:
    """
    Validate configuration at startup.

    Raises ValueError for settings the OTP flow cannot run with and returns a
    list of warnings for settings that are merely suspicious.
    """
    config = config or settings
    warnings: List[str] = []

    if config.OTP_CODE_LENGTH < 4:
        raise ValueError("OTP_CODE_LENGTH must be at least 4")
    if config.OTP_TTL_MS <= 0:
        raise ValueError("OTP_TTL_MS must be positive")
    if config.OTP_MAX_ATTEMPTS < 1:
        raise ValueError("OTP_MAX_ATTEMPTS must be at least 1")
    if config.OTP_RESEND_COOLDOWN_MS < 0:
        raise ValueError("OTP_RESEND_COOLDOWN_MS cannot be negative")
    if config.OTP_HASH_COST < 2 or config.OTP_HASH_COST & (config.OTP_HASH_COST - 1):
        raise ValueError("OTP_HASH_COST must be a power of two greater than 1")

    from .env import is_local_env

    if not config.OTP_DISPATCH_WEBHOOK_URL and not is_local_env():
        warnings.append("OTP_DISPATCH_WEBHOOK_URL is not set; codes will not be delivered")
    if config.BACKEND_WRITE_KEY and len(config.BACKEND_WRITE_KEY) < 8:
        warnings.append(
            "BACKEND_WRITE_KEY looks too short. If it includes '#', wrap it in quotes in .env."
        )

    logger.info(f"OTP webhook target: {config.OTP_DISPATCH_WEBHOOK_URL or 'not configured'}")
    logger.info(f"OTP webhook timeout: {config.OTP_WEBHOOK_TIMEOUT_MS}ms")
    logger.info(
        f"Profile store persistence: {'enabled' if config.profile_store_enabled else 'disabled'}"
    )
    logger.info(
        f"Admin access list: {'configured' if config.admin_user_ids else 'not configured'}"
    )
    for message in warnings:
        logger.warning(message)

    return warnings
