"""
Pytest configuration and fixtures for the waitlist backend tests.

Every test gets a fresh OTP store, a fake clock, a recording delivery
webhook and an in-memory profile store. Nothing talks to the network.
"""
import sys
import pathlib

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from waitlist.core.config import Settings  # noqa: E402
from waitlist.services.otp import OTPRequestStore, OTPService, WebhookDispatchGateway  # noqa: E402
from waitlist.services.profile_service import ProfileService  # noqa: E402
from tests.helpers.otp_test_utils import FakeClock, InMemoryProfileStore, WebhookRecorder  # noqa: E402

WEBHOOK_URL = "https://hooks.example.test/otp"
ADMIN_ID = "user_admin"


@pytest.fixture
def settings():
    """Settings mirroring the documented defaults, with a cheap hash cost"""
    return Settings(
        ENV="test",
        OTP_CODE_LENGTH=4,
        OTP_TTL_MS=5 * 60 * 1000,
        OTP_MAX_ATTEMPTS=5,
        OTP_RESEND_COOLDOWN_MS=30 * 1000,
        OTP_HASH_COST=1024,
        OTP_DISPATCH_WEBHOOK_URL=WEBHOOK_URL,
        OTP_WEBHOOK_TIMEOUT_MS=10000,
        PROFILE_STORE_URL="",
        PROFILE_STORE_ADMIN_KEY="",
        BACKEND_WRITE_KEY="backend-key-123",
        ADMIN_USER_IDS=f"{ADMIN_ID}, user_ops",
        PROFILE_LIST_MAX_ROWS=500,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def webhook():
    return WebhookRecorder()


@pytest.fixture
def profile_store():
    return InMemoryProfileStore()


@pytest.fixture
def otp_store():
    return OTPRequestStore()


@pytest.fixture
def profile_service(settings, profile_store):
    return ProfileService(
        store=profile_store,
        admin_user_ids=settings.admin_user_ids,
        max_list_rows=settings.PROFILE_LIST_MAX_ROWS,
    )


@pytest.fixture
def otp_service(settings, otp_store, profile_service, webhook, clock):
    gateway = WebhookDispatchGateway(
        webhook_url=settings.OTP_DISPATCH_WEBHOOK_URL,
        timeout_ms=settings.OTP_WEBHOOK_TIMEOUT_MS,
        transport=webhook.transport,
    )
    return OTPService.from_settings(settings, otp_store, profile_service, gateway=gateway, clock=clock)


@pytest.fixture
def client(settings, profile_store, otp_service):
    """
    FastAPI TestClient wired to the test doubles.

    raise_server_exceptions=False so unhandled errors come back as 500s.
    """
    from fastapi.testclient import TestClient
    from waitlist.main import create_app

    app = create_app(config=settings, profile_store=profile_store, otp_service=otp_service)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
