"""
HTTP tests for the /profiles routes (admin list and launch notification preference)
"""
import pytest
from fastapi.testclient import TestClient

from waitlist.main import create_app

from tests.helpers.otp_test_utils import START_MS, InMemoryProfileStore, broken_store

ADMIN_ID = "user_admin"


@pytest.fixture
def make_client(settings):
    """Build a client around an arbitrary profile store (None = not configured)"""

    def _make(store):
        app = create_app(config=settings, profile_store=store)
        return TestClient(app, raise_server_exceptions=False)

    return _make


def _seed(store, count):
    for i in range(count):
        store.profiles[f"user_{i}"] = {"fullPhoneNumber": f"+1555000000{i}"}


class TestAdminList:
    def test_lists_newest_first(self, client, profile_store):
        _seed(profile_store, 3)

        response = client.post("/profiles/admin-list", json={"requesterUserId": ADMIN_ID})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert [row["clerkUserId"] for row in data["rows"]] == ["user_2", "user_1", "user_0"]

    def test_second_admin_from_list_is_allowed(self, client):
        response = client.post("/profiles/admin-list", json={"requesterUserId": "user_ops"})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "rows": []}

    def test_limit_is_applied(self, client, profile_store):
        _seed(profile_store, 5)

        response = client.post("/profiles/admin-list", json={"requesterUserId": ADMIN_ID, "limit": 2})

        assert len(response.json()["rows"]) == 2

    @pytest.mark.parametrize("limit", [0, -10, "abc", None])
    def test_out_of_range_or_garbage_limit_still_returns_rows(self, client, profile_store, limit):
        _seed(profile_store, 3)

        response = client.post("/profiles/admin-list", json={"requesterUserId": ADMIN_ID, "limit": limit})

        assert response.status_code == 200
        assert len(response.json()["rows"]) >= 1

    def test_missing_requester_is_400(self, client):
        response = client.post("/profiles/admin-list", json={})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Missing requesterUserId."}

    def test_non_admin_is_403(self, client):
        response = client.post("/profiles/admin-list", json={"requesterUserId": "user_1"})

        assert response.status_code == 403
        assert response.json() == {"ok": False, "error": "Forbidden."}

    def test_unconfigured_store_is_503(self, make_client):
        with make_client(None) as client:
            response = client.post("/profiles/admin-list", json={"requesterUserId": ADMIN_ID})

        assert response.status_code == 503
        assert response.json() == {"ok": False, "error": "Profile store is not configured."}

    def test_missing_backend_key_is_503(self, make_client):
        with make_client(InMemoryProfileStore(service_token="")) as client:
            response = client.post("/profiles/admin-list", json={"requesterUserId": ADMIN_ID})

        assert response.status_code == 503
        assert response.json() == {"ok": False, "error": "BACKEND_WRITE_KEY is not configured."}

    def test_store_failure_is_502(self, make_client):
        with make_client(broken_store()) as client:
            response = client.post("/profiles/admin-list", json={"requesterUserId": ADMIN_ID})

        assert response.status_code == 502
        assert response.json() == {"ok": False, "error": "Failed to load private profiles."}


class TestLaunchNotify:
    def test_defaults_to_opted_out(self, client):
        response = client.post("/profiles/launch-notify/get", json={"userId": "user_1"})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "launchNotifyOptIn": False}

    def test_set_then_get(self, client):
        response = client.post(
            "/profiles/launch-notify/set",
            json={"userId": "user_1", "launchNotifyOptIn": True},
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True, "launchNotifyOptIn": True}

        response = client.post("/profiles/launch-notify/get", json={"userId": "user_1"})
        assert response.json() == {
            "ok": True,
            "launchNotifyOptIn": True,
            "launchNotifyUpdatedAt": START_MS,
        }

    def test_set_defaults_to_opt_out(self, client, profile_store):
        response = client.post("/profiles/launch-notify/set", json={"userId": "user_1"})

        assert response.json() == {"ok": True, "launchNotifyOptIn": False}
        assert profile_store.profiles["user_1"]["launchNotifyOptIn"] is False

    def test_null_opt_in_is_treated_as_opt_out(self, client, profile_store):
        response = client.post(
            "/profiles/launch-notify/set",
            json={"userId": "user_1", "launchNotifyOptIn": None},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True, "launchNotifyOptIn": False}
        assert profile_store.profiles["user_1"]["launchNotifyOptIn"] is False

    @pytest.mark.parametrize("path", ["/profiles/launch-notify/get", "/profiles/launch-notify/set"])
    def test_missing_user_is_400(self, client, path):
        response = client.post(path, json={"userId": "   "})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Missing userId."}

    def test_get_store_failure_is_502(self, make_client):
        with make_client(broken_store()) as client:
            response = client.post("/profiles/launch-notify/get", json={"userId": "user_1"})

        assert response.status_code == 502
        assert response.json() == {"ok": False, "error": "Failed to load notification preference."}

    def test_set_without_store_is_502(self, make_client):
        with make_client(None) as client:
            response = client.post(
                "/profiles/launch-notify/set",
                json={"userId": "user_1", "launchNotifyOptIn": True},
            )

        assert response.status_code == 502
        assert response.json() == {"ok": False, "error": "Failed to save notification preference."}
