"""
Test doubles for the OTP flow: a controllable clock, a recording delivery
webhook, and an in-memory profile store.
"""
import json
from typing import Any, Callable, Dict, List, Optional

import httpx

from waitlist.services.profile_store import MissingBackendCredential, ProfileStore, ProfileStoreError

START_MS = 1_700_000_000_000


class FakeClock:
    """Callable epoch-millisecond clock that only moves when told to"""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class WebhookRecorder:
    """
    httpx.MockTransport handler capturing delivery webhook calls.

    ``respond`` decides the response for each call; default is 200.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(200, json={"ok": True})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(json.loads(request.content))
        return self.respond(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_code(self) -> str:
        return self.calls[-1]["otp"]

    def fail_with(self, status_code: int, body: str = "") -> None:
        self.respond = lambda request: httpx.Response(status_code, text=body)

    def raise_error(self, error: Exception) -> None:
        def _raise(request):
            raise error

        self.respond = _raise


class InMemoryProfileStore(ProfileStore):
    """Profile store double keyed by identity; records every upsert"""

    def __init__(self, service_token: str = "backend-key-123"):
        self.service_token = service_token
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.upserts: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None

    @property
    def has_service_token(self) -> bool:
        return bool(self.service_token)

    def _check(self):
        if not self.service_token:
            raise MissingBackendCredential("Missing BACKEND_WRITE_KEY for secure backend calls.")
        if self.fail_with is not None:
            raise self.fail_with

    async def get_phone_owners(self, full_phone_number: str) -> List[str]:
        self._check()
        return [
            user_id
            for user_id, profile in self.profiles.items()
            if profile.get("fullPhoneNumber") == full_phone_number
        ]

    async def upsert_verified_phone(self, user_id, country_code, phone_number, full_phone_number, contact=None):
        self._check()
        record = {
            "countryCode": country_code,
            "phoneNumber": phone_number,
            "fullPhoneNumber": full_phone_number,
            **(contact or {}),
        }
        self.upserts.append({"clerkUserId": user_id, **record})
        self.profiles.setdefault(user_id, {}).update(record)

    async def get_launch_notify(self, user_id: str) -> Dict[str, Any]:
        self._check()
        profile = self.profiles.get(user_id, {})
        return {
            "launchNotifyOptIn": bool(profile.get("launchNotifyOptIn")),
            "launchNotifyUpdatedAt": profile.get("launchNotifyUpdatedAt"),
        }

    async def set_launch_notify(self, user_id: str, opt_in: bool) -> None:
        self._check()
        profile = self.profiles.setdefault(user_id, {})
        profile["launchNotifyOptIn"] = opt_in
        profile["launchNotifyUpdatedAt"] = START_MS

    async def list_profiles(self, limit: int) -> List[Dict[str, Any]]:
        self._check()
        rows = [{"clerkUserId": user_id, **profile} for user_id, profile in self.profiles.items()]
        return list(reversed(rows))[:limit]


def broken_store() -> InMemoryProfileStore:
    store = InMemoryProfileStore()
    store.fail_with = ProfileStoreError("Profile store returned HTTP 500 (privateProfiles:x)")
    return store
