"""
Client for the external profile store.

The store owns user and private-profile records and is reached over its
HTTP query/mutation API. Every call carries the backend service token, a
shared secret distinct from end-user sessions. ``ProfileStore`` is the narrow
capability interface the rest of the backend depends on, so tests can swap in
an in-memory implementation.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class ProfileStoreError(Exception):
    """A profile store call failed"""


class MissingBackendCredential(ProfileStoreError):
    """The backend service token is not configured"""


class ProfileStore(ABC):
    """Operations the backend needs from the profile store"""

    @property
    @abstractmethod
    def has_service_token(self) -> bool:
        """True when backend-credentialed calls can be made"""

    @abstractmethod
    async def get_phone_owners(self, full_phone_number: str) -> List[str]:
        """Identities whose profile holds ``full_phone_number``"""

    @abstractmethod
    async def upsert_verified_phone(
        self,
        user_id: str,
        country_code: str,
        phone_number: str,
        full_phone_number: str,
        contact: Optional[Dict[str, str]] = None,
    ) -> None:
        """Record a verified phone (plus optional contact fields) for ``user_id``"""

    @abstractmethod
    async def get_launch_notify(self, user_id: str) -> Dict[str, Any]:
        """``{"launchNotifyOptIn": bool, "launchNotifyUpdatedAt": int | None}``"""

    @abstractmethod
    async def set_launch_notify(self, user_id: str, opt_in: bool) -> None:
        """Persist the launch notification preference"""

    @abstractmethod
    async def list_profiles(self, limit: int) -> List[Dict[str, Any]]:
        """Most recent profiles first, at most ``limit`` rows"""


class ConvexProfileStore(ProfileStore):
    """HTTP implementation against the store's /api/query and /api/mutation endpoints"""

    MODULE = "privateProfiles"

    def __init__(
        self,
        base_url: str,
        admin_key: str,
        service_token: str,
        timeout_ms: int = 10000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.admin_key = admin_key
        self.service_token = service_token
        self.timeout_ms = timeout_ms
        self._transport = transport

    @property
    def has_service_token(self) -> bool:
        return bool(self.service_token)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Convex {self.admin_key}",
            "Content-Type": "application/json",
        }

    async def _call(self, kind: str, function: str, args: Dict[str, Any]) -> Any:
        """
        Run a query or mutation and return its value.

        Args:
            kind: "query" or "mutation"
            function: Function name inside the privateProfiles module
            args: Function arguments; None values are omitted

        Raises:
            MissingBackendCredential: No service token configured
            ProfileStoreError: Transport failure, HTTP error or function error
        """
        if not self.service_token:
            raise MissingBackendCredential("Missing BACKEND_WRITE_KEY for secure backend calls.")

        path = f"{self.MODULE}:{function}"
        payload = {
            "path": path,
            "args": {
                **{k: v for k, v in args.items() if v is not None},
                "serviceToken": self.service_token,
            },
            "format": "json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_ms / 1000,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    f"{self.base_url}/api/{kind}",
                    json=payload,
                    headers=self._get_headers(),
                )
        except httpx.TimeoutException:
            raise ProfileStoreError(f"Profile store timeout after {self.timeout_ms}ms ({path})")
        except httpx.HTTPError as e:
            raise ProfileStoreError(f"Profile store request failed ({path}): {e}")

        if not response.is_success:
            raise ProfileStoreError(f"Profile store returned HTTP {response.status_code} ({path})")

        try:
            data = response.json()
        except ValueError:
            raise ProfileStoreError(f"Profile store returned invalid JSON ({path})")

        if data.get("status") != "success":
            raise ProfileStoreError(data.get("errorMessage") or f"Profile store call failed ({path})")

        return data.get("value")

    async def get_phone_owners(self, full_phone_number: str) -> List[str]:
        result = await self._call(
            "query", "getPhoneOwnerForBackend", {"fullPhoneNumber": full_phone_number}
        )
        owners = (result or {}).get("clerkUserIds")
        return [owner for owner in owners if owner] if isinstance(owners, list) else []

    async def upsert_verified_phone(
        self,
        user_id: str,
        country_code: str,
        phone_number: str,
        full_phone_number: str,
        contact: Optional[Dict[str, str]] = None,
    ) -> None:
        await self._call(
            "mutation",
            "upsertFromBackendVerifiedPhone",
            {
                "clerkUserId": user_id,
                "countryCode": country_code,
                "phoneNumber": phone_number,
                "fullPhoneNumber": full_phone_number,
                **(contact or {}),
            },
        )

    async def get_launch_notify(self, user_id: str) -> Dict[str, Any]:
        result = await self._call("query", "getLaunchNotifyForBackend", {"clerkUserId": user_id}) or {}
        return {
            "launchNotifyOptIn": bool(result.get("launchNotifyOptIn")),
            "launchNotifyUpdatedAt": result.get("launchNotifyUpdatedAt"),
        }

    async def set_launch_notify(self, user_id: str, opt_in: bool) -> None:
        await self._call(
            "mutation",
            "setLaunchNotifyFromBackend",
            {"clerkUserId": user_id, "launchNotifyOptIn": opt_in},
        )

    async def list_profiles(self, limit: int) -> List[Dict[str, Any]]:
        rows = await self._call("query", "listPrivateProfilesForBackendTeam", {"limit": limit})
        return rows if isinstance(rows, list) else []


def build_profile_store(config) -> Optional[ProfileStore]:
    """
    Build the HTTP profile store from settings.

    Returns None when the store endpoint or admin key is missing.
    """
    if not config.profile_store_enabled:
        logger.info("[Profiles] Profile store not configured (PROFILE_STORE_URL / PROFILE_STORE_ADMIN_KEY)")
        return None
    if not config.BACKEND_WRITE_KEY:
        logger.warning("[Profiles] BACKEND_WRITE_KEY not set; backend reads and writes will fail")
    return ConvexProfileStore(
        base_url=config.PROFILE_STORE_URL,
        admin_key=config.PROFILE_STORE_ADMIN_KEY,
        service_token=config.BACKEND_WRITE_KEY,
        timeout_ms=config.PROFILE_STORE_TIMEOUT_MS,
    )
