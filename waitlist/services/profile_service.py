"""
Profile reconciliation between the OTP flow and the external profile store
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..core.errors import ForbiddenError, ServiceUnavailable, UpstreamFailure, ValidationError
from ..utils.phone import get_phone_last4
from .profile_store import ProfileStore

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 200


@dataclass
class PersistenceResult:
    persisted: bool
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"persisted": self.persisted}
        if self.reason:
            data["reason"] = self.reason
        return data


class ProfileService:
    """
    Backend-credentialed access to the profile store.

    ``store`` is None when the store is not configured; each operation then
    degrades the way the caller expects (free phone, not-persisted, 502/503).
    """

    def __init__(
        self,
        store: Optional[ProfileStore],
        admin_user_ids: Iterable[str] = (),
        max_list_rows: int = 500,
    ):
        self.store = store
        self.admin_user_ids = frozenset(admin_user_ids)
        self.max_list_rows = max_list_rows

    async def is_phone_linked_to_other_user(self, user_id: str, full_phone_number: str) -> bool:
        """
        True if ``full_phone_number`` is bound to an identity other than
        ``user_id``. Lookup failures are logged and treated as "not linked".
        """
        if self.store is None or not self.store.has_service_token:
            return False

        try:
            owners = await self.store.get_phone_owners(full_phone_number)
        except Exception as e:
            logger.error(
                f"[Profiles] Phone ownership lookup failed for {get_phone_last4(full_phone_number)}: {e}",
                exc_info=True,
            )
            return False

        return any(owner and owner != user_id for owner in owners)

    async def persist_verified_profile(
        self,
        user_id: str,
        country_code: str,
        phone_number: str,
        full_phone_number: str,
        contact: Optional[Dict[str, str]] = None,
    ) -> PersistenceResult:
        """
        Upsert the verified phone and contact fields.

        Never raises: the OTP was already consumed, so a store failure is
        reported in the result instead.
        """
        if self.store is None:
            return PersistenceResult(False, "Profile store is not configured.")

        try:
            await self.store.upsert_verified_phone(
                user_id=user_id,
                country_code=country_code,
                phone_number=phone_number,
                full_phone_number=full_phone_number,
                contact=contact,
            )
        except Exception as e:
            logger.error(f"[Profiles] Failed to persist verified profile for {user_id}: {e}", exc_info=True)
            return PersistenceResult(False, str(e) or "Unknown persistence error")

        logger.info(f"[Profiles] Persisted verified phone {get_phone_last4(full_phone_number)} for {user_id}")
        return PersistenceResult(True)

    async def get_launch_notify(self, user_id: str) -> Dict[str, Any]:
        if not user_id:
            raise ValidationError("Missing userId.")
        if self.store is None:
            logger.error("[Profiles] Cannot load launch notify preference: profile store is not configured")
            raise UpstreamFailure("Failed to load notification preference.")
        try:
            return await self.store.get_launch_notify(user_id)
        except Exception as e:
            logger.error(f"[Profiles] Failed to get launch notify preference for {user_id}: {e}", exc_info=True)
            raise UpstreamFailure("Failed to load notification preference.")

    async def set_launch_notify(self, user_id: str, opt_in: bool) -> bool:
        if not user_id:
            raise ValidationError("Missing userId.")
        if self.store is None:
            logger.error("[Profiles] Cannot save launch notify preference: profile store is not configured")
            raise UpstreamFailure("Failed to save notification preference.")
        try:
            await self.store.set_launch_notify(user_id, opt_in)
        except Exception as e:
            logger.error(f"[Profiles] Failed to set launch notify preference for {user_id}: {e}", exc_info=True)
            raise UpstreamFailure("Failed to save notification preference.")
        return opt_in

    def clamp_limit(self, limit: Optional[float]) -> int:
        """Row limit for the admin list, within [1, max_list_rows]"""
        if limit is None:
            limit = DEFAULT_LIST_LIMIT
        return int(min(max(limit, 1), self.max_list_rows))

    async def list_profiles_for_operators(self, requester_user_id: str, limit: Optional[float] = None) -> List[Dict[str, Any]]:
        """
        Bulk read for the admin view.

        Raises:
            ValidationError: No requester id
            ForbiddenError: Requester is not on the admin allow-list
            ServiceUnavailable: Store or backend credential not configured
            UpstreamFailure: The store call failed
        """
        if not requester_user_id:
            raise ValidationError("Missing requesterUserId.")
        if requester_user_id not in self.admin_user_ids:
            logger.warning(f"[Profiles] Admin list denied for {requester_user_id}")
            raise ForbiddenError("Forbidden.")
        if self.store is None:
            raise ServiceUnavailable("Profile store is not configured.")
        if not self.store.has_service_token:
            raise ServiceUnavailable("BACKEND_WRITE_KEY is not configured.")

        row_limit = self.clamp_limit(limit)
        try:
            rows = await self.store.list_profiles(row_limit)
        except Exception as e:
            logger.error(f"[Profiles] Failed to load private profiles: {e}", exc_info=True)
            raise UpstreamFailure("Failed to load private profiles.")

        logger.info(f"[Profiles] Admin {requester_user_id} listed {len(rows)} profile(s)")
        return rows[:row_limit]
