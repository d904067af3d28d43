"""
Phone OTP issuance and verification.

Send: ownership check -> cooldown -> generate + hash -> store -> dispatch
(rolled back on failure). Verify: candidates -> expiry -> attempt budget ->
constant-time compare -> consume -> persist profile.
"""
import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from ...core.errors import (
    AttemptsExceededError,
    AuthenticationFailure,
    ConflictError,
    ExpiredError,
    NotFoundError,
    RateLimitedError,
    UpstreamFailure,
    ValidationError,
)
from ...utils.phone import (
    MIN_PHONE_DIGITS,
    full_phone_number,
    get_phone_last4,
    identity_key,
)
from ..audit import AuditService
from ..profile_service import PersistenceResult, ProfileService
from . import codes
from .dispatch import DispatchError, WebhookDispatchGateway
from .store import Challenge, OTPRequestStore

logger = logging.getLogger(__name__)

MOBILE_ALREADY_LINKED_ERROR = (
    "This mobile number is already linked to another account. "
    "Each number can only be used with one profile. "
    "Please use a different mobile number."
)
COOLDOWN_ERROR = "Please wait before requesting another OTP."


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SendResult:
    request_id: str
    expires_at: int


@dataclass
class VerifyResult:
    user_id: str
    full_phone_number: str
    persistence: PersistenceResult = field(default_factory=lambda: PersistenceResult(False, "Not attempted."))


class OTPService:
    """
    Issues and redeems short-lived numeric codes bound to a (user, phone) pair.
    """

    def __init__(
        self,
        store: OTPRequestStore,
        gateway: WebhookDispatchGateway,
        profiles: ProfileService,
        code_length: int = codes.DEFAULT_CODE_LENGTH,
        ttl_ms: int = 5 * 60 * 1000,
        max_attempts: int = 5,
        cooldown_ms: int = 30 * 1000,
        hash_cost: int = codes.DEFAULT_HASH_COST,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.gateway = gateway
        self.profiles = profiles
        self.code_length = code_length
        self.ttl_ms = ttl_ms
        self.max_attempts = max_attempts
        self.cooldown_ms = cooldown_ms
        self.hash_cost = hash_cost
        self.clock = clock

    @classmethod
    def from_settings(cls, config, store: OTPRequestStore, profiles: ProfileService, **overrides) -> "OTPService":
        gateway = overrides.pop("gateway", None) or WebhookDispatchGateway(
            webhook_url=config.OTP_DISPATCH_WEBHOOK_URL,
            timeout_ms=config.OTP_WEBHOOK_TIMEOUT_MS,
        )
        return cls(
            store=store,
            gateway=gateway,
            profiles=profiles,
            code_length=config.OTP_CODE_LENGTH,
            ttl_ms=config.OTP_TTL_MS,
            max_attempts=config.OTP_MAX_ATTEMPTS,
            cooldown_ms=config.OTP_RESEND_COOLDOWN_MS,
            hash_cost=config.OTP_HASH_COST,
            **overrides,
        )

    def sweep_expired(self) -> int:
        return self.store.sweep_expired(self.clock())

    async def send_otp(self, user_id: str, country_code: str, phone_number: str) -> SendResult:
        """
        Issue a new challenge and dispatch its code.

        Args:
            user_id: Caller identity (trusted as given)
            country_code: Normalized dialling prefix
            phone_number: Digit-only national number

        Raises:
            ValidationError: Missing identity/prefix or too few digits
            ConflictError: Phone already linked to another identity
            RateLimitedError: Cooldown active, or the webhook answered 429
            UpstreamFailure: Dispatch failed (challenge rolled back)
        """
        if not user_id or not country_code or len(phone_number) < MIN_PHONE_DIGITS:
            raise ValidationError()

        key = identity_key(user_id, country_code, phone_number)
        full_phone = full_phone_number(country_code, phone_number)
        phone_last4 = get_phone_last4(full_phone)

        AuditService.log_send_requested(user_id, phone_last4)

        if await self.profiles.is_phone_linked_to_other_user(user_id, full_phone):
            AuditService.log_send_conflict(user_id, phone_last4)
            raise ConflictError(MOBILE_ALREADY_LINKED_ERROR)

        now = self.clock()
        allowed, retry_after_ms, previous_send = self.store.claim_send_slot(key, now, self.cooldown_ms)
        if not allowed:
            AuditService.log_send_rate_limited(user_id, phone_last4, retry_after_ms)
            raise RateLimitedError(COOLDOWN_ERROR, retry_after_ms=retry_after_ms)

        code = codes.generate_code(self.code_length)
        salt = codes.generate_salt()
        code_digest = await asyncio.to_thread(codes.digest, code, salt, self.hash_cost)

        challenge = Challenge(
            request_id=str(uuid.uuid4()),
            identity_key=key,
            user_id=user_id,
            country_code=country_code,
            phone_number=phone_number,
            full_phone_number=full_phone,
            code_digest=code_digest,
            salt=salt,
            created_at=now,
            expires_at=now + self.ttl_ms,
        )
        self.store.put(challenge)

        try:
            await self.gateway.send(challenge, code)
        except DispatchError as e:
            self._rollback(challenge, previous_send)
            AuditService.log_send_failed(challenge.request_id, user_id, phone_last4, str(e))
            if e.rate_limited:
                raise RateLimitedError(str(e))
            raise UpstreamFailure(str(e))
        except BaseException:
            # includes cancellation while the webhook call is pending
            self._rollback(challenge, previous_send)
            raise

        AuditService.log_send_success(challenge.request_id, user_id, phone_last4)
        logger.info(f"[OTP] Code sent to {phone_last4} (request {challenge.request_id})")
        return SendResult(request_id=challenge.request_id, expires_at=challenge.expires_at)

    def _rollback(self, challenge: Challenge, previous_send: Optional[int]) -> None:
        """Forget a challenge whose code never reached the user."""
        self.store.consume(challenge.request_id)
        self.store.release_send_slot(challenge.identity_key, previous_send)
        logger.warning(f"[OTP] Rolled back request {challenge.request_id} after failed dispatch")

    async def verify_otp(
        self,
        user_id: str,
        country_code: str,
        phone_number: str,
        code: str,
        request_id: Optional[str] = None,
        contact: Optional[Dict[str, str]] = None,
    ) -> VerifyResult:
        """
        Redeem a challenge and persist the verified phone.

        Raises:
            ValidationError: Malformed input
            NotFoundError: No challenge for this user and phone
            ExpiredError: Only expired challenges were found
            AttemptsExceededError: Attempt budget used up (challenge destroyed)
            AuthenticationFailure: Wrong code, budget remaining
        """
        if (
            not user_id
            or not country_code
            or len(phone_number) < MIN_PHONE_DIGITS
            or len(code) < self.code_length
        ):
            raise ValidationError()

        key = identity_key(user_id, country_code, phone_number)
        phone_last4 = get_phone_last4(full_phone_number(country_code, phone_number))

        candidates = self.store.get_candidates(key, request_id or None)
        if not candidates:
            AuditService.log_verify_failed(request_id, user_id, phone_last4, "not_found")
            raise NotFoundError()

        now = self.clock()
        challenge = next((c for c in candidates if not c.is_expired(now)), None)
        if challenge is None:
            self.store.discard(key, [c.request_id for c in candidates])
            AuditService.log_verify_failed(request_id, user_id, phone_last4, "expired")
            raise ExpiredError()

        attempts = self.store.register_attempt(challenge.request_id)
        if attempts is None:
            # consumed or swept by a concurrent request
            raise NotFoundError()
        if attempts > self.max_attempts:
            self.store.consume(challenge.request_id)
            AuditService.log_verify_locked(challenge.request_id, user_id, phone_last4, attempts)
            raise AttemptsExceededError()

        is_valid = await asyncio.to_thread(
            codes.codes_match, code, challenge.salt, challenge.code_digest, self.hash_cost
        )
        if not is_valid:
            if attempts >= self.max_attempts:
                self.store.consume(challenge.request_id)
                AuditService.log_verify_locked(challenge.request_id, user_id, phone_last4, attempts)
                raise AttemptsExceededError()
            AuditService.log_verify_failed(challenge.request_id, user_id, phone_last4, "invalid_code", attempts)
            raise AuthenticationFailure(attemptsRemaining=self.max_attempts - attempts)

        if self.store.consume(challenge.request_id) is None:
            raise NotFoundError()

        AuditService.log_verify_success(challenge.request_id, user_id, phone_last4, attempts)

        persistence = await self.profiles.persist_verified_profile(
            user_id=user_id,
            country_code=country_code,
            phone_number=phone_number,
            full_phone_number=challenge.full_phone_number,
            contact=contact,
        )

        return VerifyResult(
            user_id=user_id,
            full_phone_number=challenge.full_phone_number,
            persistence=persistence,
        )
