"""
In-memory store for outstanding OTP challenges.

Challenges live for the lifetime of the process only. Every mutation,
including the attempt counter, happens under a single lock.
"""
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class Challenge:
    """One issued OTP awaiting verification"""

    request_id: str
    identity_key: str
    user_id: str
    country_code: str
    phone_number: str
    full_phone_number: str
    code_digest: str
    salt: str
    created_at: int  # epoch ms
    expires_at: int  # epoch ms
    attempts: int = 0

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now


class OTPRequestStore:
    """
    Challenges keyed by request id, with two secondary indices:

    - latest request id per identity key
    - last successful send per identity key (cooldown only; survives the
      challenge and is replaced by the next send)
    """

    def __init__(self):
        self._challenges: Dict[str, Challenge] = {}
        self._latest_by_identity: Dict[str, str] = {}
        self._last_send_by_identity: Dict[str, int] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._challenges)

    def put(self, challenge: Challenge) -> None:
        """Insert a challenge and make it the latest for its identity key."""
        with self._lock:
            self._challenges[challenge.request_id] = challenge
            self._latest_by_identity[challenge.identity_key] = challenge.request_id

    def get(self, request_id: str) -> Optional[Challenge]:
        with self._lock:
            return self._challenges.get(request_id)

    def latest_request_id(self, identity_key: str) -> Optional[str]:
        with self._lock:
            return self._latest_by_identity.get(identity_key)

    def get_candidates(self, identity_key: str, explicit_request_id: Optional[str] = None) -> List[Challenge]:
        """
        Challenges to try for ``identity_key``, most recent first.

        At most two: the latest for the identity and the explicitly referenced
        one. An explicit id that belongs to another identity is ignored.
        """
        with self._lock:
            request_ids = []
            latest = self._latest_by_identity.get(identity_key)
            if latest:
                request_ids.append(latest)
            if explicit_request_id and explicit_request_id not in request_ids:
                request_ids.append(explicit_request_id)

            candidates = []
            for request_id in request_ids:
                challenge = self._challenges.get(request_id)
                if challenge is not None and challenge.identity_key == identity_key:
                    candidates.append(challenge)
            return candidates

    def register_attempt(self, request_id: str) -> Optional[int]:
        """
        Increment the attempt counter of a live challenge.

        Returns:
            The new attempt count, or None if the challenge is gone
        """
        with self._lock:
            challenge = self._challenges.get(request_id)
            if challenge is None:
                return None
            challenge.attempts += 1
            return challenge.attempts

    def delete(self, request_id: str) -> Optional[Challenge]:
        """
        Remove a challenge and, if it was the latest for its identity, the
        latest pointer.

        Returns:
            The removed challenge, or None if it was already gone. Callers use
            this to consume a challenge exactly once.
        """
        with self._lock:
            return self._delete_locked(request_id)

    def consume(self, request_id: str) -> Optional[Challenge]:
        """
        Remove a challenge and clear its identity's latest pointer.

        Returns:
            The removed challenge, or None if another caller got there first
        """
        with self._lock:
            challenge = self._delete_locked(request_id)
            if challenge is not None:
                self._latest_by_identity.pop(challenge.identity_key, None)
            return challenge

    def discard(self, identity_key: str, request_ids: Iterable[str]) -> None:
        """Remove the given challenges and clear the identity's latest pointer."""
        with self._lock:
            for request_id in request_ids:
                self._delete_locked(request_id)
            self._latest_by_identity.pop(identity_key, None)

    def sweep_expired(self, now: int) -> int:
        """
        Remove every challenge whose expiry is at or before ``now``.

        Returns:
            Number of challenges removed
        """
        with self._lock:
            expired = [rid for rid, c in self._challenges.items() if c.is_expired(now)]
            for request_id in expired:
                self._delete_locked(request_id)
        if expired:
            logger.debug(f"[OTP][Store] Swept {len(expired)} expired challenge(s)")
        return len(expired)

    # Cooldown bookkeeping

    def last_send_at(self, identity_key: str) -> Optional[int]:
        with self._lock:
            return self._last_send_by_identity.get(identity_key)

    def record_send(self, identity_key: str, now: int) -> None:
        with self._lock:
            self._last_send_by_identity[identity_key] = now

    def claim_send_slot(self, identity_key: str, now: int, cooldown_ms: int) -> Tuple[bool, int, Optional[int]]:
        """
        Atomically check the resend cooldown and, if it has elapsed, record
        ``now`` as the last send.

        Returns:
            (allowed, retry_after_ms, previous_send_at). Pass
            ``previous_send_at`` to ``release_send_slot`` if the send fails.
        """
        with self._lock:
            previous = self._last_send_by_identity.get(identity_key)
            if previous is not None and now - previous < cooldown_ms:
                return False, cooldown_ms - (now - previous), previous
            self._last_send_by_identity[identity_key] = now
            return True, 0, previous

    def release_send_slot(self, identity_key: str, previous: Optional[int]) -> None:
        """Restore the cooldown timestamp that existed before a failed send."""
        with self._lock:
            if previous is None:
                self._last_send_by_identity.pop(identity_key, None)
            else:
                self._last_send_by_identity[identity_key] = previous

    def _delete_locked(self, request_id: str) -> Optional[Challenge]:
        challenge = self._challenges.pop(request_id, None)
        if challenge is None:
            return None
        if self._latest_by_identity.get(challenge.identity_key) == request_id:
            del self._latest_by_identity[challenge.identity_key]
        return challenge
