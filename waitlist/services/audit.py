"""
Structured audit logging for the OTP lifecycle
"""
import logging
import json
from typing import Optional
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class AuditService:
    """
    Structured audit logging service for phone verification events.

    Never logs codes or full phone numbers.
    """

    @staticmethod
    def _log_audit_event(
        event_type: str,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
        phone_last4: Optional[str] = None,
        outcome: Optional[str] = None,
        error: Optional[str] = None,
        **kwargs
    ):
        """
        Log structured audit event.

        Args:
            event_type: Event type (e.g., 'otp_send_requested')
            request_id: OTP request id, when one exists
            user_id: Caller identity
            phone_last4: Last 4 digits of phone number
            outcome: Outcome (requested/success/fail/rate_limited/conflict)
            error: Error message (if any)
            **kwargs: Additional event-specific fields
        """
        audit_data = {
            "event_type": event_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "outcome": outcome,
        }

        if request_id:
            audit_data["request_id"] = request_id
        if user_id:
            audit_data["user_id"] = user_id
        if phone_last4:
            audit_data["phone_last4"] = phone_last4
        if error:
            audit_data["error"] = error

        audit_data.update(kwargs)

        logger.info(f"[OTP][Audit] {json.dumps(audit_data)}")

    @staticmethod
    def log_send_requested(user_id: str, phone_last4: str):
        AuditService._log_audit_event(
            "otp_send_requested", user_id=user_id, phone_last4=phone_last4, outcome="requested"
        )

    @staticmethod
    def log_send_conflict(user_id: str, phone_last4: str):
        """Phone already linked to another identity"""
        AuditService._log_audit_event(
            "otp_send_conflict", user_id=user_id, phone_last4=phone_last4, outcome="conflict"
        )

    @staticmethod
    def log_send_rate_limited(user_id: str, phone_last4: str, retry_after_ms: int):
        AuditService._log_audit_event(
            "otp_send_rate_limited",
            user_id=user_id,
            phone_last4=phone_last4,
            outcome="rate_limited",
            retry_after_ms=retry_after_ms,
        )

    @staticmethod
    def log_send_success(request_id: str, user_id: str, phone_last4: str):
        AuditService._log_audit_event(
            "otp_send_success",
            request_id=request_id,
            user_id=user_id,
            phone_last4=phone_last4,
            outcome="success",
        )

    @staticmethod
    def log_send_failed(request_id: str, user_id: str, phone_last4: str, error: str):
        """Dispatch failed and the challenge was rolled back"""
        AuditService._log_audit_event(
            "otp_send_failed",
            request_id=request_id,
            user_id=user_id,
            phone_last4=phone_last4,
            outcome="fail",
            error=error,
        )

    @staticmethod
    def log_verify_success(request_id: str, user_id: str, phone_last4: str, attempts: int):
        AuditService._log_audit_event(
            "otp_verify_success",
            request_id=request_id,
            user_id=user_id,
            phone_last4=phone_last4,
            outcome="success",
            attempts=attempts,
        )

    @staticmethod
    def log_verify_failed(request_id: Optional[str], user_id: str, phone_last4: str, error: str, attempts: Optional[int] = None):
        AuditService._log_audit_event(
            "otp_verify_failed",
            request_id=request_id,
            user_id=user_id,
            phone_last4=phone_last4,
            outcome="fail",
            error=error,
            attempts=attempts,
        )

    @staticmethod
    def log_verify_locked(request_id: str, user_id: str, phone_last4: str, attempts: int):
        """Attempt budget exhausted; challenge destroyed"""
        AuditService._log_audit_event(
            "otp_verify_locked",
            request_id=request_id,
            user_id=user_id,
            phone_last4=phone_last4,
            outcome="blocked",
            attempts=attempts,
        )
