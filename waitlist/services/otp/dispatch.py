"""
Delivery webhook gateway for OTP codes
"""
import logging
from typing import Any, Dict, Optional

import httpx

from ...core.env import is_local_env
from ...utils.phone import get_phone_last4
from .store import Challenge

logger = logging.getLogger(__name__)

BODY_SNIPPET_CHARS = 200


class DispatchError(Exception):
    """Base class for delivery failures; the message is shown to the client"""

    rate_limited = False


class DispatchTimeout(DispatchError):
    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Webhook timeout after {timeout_ms}ms")


class UpstreamRejected(DispatchError):
    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body[:BODY_SNIPPET_CHARS]
        message = f"Webhook returned HTTP {status_code}"
        if self.body:
            message = f"{message}: {self.body}"
        super().__init__(message)

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class TransportFailure(DispatchError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Webhook request failed: {reason or 'Unknown error'}")


class WebhookDispatchGateway:
    """
    Sends a freshly generated code to the delivery webhook, exactly once.

    Failures are raised as ``DispatchError`` subclasses so the caller can roll
    back the challenge. When no webhook URL is configured the send is a logged
    no-op that counts as delivered.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout_ms: int = 10000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout_ms = timeout_ms
        self._transport = transport

    @staticmethod
    def build_payload(challenge: Challenge, code: str) -> Dict[str, Any]:
        return {
            "requestId": challenge.request_id,
            "userId": challenge.user_id,
            "countryCode": challenge.country_code,
            "phoneNumber": challenge.phone_number,
            "fullPhoneNumber": challenge.full_phone_number,
            "otp": code,
            "createdAt": challenge.created_at,
            "expiresAt": challenge.expires_at,
        }

    async def send(self, challenge: Challenge, code: str) -> None:
        """
        Deliver ``code`` for ``challenge``.

        Raises:
            DispatchTimeout: The webhook did not answer within the timeout
            UpstreamRejected: The webhook answered with a non-2xx status
            TransportFailure: Connection-level failure
        """
        phone_last4 = get_phone_last4(challenge.full_phone_number)

        if not self.webhook_url:
            if is_local_env():
                logger.info(f"[OTP][Dispatch][DEV] No webhook configured. Code for {phone_last4}: {code}")
            else:
                logger.warning(f"[OTP][Dispatch] No webhook configured, skipping delivery to {phone_last4}")
            return

        payload = self.build_payload(challenge, code)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_ms / 1000,
                transport=self._transport,
            ) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException:
            logger.warning(f"[OTP][Dispatch] Timeout after {self.timeout_ms}ms for {phone_last4}")
            raise DispatchTimeout(self.timeout_ms)
        except httpx.HTTPError as e:
            logger.warning(f"[OTP][Dispatch] Request failed for {phone_last4}: {e}")
            raise TransportFailure(str(e))

        if not response.is_success:
            body = response.text or ""
            logger.warning(
                f"[OTP][Dispatch] Webhook rejected {phone_last4} with HTTP {response.status_code}"
            )
            raise UpstreamRejected(response.status_code, body)

        logger.info(f"[OTP][Dispatch] Code dispatched for {phone_last4} (request {challenge.request_id})")
