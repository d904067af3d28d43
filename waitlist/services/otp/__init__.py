"""
Phone OTP issuance and verification
"""
from .codes import codes_match, digest, generate_code
from .dispatch import (
    DispatchError,
    DispatchTimeout,
    TransportFailure,
    UpstreamRejected,
    WebhookDispatchGateway,
)
from .service import OTPService, SendResult, VerifyResult
from .store import Challenge, OTPRequestStore

__all__ = [
    "codes_match",
    "digest",
    "generate_code",
    "DispatchError",
    "DispatchTimeout",
    "TransportFailure",
    "UpstreamRejected",
    "WebhookDispatchGateway",
    "OTPService",
    "SendResult",
    "VerifyResult",
    "Challenge",
    "OTPRequestStore",
]
