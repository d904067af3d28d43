"""
Phone OTP Router — /otp/*

Issues verification codes, redeems them, and persists the verified phone to
the profile store.
"""
import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_otp_service
from ..schemas.otp import (
    HealthResponse,
    PersistenceInfo,
    SendOTPRequest,
    SendOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from ..services.otp import OTPService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/otp", tags=["otp"])


@router.get("/health", response_model=HealthResponse)
async def otp_health():
    """Liveness probe"""
    return HealthResponse()


@router.post("/send", response_model=SendOTPResponse)
async def send_otp(
    payload: SendOTPRequest,
    otp_service: OTPService = Depends(get_otp_service),
):
    """
    Issue a verification code for the caller's phone.

    Errors: 400 invalid payload, 409 phone linked to another account,
    429 cooldown / upstream rate limit, 502 dispatch failed.
    """
    result = await otp_service.send_otp(
        user_id=payload.user_id,
        country_code=payload.country_code,
        phone_number=payload.phone_number,
    )
    return SendOTPResponse(request_id=result.request_id, expires_at=result.expires_at)


@router.post("/verify", response_model=VerifyOTPResponse, response_model_exclude_none=True)
async def verify_otp(
    payload: VerifyOTPRequest,
    otp_service: OTPService = Depends(get_otp_service),
):
    """
    Redeem a verification code.

    Persistence failures do not fail the request; they are reported under
    ``persistence``. Errors: 400, 401 wrong code, 404 not found, 410 expired,
    429 attempts exceeded.
    """
    result = await otp_service.verify_otp(
        user_id=payload.user_id,
        country_code=payload.country_code,
        phone_number=payload.phone_number,
        code=payload.otp,
        request_id=payload.request_id,
        contact=payload.contact_fields(),
    )
    return VerifyOTPResponse(
        user_id=result.user_id,
        full_phone_number=result.full_phone_number,
        persistence=PersistenceInfo(**result.persistence.to_dict()),
    )
