"""
FastAPI dependencies resolving the process-wide services from app state
"""
from fastapi import Request

from .services.otp import OTPService
from .services.profile_service import ProfileService


def get_otp_service(request: Request) -> OTPService:
    return request.app.state.otp_service


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service
