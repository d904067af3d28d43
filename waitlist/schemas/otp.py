from typing import Any, Dict, Optional

from pydantic import field_validator

from ..utils.phone import normalize_country_code, normalize_digits
from .base import CamelModel, coerce_text, optional_text


class SendOTPRequest(CamelModel):
    user_id: str = ""
    country_code: str = ""
    phone_number: str = ""

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("country_code", mode="before")
    @classmethod
    def _country_code(cls, v: Any) -> str:
        return normalize_country_code(coerce_text(v))

    @field_validator("phone_number", mode="before")
    @classmethod
    def _phone_number(cls, v: Any) -> str:
        return normalize_digits(coerce_text(v))


class SendOTPResponse(CamelModel):
    ok: bool = True
    request_id: str
    expires_at: int


class VerifyOTPRequest(SendOTPRequest):
    request_id: str = ""
    otp: str = ""
    email: Optional[str] = None
    full_name: Optional[str] = None
    address: Optional[str] = None
    church_name: Optional[str] = None

    @field_validator("request_id", mode="before")
    @classmethod
    def _request_id(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("otp", mode="before")
    @classmethod
    def _otp(cls, v: Any) -> str:
        return normalize_digits(coerce_text(v))

    @field_validator("email", "full_name", "address", "church_name", mode="before")
    @classmethod
    def _contact(cls, v: Any) -> Optional[str]:
        return optional_text(v)

    def contact_fields(self) -> Dict[str, str]:
        """Supplied contact fields keyed by their wire names"""
        return self.model_dump(
            by_alias=True,
            include={"email", "full_name", "address", "church_name"},
            exclude_none=True,
        )


class PersistenceInfo(CamelModel):
    persisted: bool
    reason: Optional[str] = None


class VerifyOTPResponse(CamelModel):
    ok: bool = True
    verified: bool = True
    user_id: str
    full_phone_number: str
    persistence: PersistenceInfo


class HealthResponse(CamelModel):
    ok: bool = True
