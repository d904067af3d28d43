from typing import Any, Dict, List, Optional

from pydantic import field_validator

from .base import CamelModel, coerce_text, optional_number, truthy


class AdminListRequest(CamelModel):
    requester_user_id: str = ""
    limit: Optional[float] = None

    @field_validator("requester_user_id", mode="before")
    @classmethod
    def _requester(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, v: Any) -> Optional[float]:
        return optional_number(v)


class AdminListResponse(CamelModel):
    ok: bool = True
    rows: List[Dict[str, Any]]


class LaunchNotifyGetRequest(CamelModel):
    user_id: str = ""

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id(cls, v: Any) -> str:
        return coerce_text(v)


class LaunchNotifySetRequest(LaunchNotifyGetRequest):
    launch_notify_opt_in: bool = False

    @field_validator("launch_notify_opt_in", mode="before")
    @classmethod
    def _opt_in(cls, v: Any) -> bool:
        return truthy(v)


class LaunchNotifyResponse(CamelModel):
    ok: bool = True
    launch_notify_opt_in: bool
    launch_notify_updated_at: Optional[int] = None
