"""
Profiles Router — /profiles/*

Backend-credentialed reads and writes against the profile store: the admin
profile list and the launch notification preference.
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_profile_service
from ..schemas.profiles import (
    AdminListRequest,
    AdminListResponse,
    LaunchNotifyGetRequest,
    LaunchNotifyResponse,
    LaunchNotifySetRequest,
)
from ..services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post("/admin-list", response_model=AdminListResponse)
async def admin_list_profiles(
    payload: AdminListRequest,
    profiles: ProfileService = Depends(get_profile_service),
):
    """List collected profiles for allow-listed operators"""
    rows = await profiles.list_profiles_for_operators(payload.requester_user_id, payload.limit)
    return AdminListResponse(rows=rows)


@router.post("/launch-notify/get", response_model=LaunchNotifyResponse, response_model_exclude_none=True)
async def get_launch_notify(
    payload: LaunchNotifyGetRequest,
    profiles: ProfileService = Depends(get_profile_service),
):
    data = await profiles.get_launch_notify(payload.user_id)
    return LaunchNotifyResponse(
        launch_notify_opt_in=bool(data.get("launchNotifyOptIn")),
        launch_notify_updated_at=data.get("launchNotifyUpdatedAt"),
    )


@router.post("/launch-notify/set", response_model=LaunchNotifyResponse, response_model_exclude_none=True)
async def set_launch_notify(
    payload: LaunchNotifySetRequest,
    profiles: ProfileService = Depends(get_profile_service),
):
    opt_in = await profiles.set_launch_notify(payload.user_id, payload.launch_notify_opt_in)
    return LaunchNotifyResponse(launch_notify_opt_in=opt_in)
