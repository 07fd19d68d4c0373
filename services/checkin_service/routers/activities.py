from typing import List

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_super_admin
from libs.auth.models import AuthUser
from services.checkin_service.errors import NotFoundError
from services.checkin_service.repositories import Repositories, get_repositories
from services.checkin_service.schemas import (
    ActivityCreate,
    ActivityPatch,
    ActivityResponse,
)

router = APIRouter(tags=["activities"])


@router.get("", response_model=List[ActivityResponse])
async def list_activities(
    include_disabled: bool = Query(False, alias="includeDisabled"),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    activities = await repos.activities.list_all(include_disabled=include_disabled)
    return [ActivityResponse.from_entity(a) for a in activities]


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    payload: ActivityCreate,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    activity = await repos.activities.create(
        name=payload.name, icon=payload.icon, enabled=payload.enabled
    )
    return ActivityResponse.from_entity(activity)


@router.post("/defaults", response_model=List[ActivityResponse])
async def create_default_activities(
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Seed the default catalog when no activity exists yet."""
    activities = await repos.activities.create_defaults_if_none()
    return [ActivityResponse.from_entity(a) for a in activities]


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    activity_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    activity = await repos.activities.get_by_id(activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return ActivityResponse.from_entity(activity)


@router.patch("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: str,
    patch: ActivityPatch,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    activity = await repos.activities.update(activity_id, patch)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return ActivityResponse.from_entity(activity)


@router.post("/{activity_id}/enable", response_model=ActivityResponse)
async def enable_activity(
    activity_id: str,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    activity = await repos.activities.enable(activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return ActivityResponse.from_entity(activity)


@router.post("/{activity_id}/disable", response_model=ActivityResponse)
async def disable_activity(
    activity_id: str,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    activity = await repos.activities.disable(activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return ActivityResponse.from_entity(activity)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
    activity_id: str,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    if not await repos.activities.delete(activity_id):
        raise NotFoundError("Activity", activity_id)
    return None
