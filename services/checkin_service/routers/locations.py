from typing import List

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_host_or_super_admin, require_super_admin
from libs.auth.models import AuthUser
from services.checkin_service.errors import NotFoundError
from services.checkin_service.models import LocationEntity
from services.checkin_service.repositories import Repositories, get_repositories
from services.checkin_service.routers.access import ensure_location_access
from services.checkin_service.schemas import (
    ActivityResponse,
    LocationActivitiesUpdate,
    LocationActivityAssign,
    LocationPatch,
    LocationResponse,
)
from services.checkin_service.services import admin

router = APIRouter(tags=["locations"])


async def _accessible_location(
    location_id: str, current_user: AuthUser, repos: Repositories
) -> LocationEntity:
    location = await repos.locations.get_by_id(location_id)
    if location is None:
        raise NotFoundError("Location", location_id)
    await ensure_location_access(current_user, location, repos)
    return location


@router.get("", response_model=List[LocationResponse])
async def list_locations(
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    locations = await repos.locations.list_all()
    return [LocationResponse.from_entity(loc) for loc in locations]


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    location = await _accessible_location(location_id, current_user, repos)
    return LocationResponse.from_entity(location)


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    patch: LocationPatch,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    location = await repos.locations.update(location_id, patch)
    if location is None:
        raise NotFoundError("Location", location_id)
    return LocationResponse.from_entity(location)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location(
    location_id: str,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Delete a location; a host's last location cannot be deleted."""
    await admin.delete_location(repos, location_id)
    return None


# ---------------------------------------------------------------------------
# Offered activities (at most three per location)
# ---------------------------------------------------------------------------


@router.get("/{location_id}/activities", response_model=List[ActivityResponse])
async def list_location_activities(
    location_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    location = await _accessible_location(location_id, current_user, repos)
    activities = await repos.activities.get_many(location.activity_ids)
    return [ActivityResponse.from_entity(a) for a in activities]


@router.put("/{location_id}/activities", response_model=LocationResponse)
async def set_location_activities(
    location_id: str,
    payload: LocationActivitiesUpdate,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await _accessible_location(location_id, current_user, repos)
    location = await admin.set_location_activities(
        repos, location_id, payload.activity_ids
    )
    return LocationResponse.from_entity(location)


@router.post("/{location_id}/activities", response_model=LocationResponse)
async def assign_location_activity(
    location_id: str,
    payload: LocationActivityAssign,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await _accessible_location(location_id, current_user, repos)
    location = await admin.assign_activity(repos, location_id, payload.activity_id)
    return LocationResponse.from_entity(location)


@router.delete(
    "/{location_id}/activities/{activity_id}", response_model=LocationResponse
)
async def remove_location_activity(
    location_id: str,
    activity_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await _accessible_location(location_id, current_user, repos)
    location = await admin.remove_location_activity(repos, location_id, activity_id)
    return LocationResponse.from_entity(location)
