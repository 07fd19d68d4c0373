"""Host and location administration.

Invariants kept here rather than in the repositories: every host owns at
least one location, and a location offers at most three activities.
"""

import hmac
from typing import Optional

from libs.common.logging import get_logger
from services.checkin_service.errors import (
    LimitExceeded,
    NotFoundError,
    PreconditionFailed,
)
from services.checkin_service.models import HostEntity, LocationEntity
from services.checkin_service.repositories import Repositories

logger = get_logger(__name__)

MAX_ACTIVITIES_PER_LOCATION = 3
DEFAULT_LOCATION_NAME = "Main Location"


async def _require_location(
    repos: Repositories, location_id: str
) -> LocationEntity:
    location = await repos.locations.get_by_id(location_id)
    if location is None:
        raise NotFoundError("Location", location_id)
    return location


async def _validate_activity_ids(
    repos: Repositories, activity_ids: list[str]
) -> list[str]:
    unique = list(dict.fromkeys(activity_ids))
    if len(unique) > MAX_ACTIVITIES_PER_LOCATION:
        raise LimitExceeded(
            f"Maximum {MAX_ACTIVITIES_PER_LOCATION} activities allowed per location"
        )
    for activity_id in unique:
        activity = await repos.activities.get_by_id(activity_id)
        if activity is None:
            raise NotFoundError("Activity", activity_id)
        if not activity.enabled:
            raise PreconditionFailed(f"Activity {activity_id} is not enabled")
    return unique


# ---------------------------------------------------------------------------
# Hosts
# ---------------------------------------------------------------------------


async def create_host(
    repos: Repositories,
    *,
    name: str,
    identity_ref: str,
    email: str = "",
    admin_passphrase: str = "",
    disclaimer: str = "",
) -> tuple[HostEntity, LocationEntity]:
    """Create a host together with its first location."""
    if await repos.hosts.get_by_identity_ref(identity_ref) is not None:
        raise PreconditionFailed("A host already exists for this identity")

    host = await repos.hosts.create(
        name=name,
        identity_ref=identity_ref,
        email=email,
        admin_passphrase=admin_passphrase,
        disclaimer=disclaimer,
    )
    location = await repos.locations.create(
        host_id=host.id, name=DEFAULT_LOCATION_NAME
    )
    host = await repos.hosts.add_location(host.id, location.id)
    logger.info("Host %s created with location %s", host.id, location.id)
    return host, location


async def verify_host_passphrase(
    repos: Repositories, host_id: str, passphrase: str
) -> bool:
    host = await repos.hosts.get_by_id(host_id)
    if host is None:
        raise NotFoundError("Host", host_id)
    if not host.admin_passphrase:
        return False
    return hmac.compare_digest(
        host.admin_passphrase.encode("utf-8"), passphrase.encode("utf-8")
    )


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


async def create_location(
    repos: Repositories,
    host_id: str,
    *,
    name: str,
    address: str = "",
    activity_ids: Optional[list[str]] = None,
) -> LocationEntity:
    if await repos.hosts.get_by_id(host_id) is None:
        raise NotFoundError("Host", host_id)
    activity_ids = await _validate_activity_ids(repos, activity_ids or [])

    location = await repos.locations.create(
        host_id=host_id, name=name, address=address, activity_ids=activity_ids
    )
    await repos.hosts.add_location(host_id, location.id)
    logger.info("Location %s created for host %s", location.id, host_id)
    return location


async def delete_location(repos: Repositories, location_id: str) -> None:
    location = await _require_location(repos, location_id)
    siblings = await repos.locations.list_by_host(location.host_id)
    if len(siblings) <= 1:
        logger.warning(
            "Refused to delete last location %s of host %s",
            location_id,
            location.host_id,
        )
        raise PreconditionFailed("Cannot delete a host's last location")

    await repos.locations.delete(location_id)
    await repos.hosts.remove_location(location.host_id, location_id)
    logger.info("Location %s deleted from host %s", location_id, location.host_id)


async def assign_activity(
    repos: Repositories, location_id: str, activity_id: str
) -> LocationEntity:
    location = await _require_location(repos, location_id)
    if activity_id in location.activity_ids:
        return location
    if len(location.activity_ids) >= MAX_ACTIVITIES_PER_LOCATION:
        logger.warning("Activity limit reached for location %s", location_id)
        raise LimitExceeded(
            f"Maximum {MAX_ACTIVITIES_PER_LOCATION} activities allowed per location"
        )
    await _validate_activity_ids(repos, [activity_id])
    return await repos.locations.add_activity(location_id, activity_id)


async def set_location_activities(
    repos: Repositories, location_id: str, activity_ids: list[str]
) -> LocationEntity:
    await _require_location(repos, location_id)
    activity_ids = await _validate_activity_ids(repos, activity_ids)
    return await repos.locations.set_activity_ids(location_id, activity_ids)


async def remove_location_activity(
    repos: Repositories, location_id: str, activity_id: str
) -> LocationEntity:
    await _require_location(repos, location_id)
    return await repos.locations.remove_activity(location_id, activity_id)
