"""Check-in engine.

Weekly state is derived from the athlete's per-host markers (see
:mod:`services.checkin_service.services.weekly`). The lifetime counter ``gc``
moves only on the first active marker of the week across all hosts, and
moves back only when undoing leaves no active marker anywhere. Both the
eligibility decision and the counter change happen inside one locked
read-modify-write of the athlete record, so concurrent check-ins for the
same athlete cannot double count.
"""

from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import (
    epoch_millis,
    epoch_seconds,
    utc_now,
    week_bounds,
)
from libs.common.logging import get_logger
from services.checkin_service.errors import (
    AlreadyCheckedIn,
    DisclaimerRequired,
    NotFoundError,
    PreconditionFailed,
)
from services.checkin_service.models import (
    AthleteEntity,
    CheckInEntity,
    LocationEntity,
    PetCheckInEntity,
)
from services.checkin_service.repositories import ItemUpdate, Repositories
from services.checkin_service.services.context import SessionContext
from services.checkin_service.services.disclaimers import has_signed
from services.checkin_service.services.weekly import (
    CheckInState,
    WeeklyMarker,
    active_markers,
    can_check_in_at_host,
    check_in_state,
    should_increment_global_count,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


async def _require_athlete(repos: Repositories, athlete_id: str) -> AthleteEntity:
    athlete = await repos.athletes.get_by_id(athlete_id)
    if athlete is None:
        raise NotFoundError("Athlete", athlete_id)
    return athlete


async def _require_host_location(
    repos: Repositories, ctx: SessionContext
) -> LocationEntity:
    if not ctx.location_id:
        raise PreconditionFailed("A location must be selected before checking in")
    if await repos.hosts.get_by_id(ctx.host_id) is None:
        raise NotFoundError("Host", ctx.host_id)
    location = await repos.locations.get_by_id(ctx.location_id)
    if location is None:
        raise NotFoundError("Location", ctx.location_id)
    if location.host_id != ctx.host_id:
        raise PreconditionFailed("Location does not belong to the specified host")
    return location


async def _require_offered_activity(
    repos: Repositories, location: Optional[LocationEntity], activity_id: str
) -> None:
    activity = await repos.activities.get_by_id(activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    if not activity.enabled:
        raise PreconditionFailed("Activity is not enabled")
    if location is not None and activity_id not in location.activity_ids:
        raise PreconditionFailed("Activity is not available at the specified location")


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


async def get_check_in_status(
    repos: Repositories,
    athlete_id: str,
    host_id: str,
    now: Optional[datetime] = None,
) -> CheckInState:
    athlete = await _require_athlete(repos, athlete_id)
    return check_in_state(athlete, host_id, now)


# ---------------------------------------------------------------------------
# Athlete check-ins
# ---------------------------------------------------------------------------


async def create_check_in(
    repos: Repositories,
    ctx: SessionContext,
    athlete_id: str,
    activity_id: str,
    now: Optional[datetime] = None,
) -> CheckInEntity:
    """Record a weekly check-in at the context's host and location.

    Raises :class:`AlreadyCheckedIn` when the athlete holds an active marker
    for this host and :class:`DisclaimerRequired` when the host's disclaimer
    is unsigned. Nothing is written in either case.
    """
    now = now or utc_now()
    location = await _require_host_location(repos, ctx)
    await _require_athlete(repos, athlete_id)
    await _require_offered_activity(repos, location, activity_id)

    timestamp = epoch_millis(now)
    marker = WeeklyMarker(timestamp, activity_id)
    incremented = False

    def claim_week(athlete: AthleteEntity) -> ItemUpdate:
        nonlocal incremented
        if not can_check_in_at_host(athlete, ctx.host_id, now):
            state = check_in_state(athlete, ctx.host_id, now)
            raise AlreadyCheckedIn(state.activity_id)
        if not has_signed(athlete, ctx.host_id):
            raise DisclaimerRequired(athlete.id, ctx.host_id)

        update = ItemUpdate(set={"u": epoch_seconds(now)})
        if should_increment_global_count(athlete, now):
            # Replacing the whole marker map drops markers from earlier weeks
            incremented = True
            update.set["lw"] = {ctx.host_id: marker.encode()}
            update.add = {"gc": 1}
        else:
            update.map_set = {"lw": {ctx.host_id: marker.encode()}}
        return update

    try:
        athlete = await repos.athletes.update_with(athlete_id, claim_week)
    except (AlreadyCheckedIn, DisclaimerRequired) as exc:
        logger.warning(
            "Check-in refused for athlete %s at host %s: %s",
            athlete_id,
            ctx.host_id,
            exc.detail,
        )
        raise
    if athlete is None:
        raise NotFoundError("Athlete", athlete_id)

    check_in = await repos.check_ins.create(
        athlete_id=athlete_id,
        host_id=ctx.host_id,
        location_id=location.id,
        activity_id=activity_id,
        timestamp=timestamp,
    )
    logger.info(
        "Check-in created: athlete=%s host=%s activity=%s counted=%s",
        athlete_id,
        ctx.host_id,
        activity_id,
        incremented,
    )
    return check_in


async def update_check_in(
    repos: Repositories,
    ctx: SessionContext,
    athlete_id: str,
    timestamp: int,
    activity_id: str,
    now: Optional[datetime] = None,
) -> CheckInEntity:
    """Re-assign the activity of this week's check-in. The counter is untouched."""
    now = now or utc_now()
    check_in = await repos.check_ins.get(athlete_id, timestamp)
    if check_in is None:
        raise NotFoundError("Check-in", f"{athlete_id}/{timestamp}")
    if check_in.host_id != ctx.host_id:
        raise PreconditionFailed("Check-in was recorded at a different host")
    location = await repos.locations.get_by_id(check_in.location_id)
    await _require_offered_activity(repos, location, activity_id)

    def reassign(athlete: AthleteEntity) -> ItemUpdate:
        marker = WeeklyMarker.parse(athlete.last_weekly.get(check_in.host_id))
        if marker is None or marker.timestamp != timestamp or not marker.is_active(now):
            raise PreconditionFailed(
                "Only this week's latest check-in at a host can be changed"
            )
        return ItemUpdate(
            set={"u": epoch_seconds(now)},
            map_set={
                "lw": {check_in.host_id: WeeklyMarker(timestamp, activity_id).encode()}
            },
        )

    if await repos.athletes.update_with(athlete_id, reassign) is None:
        raise NotFoundError("Athlete", athlete_id)

    updated = await repos.check_ins.update_activity(athlete_id, timestamp, activity_id)
    if updated is None:
        raise NotFoundError("Check-in", f"{athlete_id}/{timestamp}")
    logger.info(
        "Check-in updated: athlete=%s host=%s activity=%s",
        athlete_id,
        check_in.host_id,
        activity_id,
    )
    return updated


async def delete_check_in(
    repos: Repositories,
    athlete_id: str,
    timestamp: int,
    now: Optional[datetime] = None,
) -> None:
    """Undo a check-in.

    The host's marker is cleared only when it names this check-in; the
    counter goes back down only when that marker was active and no other
    host holds an active marker.
    """
    now = now or utc_now()
    check_in = await repos.check_ins.get(athlete_id, timestamp)
    if check_in is None:
        raise NotFoundError("Check-in", f"{athlete_id}/{timestamp}")
    host_id = check_in.host_id
    decremented = False

    def release_week(athlete: AthleteEntity) -> Optional[ItemUpdate]:
        nonlocal decremented
        marker = WeeklyMarker.parse(athlete.last_weekly.get(host_id))
        if marker is None or marker.timestamp != timestamp:
            return None
        update = ItemUpdate(
            set={"u": epoch_seconds(now)}, map_remove={"lw": [host_id]}
        )
        others = {h: m for h, m in active_markers(athlete, now).items() if h != host_id}
        if marker.is_active(now) and not others and athlete.global_count > 0:
            decremented = True
            update.add = {"gc": -1}
        return update

    if await repos.athletes.update_with(athlete_id, release_week) is None:
        raise NotFoundError("Athlete", athlete_id)

    await repos.check_ins.delete(athlete_id, timestamp)
    logger.info(
        "Check-in deleted: athlete=%s host=%s timestamp=%s uncounted=%s",
        athlete_id,
        host_id,
        timestamp,
        decremented,
    )


# ---------------------------------------------------------------------------
# Pet check-ins (never touch the athlete's counter or markers)
# ---------------------------------------------------------------------------


async def create_pet_check_in(
    repos: Repositories,
    ctx: SessionContext,
    athlete_id: str,
    pet_id: str,
    now: Optional[datetime] = None,
) -> PetCheckInEntity:
    """Record a pet check-in alongside its owner's check-in this week."""
    now = now or utc_now()
    await _require_athlete(repos, athlete_id)
    pet = await repos.pets.get_by_id(pet_id)
    if pet is None:
        raise NotFoundError("Pet", pet_id)
    if pet.athlete_id != athlete_id:
        raise PreconditionFailed("Pet does not belong to the specified athlete")
    location = await _require_host_location(repos, ctx)

    start, end = week_bounds(now)
    owner_check_ins = await repos.check_ins.list_for_athlete_at_host_between(
        athlete_id, ctx.host_id, start, end
    )
    if not owner_check_ins:
        raise PreconditionFailed("Athlete must check in before their pet can check in")

    pet_check_in = await repos.check_ins.create_pet(
        athlete_id=athlete_id,
        pet_id=pet_id,
        host_id=ctx.host_id,
        location_id=location.id,
        timestamp=epoch_millis(now),
    )
    logger.info(
        "Pet check-in created: pet=%s athlete=%s host=%s",
        pet_id,
        athlete_id,
        ctx.host_id,
    )
    return pet_check_in


async def delete_pet_check_in(repos: Repositories, pet_id: str, timestamp: int) -> None:
    if not await repos.check_ins.delete_pet(pet_id, timestamp):
        raise NotFoundError("Pet check-in", f"{pet_id}/{timestamp}")
    logger.info("Pet check-in deleted: pet=%s timestamp=%s", pet_id, timestamp)
