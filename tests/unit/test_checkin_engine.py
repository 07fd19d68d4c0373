"""Unit tests for the check-in engine.

Tests call the engine functions directly with the repos fixture and pin
``now`` so the calendar week is deterministic.
"""

import pytest
from libs.common.datetime_utils import epoch_millis
from services.checkin_service.errors import (
    AlreadyCheckedIn,
    DisclaimerRequired,
    NotFoundError,
    PreconditionFailed,
)
from services.checkin_service.models import CheckInStatus
from services.checkin_service.repositories import ItemUpdate
from services.checkin_service.services import checkins as engine
from services.checkin_service.services.context import SessionContext
from services.checkin_service.services.weekly import WeeklyMarker
from tests.factories import (
    ActivityFactory,
    AthleteFactory,
    HostFactory,
    PetFactory,
    at,
)

WEEK_1 = at(2024, 1, 3)
WEEK_1_LATER = at(2024, 1, 5)
WEEK_2 = at(2024, 1, 10)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _host(repos, activities):
    host, location = await HostFactory.create(repos, activities=activities)
    return host, SessionContext(host_id=host.id, location_id=location.id)


async def _world(repos):
    """One activity, one host with its location, one athlete who signed."""
    activity = await ActivityFactory.create(repos, name="Bike")
    host, ctx = await _host(repos, [activity])
    athlete = await AthleteFactory.create(repos, sign_for=[host.id])
    return activity, host, ctx, athlete


# ---------------------------------------------------------------------------
# create_check_in
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_first_check_in_of_week_counts(repos):
    activity, host, ctx, athlete = await _world(repos)

    check_in = await engine.create_check_in(
        repos, ctx, athlete.id, activity.id, now=WEEK_1
    )

    assert check_in.timestamp == epoch_millis(WEEK_1)
    assert check_in.host_id == host.id
    assert check_in.location_id == ctx.location_id
    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 1
    marker = WeeklyMarker.decode(stored.last_weekly[host.id])
    assert marker == WeeklyMarker(check_in.timestamp, activity.id)
    assert await repos.check_ins.get(athlete.id, check_in.timestamp) is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_second_check_in_same_host_same_week_is_refused(repos):
    activity, host, ctx, athlete = await _world(repos)
    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)

    with pytest.raises(AlreadyCheckedIn) as exc_info:
        await engine.create_check_in(
            repos, ctx, athlete.id, activity.id, now=WEEK_1_LATER
        )

    assert exc_info.value.activity_id == activity.id
    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 1
    assert await repos.check_ins.count_for_athlete(athlete.id) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_second_host_same_week_does_not_count_again(repos):
    activity, host, ctx, athlete = await _world(repos)
    other, other_ctx = await _host(repos, [activity])
    await repos.athletes.add_disclaimer_signature(athlete.id, other.id)

    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)
    await engine.create_check_in(
        repos, other_ctx, athlete.id, activity.id, now=WEEK_1_LATER
    )

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 1
    assert set(stored.last_weekly) == {host.id, other.id}
    assert await repos.check_ins.count_for_athlete(athlete.id) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_new_week_counts_again_and_prunes_stale_markers(repos):
    activity, host, ctx, athlete = await _world(repos)
    other, other_ctx = await _host(repos, [activity])
    await repos.athletes.add_disclaimer_signature(athlete.id, other.id)

    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)
    await engine.create_check_in(
        repos, other_ctx, athlete.id, activity.id, now=WEEK_2
    )

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 2
    assert set(stored.last_weekly) == {other.id}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unsigned_disclaimer_blocks_check_in(repos):
    activity, host, ctx, _ = await _world(repos)
    athlete = await AthleteFactory.create(repos)

    with pytest.raises(DisclaimerRequired):
        await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 0
    assert stored.last_weekly == {}
    assert await repos.check_ins.count_for_athlete(athlete.id) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_malformed_marker_counts_as_absent(repos):
    activity, host, ctx, athlete = await _world(repos)
    await repos.athletes.update_with(
        athlete.id, lambda a: ItemUpdate(map_set={"lw": {host.id: "garbage"}})
    )

    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 1
    assert WeeklyMarker.parse(stored.last_weekly[host.id]) is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_activity_must_be_offered_at_location(repos):
    activity, host, ctx, athlete = await _world(repos)
    elsewhere = await ActivityFactory.create(repos, name="Snow")

    with pytest.raises(PreconditionFailed):
        await engine.create_check_in(repos, ctx, athlete.id, elsewhere.id, now=WEEK_1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_disabled_activity_is_refused(repos):
    activity, host, ctx, athlete = await _world(repos)
    await repos.activities.disable(activity.id)

    with pytest.raises(PreconditionFailed):
        await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_location_is_required_and_must_belong_to_host(repos):
    activity, host, ctx, athlete = await _world(repos)
    other, other_ctx = await _host(repos, [activity])

    with pytest.raises(PreconditionFailed):
        await engine.create_check_in(
            repos, SessionContext(host.id), athlete.id, activity.id, now=WEEK_1
        )
    with pytest.raises(PreconditionFailed):
        await engine.create_check_in(
            repos,
            ctx.with_location(other_ctx.location_id),
            athlete.id,
            activity.id,
            now=WEEK_1,
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_athlete_is_not_found(repos):
    activity, host, ctx, _ = await _world(repos)

    with pytest.raises(NotFoundError):
        await engine.create_check_in(repos, ctx, "nobody", activity.id, now=WEEK_1)


# ---------------------------------------------------------------------------
# get_check_in_status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_status_follows_calendar_week(repos):
    activity, host, ctx, athlete = await _world(repos)
    check_in = await engine.create_check_in(
        repos, ctx, athlete.id, activity.id, now=WEEK_1
    )

    during = await engine.get_check_in_status(repos, athlete.id, host.id, WEEK_1_LATER)
    after = await engine.get_check_in_status(repos, athlete.id, host.id, WEEK_2)

    assert during.status == CheckInStatus.CHECKED_IN_THIS_WEEK
    assert during.activity_id == activity.id
    assert during.timestamp == check_in.timestamp
    assert after.status == CheckInStatus.ELIGIBLE


# ---------------------------------------------------------------------------
# update_check_in
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_reassigns_activity_without_touching_count(repos):
    bike = await ActivityFactory.create(repos, name="Bike")
    shoe = await ActivityFactory.create(repos, name="Shoe")
    host, ctx = await _host(repos, [bike, shoe])
    athlete = await AthleteFactory.create(repos, sign_for=[host.id])
    check_in = await engine.create_check_in(
        repos, ctx, athlete.id, bike.id, now=WEEK_1
    )

    updated = await engine.update_check_in(
        repos, ctx, athlete.id, check_in.timestamp, shoe.id, now=WEEK_1_LATER
    )

    assert updated.activity_id == shoe.id
    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 1
    assert WeeklyMarker.decode(stored.last_weekly[host.id]).activity_id == shoe.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_of_last_weeks_check_in_is_refused(repos):
    activity, host, ctx, athlete = await _world(repos)
    check_in = await engine.create_check_in(
        repos, ctx, athlete.id, activity.id, now=WEEK_1
    )

    with pytest.raises(PreconditionFailed):
        await engine.update_check_in(
            repos, ctx, athlete.id, check_in.timestamp, activity.id, now=WEEK_2
        )


# ---------------------------------------------------------------------------
# delete_check_in
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_in_then_undo_nets_zero(repos):
    activity, host, ctx, athlete = await _world(repos)
    check_in = await engine.create_check_in(
        repos, ctx, athlete.id, activity.id, now=WEEK_1
    )

    await engine.delete_check_in(repos, athlete.id, check_in.timestamp, now=WEEK_1)

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 0
    assert host.id not in stored.last_weekly
    assert await repos.check_ins.get(athlete.id, check_in.timestamp) is None
    status = await engine.get_check_in_status(repos, athlete.id, host.id, WEEK_1)
    assert status.status == CheckInStatus.ELIGIBLE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_undo_keeps_count_while_another_host_is_active(repos):
    activity, host, ctx, athlete = await _world(repos)
    other, other_ctx = await _host(repos, [activity])
    await repos.athletes.add_disclaimer_signature(athlete.id, other.id)
    first = await engine.create_check_in(
        repos, ctx, athlete.id, activity.id, now=WEEK_1
    )
    await engine.create_check_in(
        repos, other_ctx, athlete.id, activity.id, now=WEEK_1_LATER
    )

    await engine.delete_check_in(repos, athlete.id, first.timestamp, now=WEEK_1_LATER)

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 1
    assert set(stored.last_weekly) == {other.id}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_deleting_an_older_check_in_leaves_marker_and_count(repos):
    activity, host, ctx, athlete = await _world(repos)
    old = await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)
    new = await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_2)

    await engine.delete_check_in(repos, athlete.id, old.timestamp, now=WEEK_2)

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 2
    assert WeeklyMarker.decode(stored.last_weekly[host.id]).timestamp == new.timestamp
    assert await repos.check_ins.get(athlete.id, old.timestamp) is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_deleting_last_weeks_check_in_does_not_decrement(repos):
    activity, host, ctx, athlete = await _world(repos)
    check_in = await engine.create_check_in(
        repos, ctx, athlete.id, activity.id, now=WEEK_1
    )

    await engine.delete_check_in(repos, athlete.id, check_in.timestamp, now=WEEK_2)

    stored = await repos.athletes.get_by_id(athlete.id)
    assert stored.global_count == 1
    assert host.id not in stored.last_weekly


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_missing_check_in_is_not_found(repos):
    _, _, _, athlete = await _world(repos)

    with pytest.raises(NotFoundError):
        await engine.delete_check_in(repos, athlete.id, 123, now=WEEK_1)


# ---------------------------------------------------------------------------
# Pet check-ins
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pet_check_in_needs_owner_check_in_this_week(repos):
    activity, host, ctx, athlete = await _world(repos)
    pet = await PetFactory.create(repos, athlete.id, name="Rex")

    with pytest.raises(PreconditionFailed):
        await engine.create_pet_check_in(repos, ctx, athlete.id, pet.id, now=WEEK_1)

    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)
    pet_check_in = await engine.create_pet_check_in(
        repos, ctx, athlete.id, pet.id, now=WEEK_1_LATER
    )

    assert pet_check_in.pet_id == pet.id
    assert await repos.check_ins.count_for_pet(pet.id) == 1
    with pytest.raises(PreconditionFailed):
        await engine.create_pet_check_in(repos, ctx, athlete.id, pet.id, now=WEEK_2)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pet_check_in_leaves_owner_counter_alone(repos):
    activity, host, ctx, athlete = await _world(repos)
    pet = await PetFactory.create(repos, athlete.id)
    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)
    before = await repos.athletes.get_by_id(athlete.id)

    await engine.create_pet_check_in(repos, ctx, athlete.id, pet.id, now=WEEK_1)
    await engine.create_pet_check_in(repos, ctx, athlete.id, pet.id, now=WEEK_1_LATER)

    after = await repos.athletes.get_by_id(athlete.id)
    assert after.global_count == before.global_count
    assert after.last_weekly == before.last_weekly
    assert len(await repos.check_ins.list_pet_for_host(host.id)) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pet_must_belong_to_athlete(repos):
    activity, host, ctx, athlete = await _world(repos)
    stranger = await AthleteFactory.create(repos, sign_for=[host.id])
    pet = await PetFactory.create(repos, stranger.id)
    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)

    with pytest.raises(PreconditionFailed):
        await engine.create_pet_check_in(repos, ctx, athlete.id, pet.id, now=WEEK_1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_pet_check_in(repos):
    activity, host, ctx, athlete = await _world(repos)
    pet = await PetFactory.create(repos, athlete.id)
    await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=WEEK_1)
    pet_check_in = await engine.create_pet_check_in(
        repos, ctx, athlete.id, pet.id, now=WEEK_1
    )

    await engine.delete_pet_check_in(repos, pet.id, pet_check_in.timestamp)

    assert await repos.check_ins.count_for_pet(pet.id) == 0
    with pytest.raises(NotFoundError):
        await engine.delete_pet_check_in(repos, pet.id, pet_check_in.timestamp)
