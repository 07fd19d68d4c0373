"""Unit tests for the by-date check-in index."""

import pytest
from libs.common.config import get_settings
from libs.common.datetime_utils import epoch_millis
from services.checkin_service.models.keys import check_in_indexes
from services.checkin_service.services import checkins as engine
from services.checkin_service.services.context import SessionContext
from tests.factories import ActivityFactory, AthleteFactory, HostFactory, at


async def _check_in(repos, host, location, activity, when):
    athlete = await AthleteFactory.create(repos, sign_for=[host.id])
    ctx = SessionContext(host_id=host.id, location_id=location.id)
    return await engine.create_check_in(repos, ctx, athlete.id, activity.id, now=when)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_by_date_spans_hosts(repos):
    bike = await ActivityFactory.create(repos)
    north, north_loc = await HostFactory.create(repos, activities=[bike])
    south, south_loc = await HostFactory.create(repos, activities=[bike])

    morning = await _check_in(repos, north, north_loc, bike, at(2024, 1, 3, hour=8))
    evening = await _check_in(repos, south, south_loc, bike, at(2024, 1, 3, hour=20))
    await _check_in(repos, north, north_loc, bike, at(2024, 1, 4, hour=8))

    same_day = await repos.check_ins.list_by_date("2024-01-03")

    assert {c.id for c in same_day} == {morning.id, evening.id}
    assert {c.host_id for c in same_day} == {north.id, south.id}
    assert await repos.check_ins.list_by_date("2024-01-05") == []


@pytest.mark.unit
def test_date_index_key_layout():
    keys = check_in_indexes("h1", "a1", 1704283200000, "2024-01-03")

    assert keys.gsi3pk == "DATE#2024-01-03"
    assert keys.gsi3sk == "CI#a1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_date_follows_configured_timezone(repos, monkeypatch):
    monkeypatch.setattr(get_settings(), "TIMEZONE", "America/New_York")
    # 02:00 UTC on the 4th is still the evening of the 3rd in New York
    late = at(2024, 1, 4, hour=2)

    check_in = await repos.check_ins.create(
        athlete_id="a1",
        host_id="h1",
        location_id="l1",
        activity_id="act1",
        timestamp=epoch_millis(late),
    )

    assert [c.id for c in await repos.check_ins.list_by_date("2024-01-03")] == [
        check_in.id
    ]
    assert await repos.check_ins.list_by_date("2024-01-04") == []
