"""Unit tests for weekly markers and calendar-week arithmetic."""

from datetime import timedelta

import pytest
from libs.common.datetime_utils import epoch_millis, iso_week, week_bounds
from services.checkin_service.models import AthleteEntity, CheckInStatus
from services.checkin_service.services.weekly import (
    WeeklyMarker,
    active_markers,
    can_check_in_at_host,
    check_in_state,
    is_within_current_week,
    should_increment_global_count,
)
from tests.factories import at


def _athlete(last_weekly=None, global_count=0) -> AthleteEntity:
    return AthleteEntity(
        pk="ATH#a1",
        sk="METADATA",
        id="a1",
        created=0,
        updated=0,
        first_name="Jane",
        last_name="Smith",
        last_weekly=last_weekly or {},
        global_count=global_count,
    )


# ---------------------------------------------------------------------------
# WeeklyMarker
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_marker_encode_decode():
    marker = WeeklyMarker(1704110400000, "act-1")
    assert marker.encode() == "1704110400000#act-1"
    assert WeeklyMarker.decode("1704110400000#act-1") == marker


@pytest.mark.unit
@pytest.mark.parametrize("value", ["", "1704110400000", "abc#act-1", "123#", "#act"])
def test_malformed_marker_is_rejected(value):
    with pytest.raises(ValueError):
        WeeklyMarker.decode(value)
    assert WeeklyMarker.parse(value) is None


@pytest.mark.unit
def test_parse_missing_marker():
    assert WeeklyMarker.parse(None) is None


# ---------------------------------------------------------------------------
# ISO weeks
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_sunday_and_following_monday_are_different_weeks():
    sunday = at(2024, 1, 7, 23)
    monday = at(2024, 1, 8, 1)
    assert not is_within_current_week(epoch_millis(sunday), now=monday)
    assert is_within_current_week(epoch_millis(at(2024, 1, 1, 0)), now=sunday)


@pytest.mark.unit
def test_iso_week_spans_year_boundary():
    # 2020-12-31 (Thu) and 2021-01-03 (Sun) both fall in ISO week 53 of 2020
    assert iso_week(at(2020, 12, 31)) == (2020, 53)
    assert iso_week(at(2021, 1, 3)) == (2020, 53)
    assert is_within_current_week(epoch_millis(at(2020, 12, 31)), now=at(2021, 1, 3))


@pytest.mark.unit
def test_same_week_number_in_another_year_is_not_current():
    last_year = at(2023, 1, 4)
    this_year = at(2024, 1, 3)
    assert iso_week(last_year)[1] == iso_week(this_year)[1]
    assert not is_within_current_week(epoch_millis(last_year), now=this_year)


@pytest.mark.unit
def test_week_bounds_are_inclusive_monday_to_sunday():
    start, end = week_bounds(at(2024, 1, 3))
    assert start == epoch_millis(at(2024, 1, 1, 0))
    assert end == epoch_millis(at(2024, 1, 8, 0)) - 1
    assert end - start == int(timedelta(days=7).total_seconds() * 1000) - 1


# ---------------------------------------------------------------------------
# Derived state
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_state_reflects_active_marker_only():
    now = at(2024, 1, 10)
    this_week = WeeklyMarker(epoch_millis(at(2024, 1, 9)), "act-1").encode()
    last_week = WeeklyMarker(epoch_millis(at(2024, 1, 2)), "act-2").encode()
    athlete = _athlete({"h1": this_week, "h2": last_week, "h3": "garbage"})

    state = check_in_state(athlete, "h1", now)
    assert state.status == CheckInStatus.CHECKED_IN_THIS_WEEK
    assert state.activity_id == "act-1"
    assert state.timestamp == epoch_millis(at(2024, 1, 9))

    assert can_check_in_at_host(athlete, "h2", now)
    assert can_check_in_at_host(athlete, "h3", now)
    assert can_check_in_at_host(athlete, "unknown", now)
    assert set(active_markers(athlete, now)) == {"h1"}


@pytest.mark.unit
def test_global_count_moves_only_without_active_markers():
    now = at(2024, 1, 10)
    stale = WeeklyMarker(epoch_millis(at(2023, 12, 20)), "act-1").encode()
    fresh = WeeklyMarker(epoch_millis(at(2024, 1, 8)), "act-1").encode()

    assert should_increment_global_count(_athlete(), now)
    assert should_increment_global_count(_athlete({"h1": stale}), now)
    assert not should_increment_global_count(_athlete({"h1": fresh}), now)
