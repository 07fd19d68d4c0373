"""Datetime utilities for timezone-aware timestamps.

Stored records carry integer epoch timestamps: metadata items use seconds,
event items (check-ins, claims) use milliseconds.

Usage:
    from libs.common.datetime_utils import epoch_millis, utc_now

    timestamp = epoch_millis(utc_now())
"""

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from libs.common.config import get_settings


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    """
    return datetime.now(timezone.utc)


def epoch_seconds(moment: Optional[datetime] = None) -> int:
    moment = moment or utc_now()
    return int(moment.timestamp())


def epoch_millis(moment: Optional[datetime] = None) -> int:
    moment = moment or utc_now()
    return int(moment.timestamp() * 1000)


def from_epoch_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@lru_cache
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_zone() -> ZoneInfo:
    """Zone used for calendar boundaries (weeks, dates)."""
    return _zone(get_settings().TIMEZONE)


def local_date(timestamp_ms: int) -> date:
    return from_epoch_millis(timestamp_ms).astimezone(local_zone()).date()


def iso_week(moment: datetime) -> tuple[int, int]:
    """Return the (ISO year, ISO week) pair of ``moment`` in the local zone."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    calendar = moment.astimezone(local_zone()).isocalendar()
    return calendar[0], calendar[1]


def week_bounds(moment: datetime) -> tuple[int, int]:
    """Inclusive epoch-millisecond bounds of the ISO week holding ``moment``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(local_zone())
    monday = local.date() - timedelta(days=local.weekday())
    start = datetime.combine(monday, time.min, tzinfo=local_zone())
    end = start + timedelta(days=7)
    return epoch_millis(start), epoch_millis(end) - 1
