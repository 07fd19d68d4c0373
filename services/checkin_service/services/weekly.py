"""Per-host weekly markers and the check-in state derived from them.

An athlete stores one marker per host, ``<timestamp>#<activityId>``, naming
the most recent check-in there. A marker is *active* while its timestamp
falls in the same ISO calendar week as ``now`` (weeks are taken in the
configured ``TIMEZONE``). Malformed markers count as absent.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import from_epoch_millis, iso_week, utc_now
from services.checkin_service.models import AthleteEntity, CheckInStatus
from services.checkin_service.models.keys import SEPARATOR


@dataclass(frozen=True)
class WeeklyMarker:
    timestamp: int
    activity_id: str

    def encode(self) -> str:
        return f"{self.timestamp}{SEPARATOR}{self.activity_id}"

    @classmethod
    def decode(cls, value: str) -> "WeeklyMarker":
        raw_timestamp, sep, activity_id = (value or "").partition(SEPARATOR)
        if not sep or not activity_id:
            raise ValueError(f"Malformed weekly marker: {value!r}")
        try:
            timestamp = int(raw_timestamp)
        except ValueError as exc:
            raise ValueError(f"Malformed weekly marker: {value!r}") from exc
        return cls(timestamp=timestamp, activity_id=activity_id)

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["WeeklyMarker"]:
        """Like :meth:`decode`, but ``None`` for missing or malformed values."""
        if not value:
            return None
        try:
            return cls.decode(value)
        except ValueError:
            return None

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return is_within_current_week(self.timestamp, now)


@dataclass(frozen=True)
class CheckInState:
    status: CheckInStatus
    activity_id: Optional[str] = None
    timestamp: Optional[int] = None


def is_within_current_week(timestamp_ms: int, now: Optional[datetime] = None) -> bool:
    return iso_week(from_epoch_millis(timestamp_ms)) == iso_week(now or utc_now())


def active_markers(
    athlete: AthleteEntity, now: Optional[datetime] = None
) -> dict[str, WeeklyMarker]:
    """Markers written during the current week, keyed by host ID."""
    active = {}
    for host_id, value in athlete.last_weekly.items():
        marker = WeeklyMarker.parse(value)
        if marker and marker.is_active(now):
            active[host_id] = marker
    return active


def check_in_state(
    athlete: AthleteEntity, host_id: str, now: Optional[datetime] = None
) -> CheckInState:
    marker = WeeklyMarker.parse(athlete.last_weekly.get(host_id))
    if marker is None or not marker.is_active(now):
        return CheckInState(CheckInStatus.ELIGIBLE)
    return CheckInState(
        CheckInStatus.CHECKED_IN_THIS_WEEK,
        activity_id=marker.activity_id,
        timestamp=marker.timestamp,
    )


def can_check_in_at_host(
    athlete: AthleteEntity, host_id: str, now: Optional[datetime] = None
) -> bool:
    return check_in_state(athlete, host_id, now).status == CheckInStatus.ELIGIBLE


def should_increment_global_count(
    athlete: AthleteEntity, now: Optional[datetime] = None
) -> bool:
    """True when no host holds an active marker, i.e. the first check-in of the week."""
    return not active_markers(athlete, now)
