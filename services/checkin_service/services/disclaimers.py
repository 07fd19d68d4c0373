"""Per-host disclaimer signatures."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import epoch_seconds
from libs.common.logging import get_logger
from services.checkin_service.errors import NotFoundError
from services.checkin_service.models import AthleteEntity
from services.checkin_service.repositories import Repositories

logger = get_logger(__name__)


@dataclass(frozen=True)
class DisclaimerStatus:
    athlete_id: str
    host_id: str
    signed: bool
    signed_at: Optional[int]
    disclaimer: str


def has_signed(athlete: AthleteEntity, host_id: str) -> bool:
    return bool(athlete.disclaimers.get(host_id))


async def sign(
    repos: Repositories,
    athlete_id: str,
    host_id: str,
    now: Optional[datetime] = None,
) -> AthleteEntity:
    """Record the signature. Signing again only refreshes the timestamp."""
    if await repos.hosts.get_by_id(host_id) is None:
        raise NotFoundError("Host", host_id)
    athlete = await repos.athletes.add_disclaimer_signature(
        athlete_id, host_id, signed_at=epoch_seconds(now)
    )
    if athlete is None:
        raise NotFoundError("Athlete", athlete_id)
    logger.info("Athlete %s signed disclaimer for host %s", athlete_id, host_id)
    return athlete


async def get_status(
    repos: Repositories, athlete_id: str, host_id: str
) -> DisclaimerStatus:
    athlete = await repos.athletes.get_by_id(athlete_id)
    if athlete is None:
        raise NotFoundError("Athlete", athlete_id)
    host = await repos.hosts.get_by_id(host_id)
    if host is None:
        raise NotFoundError("Host", host_id)
    return DisclaimerStatus(
        athlete_id=athlete_id,
        host_id=host_id,
        signed=has_signed(athlete, host_id),
        signed_at=athlete.disclaimers.get(host_id),
        disclaimer=host.disclaimer,
    )
