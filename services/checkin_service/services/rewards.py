"""Reward eligibility, one-away detection and claim recording.

Counting domains:

* global rewards compare against the athlete's lifetime counter ``gc``;
* host rewards compare against the athlete's check-ins at that host, counted
  by reading the athlete's check-in history;
* pet rewards compare against the pet's check-in count.

A threshold ``cnt`` is met when the count reaches it. An athlete is
*one away* from a reward when the count is exactly ``cnt - 1``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import epoch_millis, utc_now
from libs.common.logging import get_logger
from services.checkin_service.errors import NotFoundError, PreconditionFailed
from services.checkin_service.models import (
    RewardClaimEntity,
    RewardEntity,
    RewardType,
)
from services.checkin_service.repositories import Repositories
from services.checkin_service.services.context import SessionContext

logger = get_logger(__name__)


@dataclass(frozen=True)
class EligibleReward:
    reward: RewardEntity
    current_count: int


@dataclass
class Eligibility:
    global_rewards: list[EligibleReward] = field(default_factory=list)
    host_rewards: list[EligibleReward] = field(default_factory=list)


@dataclass(frozen=True)
class OneAwayEntry:
    athlete_id: str
    reward_id: str
    current_count: int
    required_count: int


@dataclass
class OneAwayReport:
    global_one_away: list[OneAwayEntry] = field(default_factory=list)
    host_one_away: list[OneAwayEntry] = field(default_factory=list)


def _met(
    rewards: list[RewardEntity], count: int, claimed: set[str]
) -> list[EligibleReward]:
    return [
        EligibleReward(reward, count)
        for reward in rewards
        if count >= reward.count and reward.id not in claimed
    ]


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


async def create_reward(
    repos: Repositories,
    *,
    reward_type: RewardType,
    count: int,
    name: str,
    icon: str = "",
    host_id: Optional[str] = None,
) -> RewardEntity:
    if count < 1:
        raise PreconditionFailed("Reward count must be at least 1")
    if reward_type == RewardType.HOST:
        if not host_id:
            raise PreconditionFailed("Host rewards require a host")
        if await repos.hosts.get_by_id(host_id) is None:
            raise NotFoundError("Host", host_id)
    reward = await repos.rewards.create(
        count=count,
        name=name,
        icon=icon,
        reward_type=reward_type,
        host_id=host_id,
    )
    logger.info(
        "Reward %s created (%s, count=%d)", reward.id, reward_type.value, count
    )
    return reward


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


async def get_eligible_rewards(
    repos: Repositories, athlete_id: str, host_id: Optional[str] = None
) -> Eligibility:
    """Rewards whose threshold the athlete has met and not yet claimed."""
    athlete = await repos.athletes.get_by_id(athlete_id)
    if athlete is None:
        raise NotFoundError("Athlete", athlete_id)

    claims = await repos.claims.list_for_athlete(athlete_id)
    claimed = {claim.reward_id for claim in claims}
    eligibility = Eligibility(
        global_rewards=_met(
            await repos.rewards.list_global(), athlete.global_count, claimed
        )
    )
    if host_id:
        host_count = await repos.check_ins.count_for_athlete_at_host(
            athlete_id, host_id
        )
        eligibility.host_rewards = _met(
            await repos.rewards.list_for_host(host_id), host_count, claimed
        )
    return eligibility


async def get_pet_eligible_rewards(
    repos: Repositories, pet_id: str
) -> list[EligibleReward]:
    pet = await repos.pets.get_by_id(pet_id)
    if pet is None:
        raise NotFoundError("Pet", pet_id)

    claims = await repos.claims.list_pet_claims_for_athlete(pet.athlete_id)
    claimed = {claim.reward_id for claim in claims if claim.pet_id == pet_id}
    count = await repos.check_ins.count_for_pet(pet_id)
    return _met(await repos.rewards.list_pet(), count, claimed)


async def get_one_away_athletes(repos: Repositories, host_id: str) -> OneAwayReport:
    """Athletes seen at the host recently who are one check-in short of a reward.

    Candidates are the distinct athletes among the host's most recent
    ``EVENT_SCAN_LIMIT`` check-ins. Pairs already claimed are left out.
    """
    if await repos.hosts.get_by_id(host_id) is None:
        raise NotFoundError("Host", host_id)

    global_rewards = await repos.rewards.list_global()
    host_rewards = await repos.rewards.list_for_host(host_id)
    recent = await repos.check_ins.list_for_host(
        host_id, limit=get_settings().EVENT_SCAN_LIMIT
    )
    candidate_ids = list(dict.fromkeys(check_in.athlete_id for check_in in recent))

    report = OneAwayReport()
    for athlete_id in candidate_ids:
        athlete = await repos.athletes.get_by_id(athlete_id)
        if athlete is None or athlete.deleted:
            continue
        claimed = {
            claim.reward_id for claim in await repos.claims.list_for_athlete(athlete_id)
        }

        for reward in global_rewards:
            if reward.id not in claimed and athlete.global_count == reward.count - 1:
                report.global_one_away.append(
                    OneAwayEntry(
                        athlete_id, reward.id, athlete.global_count, reward.count
                    )
                )

        if host_rewards:
            host_count = await repos.check_ins.count_for_athlete_at_host(
                athlete_id, host_id
            )
            for reward in host_rewards:
                if reward.id not in claimed and host_count == reward.count - 1:
                    report.host_one_away.append(
                        OneAwayEntry(athlete_id, reward.id, host_count, reward.count)
                    )
    return report


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


async def create_reward_claim(
    repos: Repositories,
    ctx: SessionContext,
    athlete_id: str,
    reward_id: str,
    pet_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RewardClaimEntity:
    """Record that a reward was handed out at the context's host and location.

    Earlier claims of the same reward are not looked at.
    """
    if not ctx.location_id:
        raise PreconditionFailed(
            "A location must be selected before claiming a reward"
        )
    location = await repos.locations.get_by_id(ctx.location_id)
    if location is None:
        raise NotFoundError("Location", ctx.location_id)
    if location.host_id != ctx.host_id:
        raise PreconditionFailed("Location does not belong to the specified host")
    if await repos.athletes.get_by_id(athlete_id) is None:
        raise NotFoundError("Athlete", athlete_id)
    reward = await repos.rewards.get_by_id(reward_id)
    if reward is None:
        raise NotFoundError("Reward", reward_id)

    if reward.reward_type == RewardType.HOST and reward.host_id != ctx.host_id:
        raise PreconditionFailed("Reward belongs to a different host")
    if reward.reward_type == RewardType.PET:
        if not pet_id:
            raise PreconditionFailed("Pet rewards require a pet")
        pet = await repos.pets.get_by_id(pet_id)
        if pet is None:
            raise NotFoundError("Pet", pet_id)
        if pet.athlete_id != athlete_id:
            raise PreconditionFailed("Pet does not belong to the specified athlete")
    else:
        pet_id = None

    claim = await repos.claims.create(
        athlete_id=athlete_id,
        reward_id=reward_id,
        host_id=ctx.host_id,
        location_id=location.id,
        pet_id=pet_id,
        timestamp=epoch_millis(now or utc_now()),
    )
    logger.info(
        "Reward claim recorded: athlete=%s reward=%s host=%s",
        athlete_id,
        reward_id,
        ctx.host_id,
    )
    return claim


async def delete_reward_claim(
    repos: Repositories, athlete_id: str, timestamp: int, reward_id: str
) -> None:
    if not await repos.claims.delete(athlete_id, timestamp, reward_id):
        raise NotFoundError("Reward claim", f"{athlete_id}/{timestamp}/{reward_id}")
    logger.info("Reward claim deleted: athlete=%s reward=%s", athlete_id, reward_id)
