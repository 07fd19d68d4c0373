"""Repository access layer for the check-in item table."""

from dataclasses import dataclass

from fastapi import Depends
from libs.db.session import get_async_db
from services.checkin_service.repositories.activity import ActivityRepository
from services.checkin_service.repositories.athlete import AthleteRepository
from services.checkin_service.repositories.base import (
    ItemStore,
    ItemUpdate,
    Page,
    decode_cursor,
    encode_cursor,
)
from services.checkin_service.repositories.checkin import CheckInRepository
from services.checkin_service.repositories.host import HostRepository
from services.checkin_service.repositories.location import LocationRepository
from services.checkin_service.repositories.pet import PetRepository
from services.checkin_service.repositories.reward import RewardRepository
from services.checkin_service.repositories.reward_claim import RewardClaimRepository
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class Repositories:
    hosts: HostRepository
    locations: LocationRepository
    activities: ActivityRepository
    athletes: AthleteRepository
    pets: PetRepository
    check_ins: CheckInRepository
    rewards: RewardRepository
    claims: RewardClaimRepository

    @classmethod
    def from_session(cls, db: AsyncSession) -> "Repositories":
        store = ItemStore(db)
        return cls(
            hosts=HostRepository(store),
            locations=LocationRepository(store),
            activities=ActivityRepository(store),
            athletes=AthleteRepository(store),
            pets=PetRepository(store),
            check_ins=CheckInRepository(store),
            rewards=RewardRepository(store),
            claims=RewardClaimRepository(store),
        )


async def get_repositories(db: AsyncSession = Depends(get_async_db)) -> Repositories:
    return Repositories.from_session(db)


__all__ = [
    "ActivityRepository",
    "AthleteRepository",
    "CheckInRepository",
    "HostRepository",
    "ItemStore",
    "ItemUpdate",
    "LocationRepository",
    "Page",
    "PetRepository",
    "Repositories",
    "RewardClaimRepository",
    "RewardRepository",
    "decode_cursor",
    "encode_cursor",
    "get_repositories",
]
