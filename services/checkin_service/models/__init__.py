"""Check-in service models package."""

from services.checkin_service.models.entities import (
    ActivityEntity,
    AthleteEntity,
    BaseEntity,
    CheckInEntity,
    HostEntity,
    HostReward,
    LocationEntity,
    PetCheckInEntity,
    PetEntity,
    RewardClaimEntity,
    RewardEntity,
)
from services.checkin_service.models.enums import CheckInStatus, EntityType, RewardType
from services.checkin_service.models.table import ITEMS_TABLE, TableItem

__all__ = [
    "ActivityEntity",
    "AthleteEntity",
    "BaseEntity",
    "CheckInEntity",
    "CheckInStatus",
    "EntityType",
    "HostEntity",
    "HostReward",
    "ITEMS_TABLE",
    "LocationEntity",
    "PetCheckInEntity",
    "PetEntity",
    "RewardClaimEntity",
    "RewardEntity",
    "RewardType",
    "TableItem",
]
