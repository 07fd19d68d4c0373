"""Typed views over stored items.

Field aliases are the short attribute names persisted in the table
(``fn``/``ln`` for names, ``gc`` for the lifetime count, ``lw`` for the weekly
markers, ``ds`` for disclaimer signatures, ``cnt`` for reward thresholds ...).
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.checkin_service.models.enums import EntityType, RewardType
from services.checkin_service.models.keys import timestamp_from_sort_key


class BaseEntity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    pk: str
    sk: str
    t: EntityType
    id: str
    created: int = Field(alias="c")
    updated: int = Field(alias="u")

    def to_item(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class HostReward(BaseModel):
    """Legacy custom reward definition embedded on the host record."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    count: int = Field(alias="c")
    name: str = Field(alias="n")
    icon: str = Field(alias="i")


class HostEntity(BaseEntity):
    t: EntityType = EntityType.HOST
    name: str = Field(alias="n")
    email: str = Field("", alias="e")
    identity_ref: str = Field(alias="cid")
    admin_passphrase: str = Field("", alias="p")
    location_ids: List[str] = Field(default_factory=list, alias="lids")
    disclaimer: str = Field("", alias="disc")
    custom_rewards: List[HostReward] = Field(default_factory=list, alias="cr")


class LocationEntity(BaseEntity):
    t: EntityType = EntityType.LOCATION
    host_id: str = Field(alias="hid")
    name: str = Field(alias="n")
    address: str = Field("", alias="a")
    activity_ids: List[str] = Field(default_factory=list, alias="acts")


class ActivityEntity(BaseEntity):
    t: EntityType = EntityType.ACTIVITY
    name: str = Field(alias="n")
    icon: str = Field("", alias="i")
    enabled: bool = Field(True, alias="en")


class AthleteEntity(BaseEntity):
    t: EntityType = EntityType.ATHLETE
    first_name: str = Field(alias="fn")
    last_name: str = Field(alias="ln")
    middle_initial: str = Field("", alias="mi")
    email: str = Field("", alias="e")
    employer: str = Field("", alias="em")
    shirt_gender: str = Field("", alias="sg")
    shirt_size: str = Field("", alias="ss")
    emergency_name: str = Field("", alias="en")
    emergency_phone: str = Field("", alias="ep")
    # hostId -> "<timestamp>#<activityId>"
    last_weekly: Dict[str, str] = Field(default_factory=dict, alias="lw")
    global_count: int = Field(0, alias="gc")
    legacy_count: Optional[int] = Field(None, alias="lc")
    archived_reward: bool = Field(False, alias="ar")
    # hostId -> epoch seconds
    disclaimers: Dict[str, int] = Field(default_factory=dict, alias="ds")
    deleted: bool = Field(False, alias="del")


class PetEntity(BaseEntity):
    t: EntityType = EntityType.PET
    athlete_id: str = Field(alias="aid")
    name: str = Field(alias="n")


class CheckInEntity(BaseEntity):
    t: EntityType = EntityType.CHECK_IN
    athlete_id: str = Field(alias="aid")
    host_id: str = Field(alias="hid")
    location_id: str = Field(alias="lid")
    activity_id: str = Field(alias="actid")

    @property
    def timestamp(self) -> int:
        return timestamp_from_sort_key(self.sk)


class PetCheckInEntity(BaseEntity):
    t: EntityType = EntityType.PET_CHECK_IN
    athlete_id: str = Field(alias="aid")
    pet_id: str = Field(alias="pid")
    host_id: str = Field(alias="hid")
    location_id: str = Field(alias="lid")

    @property
    def timestamp(self) -> int:
        return timestamp_from_sort_key(self.sk)


class RewardEntity(BaseEntity):
    t: EntityType = EntityType.REWARD
    count: int = Field(alias="cnt")
    name: str = Field(alias="n")
    icon: str = Field("", alias="i")
    reward_type: RewardType = Field(alias="rt")
    host_id: Optional[str] = Field(None, alias="hid")


class RewardClaimEntity(BaseEntity):
    t: EntityType = EntityType.REWARD_CLAIM
    athlete_id: str = Field(alias="aid")
    reward_id: str = Field(alias="rid")
    host_id: str = Field(alias="hid")
    location_id: str = Field(alias="lid")
    pet_id: Optional[str] = Field(None, alias="pid")

    @property
    def timestamp(self) -> int:
        return timestamp_from_sort_key(self.sk)
