from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from services.checkin_service.models import (
    BaseEntity,
    CheckInStatus,
    RewardType,
)


class CamelModel(BaseModel):
    """JSON bodies use camelCase; Python code uses the field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntityResponse(CamelModel):
    id: str
    created: int
    updated: int

    @classmethod
    def from_entity(cls, entity: BaseEntity, **extra: Any):
        return cls.model_validate({**entity.model_dump(), **extra})


# ---------------------------------------------------------------------------
# Hosts
# ---------------------------------------------------------------------------


class HostCreate(CamelModel):
    name: str = Field(..., min_length=1)
    identity_ref: str = Field(..., min_length=1)
    email: str = ""
    admin_passphrase: str = Field("", alias="adminPassword")
    disclaimer: str = ""


class HostCustomRewardResponse(CamelModel):
    id: str
    count: int
    name: str
    icon: str


class HostResponse(EntityResponse):
    name: str
    email: str
    identity_ref: str
    location_ids: List[str] = []
    disclaimer: str = ""
    custom_rewards: List[HostCustomRewardResponse] = []


class HostCreateResponse(CamelModel):
    host: HostResponse
    location: "LocationResponse"


class CustomRewardCreate(CamelModel):
    count: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    icon: str = ""


class PassphraseVerify(CamelModel):
    passphrase: str


class PassphraseResult(CamelModel):
    valid: bool


# ---------------------------------------------------------------------------
# Locations & activities
# ---------------------------------------------------------------------------


class LocationCreate(CamelModel):
    name: str = Field(..., min_length=1)
    address: str = ""
    activity_ids: List[str] = []


class LocationActivitiesUpdate(CamelModel):
    activity_ids: List[str]


class LocationActivityAssign(CamelModel):
    activity_id: str


class LocationResponse(EntityResponse):
    host_id: str
    name: str
    address: str = ""
    activity_ids: List[str] = []


class ActivityCreate(CamelModel):
    name: str = Field(..., min_length=1)
    icon: str = ""
    enabled: bool = True


class ActivityResponse(EntityResponse):
    name: str
    icon: str = ""
    enabled: bool = True


# ---------------------------------------------------------------------------
# Athletes & pets
# ---------------------------------------------------------------------------


class AthleteCreate(CamelModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    middle_initial: str = ""
    employer: str = ""
    shirt_gender: str = ""
    shirt_size: str = ""
    emergency_name: str = ""
    emergency_phone: str = ""
    legacy_count: Optional[int] = None


class AthleteResponse(EntityResponse):
    first_name: str
    last_name: str
    middle_initial: str = ""
    email: str = ""
    employer: str = ""
    shirt_gender: str = ""
    shirt_size: str = ""
    emergency_name: str = ""
    emergency_phone: str = ""
    last_weekly: dict[str, str] = {}
    global_count: int = 0
    legacy_count: Optional[int] = None
    archived_reward: bool = False
    disclaimers: dict[str, int] = {}
    deleted: bool = False


class AthletePage(CamelModel):
    items: List[AthleteResponse]
    next_cursor: Optional[str] = None


class DisclaimerSign(CamelModel):
    host_id: str


class DisclaimerStatusResponse(CamelModel):
    athlete_id: str
    host_id: str
    signed: bool
    signed_at: Optional[int] = None
    disclaimer: str = ""


class PetCreate(CamelModel):
    athlete_id: str
    name: str = Field(..., min_length=1)


class PetResponse(EntityResponse):
    athlete_id: str
    name: str


class PetPage(CamelModel):
    items: List[PetResponse]
    next_cursor: Optional[str] = None


class ExistsResponse(CamelModel):
    exists: bool


# ---------------------------------------------------------------------------
# Check-ins
# ---------------------------------------------------------------------------


class CheckInCreate(CamelModel):
    athlete_id: str
    host_id: str
    location_id: Optional[str] = None
    activity_id: str


class CheckInUpdate(CamelModel):
    host_id: str
    activity_id: str


class CheckInResponse(EntityResponse):
    athlete_id: str
    host_id: str
    location_id: str
    activity_id: str
    timestamp: int


class PetCheckInCreate(CamelModel):
    athlete_id: str
    pet_id: str
    host_id: str
    location_id: Optional[str] = None


class PetCheckInResponse(EntityResponse):
    athlete_id: str
    pet_id: str
    host_id: str
    location_id: str
    timestamp: int


class CheckInStatusResponse(CamelModel):
    athlete_id: str
    host_id: str
    status: CheckInStatus
    activity_id: Optional[str] = None
    timestamp: Optional[int] = None


class CountResponse(CamelModel):
    count: int


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


class RewardCreate(CamelModel):
    count: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    icon: str = ""
    reward_type: RewardType = Field(RewardType.GLOBAL, alias="type")
    host_id: Optional[str] = None


class RewardResponse(EntityResponse):
    count: int
    name: str
    icon: str = ""
    reward_type: RewardType = Field(alias="type")
    host_id: Optional[str] = None


class RewardClaimCreate(CamelModel):
    athlete_id: str
    reward_id: str
    host_id: str
    location_id: Optional[str] = None
    pet_id: Optional[str] = None


class RewardClaimResponse(EntityResponse):
    athlete_id: str
    reward_id: str
    host_id: str
    location_id: str
    pet_id: Optional[str] = None
    timestamp: int


class EligibleRewardResponse(CamelModel):
    reward_id: str
    name: str
    count: int
    current_count: int


class EligibilityResponse(CamelModel):
    global_rewards: List[EligibleRewardResponse] = []
    host_rewards: List[EligibleRewardResponse] = []


class OneAwayEntryResponse(CamelModel):
    athlete_id: str
    reward_id: str
    current_count: int
    required_count: int


class OneAwayResponse(CamelModel):
    global_one_away: List[OneAwayEntryResponse] = []
    host_one_away: List[OneAwayEntryResponse] = []


HostCreateResponse.model_rebuild()
