"""Check-in service schemas package."""

from services.checkin_service.schemas.main import (
    ActivityCreate,
    ActivityResponse,
    AthleteCreate,
    AthletePage,
    AthleteResponse,
    CamelModel,
    CheckInCreate,
    CheckInResponse,
    CheckInStatusResponse,
    CheckInUpdate,
    CountResponse,
    CustomRewardCreate,
    DisclaimerSign,
    DisclaimerStatusResponse,
    EligibilityResponse,
    EligibleRewardResponse,
    EntityResponse,
    ExistsResponse,
    HostCreate,
    HostCreateResponse,
    HostCustomRewardResponse,
    HostResponse,
    LocationActivitiesUpdate,
    LocationActivityAssign,
    LocationCreate,
    LocationResponse,
    OneAwayEntryResponse,
    OneAwayResponse,
    PassphraseResult,
    PassphraseVerify,
    PetCheckInCreate,
    PetCheckInResponse,
    PetCreate,
    PetPage,
    PetResponse,
    RewardClaimCreate,
    RewardClaimResponse,
    RewardCreate,
    RewardResponse,
)
from services.checkin_service.schemas.patches import (
    ActivityPatch,
    AthletePatch,
    EntityPatch,
    HostPatch,
    LocationPatch,
    PetPatch,
    RewardPatch,
)

__all__ = [
    "ActivityCreate",
    "ActivityPatch",
    "ActivityResponse",
    "AthleteCreate",
    "AthletePage",
    "AthletePatch",
    "AthleteResponse",
    "CamelModel",
    "CheckInCreate",
    "CheckInResponse",
    "CheckInStatusResponse",
    "CheckInUpdate",
    "CountResponse",
    "CustomRewardCreate",
    "DisclaimerSign",
    "DisclaimerStatusResponse",
    "EligibilityResponse",
    "EligibleRewardResponse",
    "EntityPatch",
    "EntityResponse",
    "ExistsResponse",
    "HostCreate",
    "HostCreateResponse",
    "HostCustomRewardResponse",
    "HostPatch",
    "HostResponse",
    "LocationActivitiesUpdate",
    "LocationActivityAssign",
    "LocationCreate",
    "LocationPatch",
    "LocationResponse",
    "OneAwayEntryResponse",
    "OneAwayResponse",
    "PassphraseResult",
    "PassphraseVerify",
    "PetCheckInCreate",
    "PetCheckInResponse",
    "PetCreate",
    "PetPage",
    "PetPatch",
    "PetResponse",
    "RewardClaimCreate",
    "RewardClaimResponse",
    "RewardCreate",
    "RewardPatch",
    "RewardResponse",
]
