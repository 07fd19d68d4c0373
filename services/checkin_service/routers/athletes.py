from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import (
    get_current_user,
    require_host_or_super_admin,
    require_super_admin,
)
from libs.auth.models import AuthUser
from services.checkin_service.errors import NotFoundError
from services.checkin_service.repositories import (
    Repositories,
    decode_cursor,
    encode_cursor,
    get_repositories,
)
from services.checkin_service.routers.access import ensure_host_access, session_context
from services.checkin_service.schemas import (
    AthleteCreate,
    AthletePage,
    AthletePatch,
    AthleteResponse,
    CheckInResponse,
    CheckInStatusResponse,
    CheckInUpdate,
    CountResponse,
    DisclaimerSign,
    DisclaimerStatusResponse,
    EligibilityResponse,
    EligibleRewardResponse,
    ExistsResponse,
    PetResponse,
    RewardClaimResponse,
)
from services.checkin_service.services import checkins as engine
from services.checkin_service.services import disclaimers, rewards

router = APIRouter(tags=["athletes"])


def _eligible(entries) -> List[EligibleRewardResponse]:
    return [
        EligibleRewardResponse(
            reward_id=e.reward.id,
            name=e.reward.name,
            count=e.reward.count,
            current_count=e.current_count,
        )
        for e in entries
    ]


@router.get("", response_model=AthletePage)
async def list_athletes(
    limit: int = Query(50, ge=1, le=500),
    cursor: Optional[str] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    """Name-ordered athlete catalog; deleted athletes are left out."""
    try:
        start_after = decode_cursor(cursor)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    page = await repos.athletes.list_page(limit=limit, start_after=start_after)
    return AthletePage(
        items=[AthleteResponse.from_entity(a) for a in page.items],
        next_cursor=encode_cursor(page.last_key),
    )


@router.post("", response_model=AthleteResponse, status_code=status.HTTP_201_CREATED)
async def register_athlete(
    payload: AthleteCreate,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    athlete = await repos.athletes.create(**payload.model_dump())
    return AthleteResponse.from_entity(athlete)


@router.get("/search", response_model=List[AthleteResponse])
async def search_athletes(
    last_name: Optional[str] = Query(None, alias="lastName"),
    first_name: Optional[str] = Query(None, alias="firstName"),
    email: Optional[str] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    """Prefix search by last name (and optionally first name) or by email."""
    if last_name:
        athletes = await repos.athletes.search_by_name(last_name, first_name)
    elif email:
        athletes = await repos.athletes.search_by_email(email)
    else:
        raise HTTPException(
            status_code=400, detail="Either lastName or email is required"
        )
    return [AthleteResponse.from_entity(a) for a in athletes]


@router.get("/{athlete_id}", response_model=AthleteResponse)
async def get_athlete(
    athlete_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    athlete = await repos.athletes.get_by_id(athlete_id)
    if athlete is None:
        raise NotFoundError("Athlete", athlete_id)
    return AthleteResponse.from_entity(athlete)


@router.patch("/{athlete_id}", response_model=AthleteResponse)
async def update_athlete(
    athlete_id: str,
    patch: AthletePatch,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    athlete = await repos.athletes.update(athlete_id, patch)
    if athlete is None:
        raise NotFoundError("Athlete", athlete_id)
    return AthleteResponse.from_entity(athlete)


@router.delete("/{athlete_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_athlete(
    athlete_id: str,
    hard: bool = Query(False),
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Soft delete by default; ``hard=true`` removes the record."""
    if hard:
        deleted = await repos.athletes.hard_delete(athlete_id)
    else:
        deleted = await repos.athletes.soft_delete(athlete_id) is not None
    if not deleted:
        raise NotFoundError("Athlete", athlete_id)
    return None


# ---------------------------------------------------------------------------
# Check-ins
# ---------------------------------------------------------------------------


@router.get("/{athlete_id}/checkins", response_model=List[CheckInResponse])
async def list_athlete_check_ins(
    athlete_id: str,
    limit: int = Query(50, ge=1, le=1000),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    check_ins = await repos.check_ins.list_for_athlete(athlete_id, limit=limit)
    return [CheckInResponse.from_entity(c, timestamp=c.timestamp) for c in check_ins]


@router.get("/{athlete_id}/checkins/count", response_model=CountResponse)
async def count_athlete_check_ins(
    athlete_id: str,
    host_id: Optional[str] = Query(None, alias="hostId"),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    if host_id:
        count = await repos.check_ins.count_for_athlete_at_host(athlete_id, host_id)
    else:
        count = await repos.check_ins.count_for_athlete(athlete_id)
    return CountResponse(count=count)


@router.get("/{athlete_id}/checkins/status", response_model=CheckInStatusResponse)
async def get_check_in_status(
    athlete_id: str,
    host_id: str = Query(..., alias="hostId"),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    state = await engine.get_check_in_status(repos, athlete_id, host_id)
    return CheckInStatusResponse(
        athlete_id=athlete_id,
        host_id=host_id,
        status=state.status,
        activity_id=state.activity_id,
        timestamp=state.timestamp,
    )


@router.patch("/{athlete_id}/checkins/{timestamp}", response_model=CheckInResponse)
async def update_check_in(
    athlete_id: str,
    timestamp: int,
    payload: CheckInUpdate,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Change the activity of this week's check-in."""
    ctx = await session_context(current_user, repos, payload.host_id)
    check_in = await engine.update_check_in(
        repos, ctx, athlete_id, timestamp, payload.activity_id
    )
    return CheckInResponse.from_entity(check_in, timestamp=check_in.timestamp)


@router.delete(
    "/{athlete_id}/checkins/{timestamp}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_check_in(
    athlete_id: str,
    timestamp: int,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Undo a check-in."""
    check_in = await repos.check_ins.get(athlete_id, timestamp)
    if check_in is None:
        raise NotFoundError("Check-in", f"{athlete_id}/{timestamp}")
    await ensure_host_access(current_user, check_in.host_id, repos)
    await engine.delete_check_in(repos, athlete_id, timestamp)
    return None


# ---------------------------------------------------------------------------
# Disclaimers
# ---------------------------------------------------------------------------


@router.get(
    "/{athlete_id}/disclaimer/{host_id}", response_model=DisclaimerStatusResponse
)
async def get_disclaimer_status(
    athlete_id: str,
    host_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    result = await disclaimers.get_status(repos, athlete_id, host_id)
    return DisclaimerStatusResponse(
        athlete_id=result.athlete_id,
        host_id=result.host_id,
        signed=result.signed,
        signed_at=result.signed_at,
        disclaimer=result.disclaimer,
    )


@router.post("/{athlete_id}/disclaimer", response_model=AthleteResponse)
async def sign_disclaimer(
    athlete_id: str,
    payload: DisclaimerSign,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    athlete = await disclaimers.sign(repos, athlete_id, payload.host_id)
    return AthleteResponse.from_entity(athlete)


# ---------------------------------------------------------------------------
# Pets and rewards
# ---------------------------------------------------------------------------


@router.get("/{athlete_id}/pets", response_model=List[PetResponse])
async def list_athlete_pets(
    athlete_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    pets = await repos.pets.list_by_athlete(athlete_id)
    return [PetResponse.from_entity(p) for p in pets]


@router.get("/{athlete_id}/pets/exists", response_model=ExistsResponse)
async def pet_exists(
    athlete_id: str,
    name: str = Query(..., min_length=1),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    """Case-insensitive check for a pet of this name."""
    exists = await repos.pets.exists_for_athlete(name, athlete_id)
    return ExistsResponse(exists=exists)


@router.get("/{athlete_id}/rewards/claims", response_model=List[RewardClaimResponse])
async def list_athlete_claims(
    athlete_id: str,
    pets_only: bool = Query(False, alias="petsOnly"),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    if pets_only:
        claims = await repos.claims.list_pet_claims_for_athlete(athlete_id)
    else:
        claims = await repos.claims.list_for_athlete(athlete_id)
    return [RewardClaimResponse.from_entity(c, timestamp=c.timestamp) for c in claims]


@router.get("/{athlete_id}/rewards/eligibility", response_model=EligibilityResponse)
async def get_reward_eligibility(
    athlete_id: str,
    host_id: Optional[str] = Query(None, alias="hostId"),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    eligibility = await rewards.get_eligible_rewards(repos, athlete_id, host_id)
    return EligibilityResponse(
        global_rewards=_eligible(eligibility.global_rewards),
        host_rewards=_eligible(eligibility.host_rewards),
    )
