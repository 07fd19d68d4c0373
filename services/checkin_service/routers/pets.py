from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import get_current_user, require_super_admin
from libs.auth.models import AuthUser
from services.checkin_service.errors import NotFoundError
from services.checkin_service.repositories import (
    Repositories,
    decode_cursor,
    encode_cursor,
    get_repositories,
)
from services.checkin_service.schemas import (
    CountResponse,
    EligibleRewardResponse,
    PetCheckInResponse,
    PetCreate,
    PetPage,
    PetPatch,
    PetResponse,
)
from services.checkin_service.services import rewards

router = APIRouter(tags=["pets"])


@router.get("", response_model=PetPage)
async def list_pets(
    limit: int = Query(50, ge=1, le=500),
    cursor: Optional[str] = Query(None),
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    try:
        start_after = decode_cursor(cursor)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    page = await repos.pets.list_page(limit=limit, start_after=start_after)
    return PetPage(
        items=[PetResponse.from_entity(p) for p in page.items],
        next_cursor=encode_cursor(page.last_key),
    )


@router.post("", response_model=PetResponse, status_code=status.HTTP_201_CREATED)
async def create_pet(
    payload: PetCreate,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    if await repos.athletes.get_by_id(payload.athlete_id) is None:
        raise NotFoundError("Athlete", payload.athlete_id)
    pet = await repos.pets.create(athlete_id=payload.athlete_id, name=payload.name)
    return PetResponse.from_entity(pet)


@router.get("/{pet_id}", response_model=PetResponse)
async def get_pet(
    pet_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    pet = await repos.pets.get_by_id(pet_id)
    if pet is None:
        raise NotFoundError("Pet", pet_id)
    return PetResponse.from_entity(pet)


@router.patch("/{pet_id}", response_model=PetResponse)
async def update_pet(
    pet_id: str,
    patch: PetPatch,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    pet = await repos.pets.update(pet_id, patch)
    if pet is None:
        raise NotFoundError("Pet", pet_id)
    return PetResponse.from_entity(pet)


@router.delete("/{pet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pet(
    pet_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    if not await repos.pets.delete(pet_id):
        raise NotFoundError("Pet", pet_id)
    return None


@router.get("/{pet_id}/checkins", response_model=List[PetCheckInResponse])
async def list_pet_check_ins(
    pet_id: str,
    limit: int = Query(50, ge=1, le=1000),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    check_ins = await repos.check_ins.list_for_pet(pet_id, limit=limit)
    return [
        PetCheckInResponse.from_entity(c, timestamp=c.timestamp) for c in check_ins
    ]


@router.get("/{pet_id}/checkins/count", response_model=CountResponse)
async def count_pet_check_ins(
    pet_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    return CountResponse(count=await repos.check_ins.count_for_pet(pet_id))


@router.get(
    "/{pet_id}/rewards/eligibility", response_model=List[EligibleRewardResponse]
)
async def get_pet_reward_eligibility(
    pet_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    eligible = await rewards.get_pet_eligible_rewards(repos, pet_id)
    return [
        EligibleRewardResponse(
            reward_id=e.reward.id,
            name=e.reward.name,
            count=e.reward.count,
            current_count=e.current_count,
        )
        for e in eligible
    ]
