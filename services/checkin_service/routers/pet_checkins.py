from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_host_or_super_admin
from libs.auth.models import AuthUser
from services.checkin_service.errors import NotFoundError
from services.checkin_service.repositories import Repositories, get_repositories
from services.checkin_service.routers.access import ensure_host_access, session_context
from services.checkin_service.schemas import PetCheckInCreate, PetCheckInResponse
from services.checkin_service.services import checkins as engine

router = APIRouter(tags=["pet-checkins"])


@router.post(
    "", response_model=PetCheckInResponse, status_code=status.HTTP_201_CREATED
)
async def create_pet_check_in(
    payload: PetCheckInCreate,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    ctx = await session_context(
        current_user, repos, payload.host_id, payload.location_id
    )
    pet_check_in = await engine.create_pet_check_in(
        repos, ctx, payload.athlete_id, payload.pet_id
    )
    return PetCheckInResponse.from_entity(
        pet_check_in, timestamp=pet_check_in.timestamp
    )


@router.delete("/{pet_id}/{timestamp}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pet_check_in(
    pet_id: str,
    timestamp: int,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    pet_check_in = await repos.check_ins.get_pet(pet_id, timestamp)
    if pet_check_in is None:
        raise NotFoundError("Pet check-in", f"{pet_id}/{timestamp}")
    await ensure_host_access(current_user, pet_check_in.host_id, repos)
    await engine.delete_pet_check_in(repos, pet_id, timestamp)
    return None
