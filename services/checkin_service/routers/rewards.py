from typing import List

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import (
    get_current_user,
    require_host_or_super_admin,
    require_super_admin,
)
from libs.auth.models import AuthUser
from services.checkin_service.errors import AccessDenied, NotFoundError
from services.checkin_service.models import RewardType
from services.checkin_service.repositories import Repositories, get_repositories
from services.checkin_service.routers.access import ensure_host_access, session_context
from services.checkin_service.schemas import (
    RewardClaimCreate,
    RewardClaimResponse,
    RewardCreate,
    RewardPatch,
    RewardResponse,
)
from services.checkin_service.services import rewards as reward_engine

router = APIRouter(tags=["rewards"])


async def _require_reward_access(
    reward_id: str, current_user: AuthUser, repos: Repositories
):
    """Host rewards are managed by their host; the catalogs by super-admins."""
    reward = await repos.rewards.get_by_id(reward_id)
    if reward is None:
        raise NotFoundError("Reward", reward_id)
    if reward.reward_type == RewardType.HOST and reward.host_id:
        await ensure_host_access(current_user, reward.host_id, repos)
    elif not current_user.is_super_admin:
        raise AccessDenied("Only super-admins manage shared reward catalogs")
    return reward


@router.get("", response_model=List[RewardResponse])
async def list_rewards(
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    return [RewardResponse.from_entity(r) for r in await repos.rewards.list_all()]


@router.post("", response_model=RewardResponse, status_code=status.HTTP_201_CREATED)
async def create_reward(
    payload: RewardCreate,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    if payload.reward_type == RewardType.HOST and payload.host_id:
        await ensure_host_access(current_user, payload.host_id, repos)
    elif not current_user.is_super_admin:
        raise AccessDenied("Only super-admins manage shared reward catalogs")
    reward = await reward_engine.create_reward(
        repos,
        reward_type=payload.reward_type,
        count=payload.count,
        name=payload.name,
        icon=payload.icon,
        host_id=payload.host_id,
    )
    return RewardResponse.from_entity(reward)


@router.post("/defaults", response_model=List[RewardResponse])
async def create_default_rewards(
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Seed the global and pet tiers when those catalogs are empty."""
    created = await repos.rewards.create_default_global_if_none()
    created += await repos.rewards.create_default_pet_if_none()
    return [RewardResponse.from_entity(r) for r in created]


@router.get("/global", response_model=List[RewardResponse])
async def list_global_rewards(
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    return [RewardResponse.from_entity(r) for r in await repos.rewards.list_global()]


@router.get("/pet", response_model=List[RewardResponse])
async def list_pet_rewards(
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    return [RewardResponse.from_entity(r) for r in await repos.rewards.list_pet()]


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


@router.post(
    "/claims", response_model=RewardClaimResponse, status_code=status.HTTP_201_CREATED
)
async def create_reward_claim(
    payload: RewardClaimCreate,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Record a reward handed out. Repeated claims are accepted."""
    ctx = await session_context(
        current_user, repos, payload.host_id, payload.location_id
    )
    claim = await reward_engine.create_reward_claim(
        repos, ctx, payload.athlete_id, payload.reward_id, payload.pet_id
    )
    return RewardClaimResponse.from_entity(claim, timestamp=claim.timestamp)


@router.delete(
    "/claims/{athlete_id}/{timestamp}/{reward_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_reward_claim(
    athlete_id: str,
    timestamp: int,
    reward_id: str,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await reward_engine.delete_reward_claim(repos, athlete_id, timestamp, reward_id)
    return None


# ---------------------------------------------------------------------------
# Single reward
# ---------------------------------------------------------------------------


@router.get("/{reward_id}", response_model=RewardResponse)
async def get_reward(
    reward_id: str,
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    reward = await repos.rewards.get_by_id(reward_id)
    if reward is None:
        raise NotFoundError("Reward", reward_id)
    return RewardResponse.from_entity(reward)


@router.patch("/{reward_id}", response_model=RewardResponse)
async def update_reward(
    reward_id: str,
    patch: RewardPatch,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await _require_reward_access(reward_id, current_user, repos)
    reward = await repos.rewards.update(reward_id, patch)
    if reward is None:
        raise NotFoundError("Reward", reward_id)
    return RewardResponse.from_entity(reward)


@router.delete("/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reward(
    reward_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await _require_reward_access(reward_id, current_user, repos)
    await repos.rewards.delete(reward_id)
    return None


@router.get("/{reward_id}/claims", response_model=List[RewardClaimResponse])
async def list_reward_claims(
    reward_id: str,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    claims = await repos.claims.list_for_reward(reward_id)
    return [RewardClaimResponse.from_entity(c, timestamp=c.timestamp) for c in claims]
