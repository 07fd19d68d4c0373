from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_host_or_super_admin, require_super_admin
from libs.auth.models import AuthUser
from services.checkin_service.errors import NotFoundError
from services.checkin_service.repositories import Repositories, get_repositories
from services.checkin_service.routers.access import ensure_host_access, resolve_own_host
from services.checkin_service.schemas import (
    CheckInResponse,
    CustomRewardCreate,
    HostCreate,
    HostCreateResponse,
    HostPatch,
    HostResponse,
    LocationCreate,
    LocationResponse,
    OneAwayEntryResponse,
    OneAwayResponse,
    PassphraseResult,
    PassphraseVerify,
    PetCheckInResponse,
    RewardClaimResponse,
    RewardResponse,
)
from services.checkin_service.services import admin, rewards

router = APIRouter(tags=["hosts"])


async def _require_host(repos: Repositories, host_id: str):
    host = await repos.hosts.get_by_id(host_id)
    if host is None:
        raise NotFoundError("Host", host_id)
    return host


@router.get("", response_model=List[HostResponse])
async def list_hosts(
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    return [HostResponse.from_entity(h) for h in await repos.hosts.list_all()]


@router.post("", response_model=HostCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_host(
    payload: HostCreate,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Create a host and its "Main Location"."""
    host, location = await admin.create_host(
        repos,
        name=payload.name,
        identity_ref=payload.identity_ref,
        email=payload.email,
        admin_passphrase=payload.admin_passphrase,
        disclaimer=payload.disclaimer,
    )
    return HostCreateResponse(
        host=HostResponse.from_entity(host),
        location=LocationResponse.from_entity(location),
    )


@router.get("/me", response_model=HostResponse)
async def get_my_host(
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """The host linked to the caller's identity."""
    return HostResponse.from_entity(await resolve_own_host(current_user, repos))


@router.get("/{host_id}", response_model=HostResponse)
async def get_host(
    host_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    return HostResponse.from_entity(await _require_host(repos, host_id))


@router.patch("/{host_id}", response_model=HostResponse)
async def update_host(
    host_id: str,
    patch: HostPatch,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    host = await repos.hosts.update(host_id, patch)
    if host is None:
        raise NotFoundError("Host", host_id)
    return HostResponse.from_entity(host)


@router.delete("/{host_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_host(
    host_id: str,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    if not await repos.hosts.delete(host_id):
        raise NotFoundError("Host", host_id)
    return None


@router.post("/{host_id}/verify-passphrase", response_model=PassphraseResult)
async def verify_passphrase(
    host_id: str,
    payload: PassphraseVerify,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Unlock the host's admin screens."""
    await ensure_host_access(current_user, host_id, repos)
    valid = await admin.verify_host_passphrase(repos, host_id, payload.passphrase)
    return PassphraseResult(valid=valid)


# ---------------------------------------------------------------------------
# Legacy custom rewards embedded on the host
# ---------------------------------------------------------------------------


@router.post("/{host_id}/custom-rewards", response_model=HostResponse)
async def add_custom_reward(
    host_id: str,
    payload: CustomRewardCreate,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    host = await repos.hosts.add_custom_reward(
        host_id, count=payload.count, name=payload.name, icon=payload.icon
    )
    if host is None:
        raise NotFoundError("Host", host_id)
    return HostResponse.from_entity(host)


@router.delete("/{host_id}/custom-rewards/{reward_id}", response_model=HostResponse)
async def remove_custom_reward(
    host_id: str,
    reward_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    host = await repos.hosts.remove_custom_reward(host_id, reward_id)
    if host is None:
        raise NotFoundError("Host", host_id)
    return HostResponse.from_entity(host)


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@router.get("/{host_id}/locations", response_model=List[LocationResponse])
async def list_host_locations(
    host_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    locations = await repos.locations.list_by_host(host_id)
    return [LocationResponse.from_entity(loc) for loc in locations]


@router.post(
    "/{host_id}/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_host_location(
    host_id: str,
    payload: LocationCreate,
    current_user: AuthUser = Depends(require_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    location = await admin.create_location(
        repos,
        host_id,
        name=payload.name,
        address=payload.address,
        activity_ids=payload.activity_ids,
    )
    return LocationResponse.from_entity(location)


# ---------------------------------------------------------------------------
# Activity feeds
# ---------------------------------------------------------------------------


@router.get("/{host_id}/checkins/recent", response_model=List[CheckInResponse])
async def list_recent_check_ins(
    host_id: str,
    limit: int = Query(50, ge=1, le=1000),
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    check_ins = await repos.check_ins.list_for_host(host_id, limit=limit)
    return [CheckInResponse.from_entity(c, timestamp=c.timestamp) for c in check_ins]


@router.get("/{host_id}/pet-checkins", response_model=List[PetCheckInResponse])
async def list_pet_check_ins(
    host_id: str,
    limit: int = Query(50, ge=1, le=1000),
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    check_ins = await repos.check_ins.list_pet_for_host(host_id, limit=limit)
    return [
        PetCheckInResponse.from_entity(c, timestamp=c.timestamp) for c in check_ins
    ]


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


@router.get("/{host_id}/rewards", response_model=List[RewardResponse])
async def list_host_rewards(
    host_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    host_rewards = await repos.rewards.list_for_host(host_id)
    return [RewardResponse.from_entity(r) for r in host_rewards]


@router.get("/{host_id}/rewards/claims", response_model=List[RewardClaimResponse])
async def list_host_claims(
    host_id: str,
    recent: bool = Query(False),
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Claims handed out at the host, newest first; ``recent`` keeps the last 24 h."""
    await ensure_host_access(current_user, host_id, repos)
    if recent:
        claims = await repos.claims.list_recent_for_host(host_id)
    else:
        claims = await repos.claims.list_for_host(host_id)
    return [RewardClaimResponse.from_entity(c, timestamp=c.timestamp) for c in claims]


@router.get("/{host_id}/rewards/one-away", response_model=OneAwayResponse)
async def get_one_away_athletes(
    host_id: str,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    await ensure_host_access(current_user, host_id, repos)
    report = await rewards.get_one_away_athletes(repos, host_id)
    return OneAwayResponse(
        global_one_away=[
            OneAwayEntryResponse(**asdict(entry))
            for entry in report.global_one_away
        ],
        host_one_away=[
            OneAwayEntryResponse(**asdict(entry))
            for entry in report.host_one_away
        ],
    )
