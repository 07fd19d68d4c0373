from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user, require_host_or_super_admin
from libs.auth.models import AuthUser
from services.checkin_service.repositories import Repositories, get_repositories
from services.checkin_service.routers.access import session_context
from services.checkin_service.schemas import CheckInCreate, CheckInResponse
from services.checkin_service.services import checkins as engine

router = APIRouter(tags=["checkins"])


@router.post("", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def create_check_in(
    payload: CheckInCreate,
    current_user: AuthUser = Depends(require_host_or_super_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Record this week's check-in for an athlete at the caller's host."""
    ctx = await session_context(
        current_user, repos, payload.host_id, payload.location_id
    )
    check_in = await engine.create_check_in(
        repos, ctx, payload.athlete_id, payload.activity_id
    )
    return CheckInResponse.from_entity(check_in, timestamp=check_in.timestamp)


@router.get("", response_model=List[CheckInResponse])
async def list_check_ins_by_date(
    day: date = Query(..., alias="date"),
    limit: int = Query(100, ge=1, le=1000),
    current_user: AuthUser = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    """All check-ins recorded on one calendar day, across hosts."""
    check_ins = await repos.check_ins.list_by_date(day.isoformat(), limit=limit)
    return [CheckInResponse.from_entity(c, timestamp=c.timestamp) for c in check_ins]
