"""Host-scoped authorization on top of the identity provider's groups."""

from typing import Optional

from libs.auth.models import AuthUser
from services.checkin_service.errors import AccessDenied
from services.checkin_service.models import HostEntity, LocationEntity
from services.checkin_service.repositories import Repositories
from services.checkin_service.services.context import SessionContext


async def resolve_own_host(user: AuthUser, repos: Repositories) -> HostEntity:
    host = await repos.hosts.get_by_identity_ref(user.user_id)
    if host is None:
        raise AccessDenied("No host is linked to this account")
    return host


async def ensure_host_access(
    user: AuthUser, host_id: str, repos: Repositories
) -> None:
    """Super-admins act on any host; host users only on their own."""
    if user.is_super_admin:
        return
    if not user.is_host:
        raise AccessDenied("Insufficient permissions")
    host = await resolve_own_host(user, repos)
    if host.id != host_id:
        raise AccessDenied("Insufficient permissions")


async def ensure_location_access(
    user: AuthUser, location: LocationEntity, repos: Repositories
) -> None:
    await ensure_host_access(user, location.host_id, repos)


async def session_context(
    user: AuthUser,
    repos: Repositories,
    host_id: str,
    location_id: Optional[str] = None,
) -> SessionContext:
    """Authorize the caller for ``host_id`` and build the session context."""
    await ensure_host_access(user, host_id, repos)
    return SessionContext(
        host_id=host_id, location_id=location_id, actor_id=user.user_id
    )
