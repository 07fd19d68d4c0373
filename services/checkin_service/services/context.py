from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionContext:
    """Who is acting, on behalf of which host, at which location.

    Built per request from the route and body and passed into every core
    call; the core never reads session state from anywhere else.
    """

    host_id: str
    location_id: Optional[str] = None
    actor_id: Optional[str] = None

    def with_location(self, location_id: str) -> "SessionContext":
        return SessionContext(self.host_id, location_id, self.actor_id)
