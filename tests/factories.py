"""
Factories for creating valid test data.

Entities are written through the repositories, so every factory is async and
takes the ``repos`` fixture. Override any field via kwargs.

Usage:
    host, location = await HostFactory.create(repos, name="Trailhead")
    athlete = await AthleteFactory.create(repos, sign_for=[host.id])
"""

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _hex() -> str:
    return uuid.uuid4().hex[:8]


def _unique_email() -> str:
    return f"test-{_hex()}@test.com"


def at(year: int, month: int, day: int, hour: int = 12) -> datetime:
    """A fixed UTC moment, for tests that depend on the calendar week."""
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def make_super_admin(user_id: str = "admin-user") -> AuthUser:
    return AuthUser(
        user_id=user_id,
        email="admin@test.com",
        groups=[get_settings().SUPER_ADMIN_GROUP],
    )


def make_host_user(user_id: str = None) -> AuthUser:
    return AuthUser(
        user_id=user_id or f"host-{_hex()}",
        email=_unique_email(),
        groups=[get_settings().HOST_GROUP],
    )


def make_athlete_user(user_id: str = None) -> AuthUser:
    """An authenticated caller outside every privileged group."""
    return AuthUser(user_id=user_id or f"user-{_hex()}", email=_unique_email())


@contextmanager
def override_auth(app, user: AuthUser):
    """Run requests as ``user`` for the duration of the block."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ActivityFactory:
    @staticmethod
    async def create(repos, **overrides):
        defaults = {"name": f"Activity {_hex()}", "icon": "waves", "enabled": True}
        defaults.update(overrides)
        return await repos.activities.create(**defaults)


class HostFactory:
    @staticmethod
    async def create(repos, activities=None, **overrides):
        """Create a host with its main location; returns ``(host, location)``.

        ``activities`` are assigned to the main location.
        """
        from services.checkin_service.services import admin

        defaults = {
            "name": "Test Host",
            "identity_ref": f"idp-{_hex()}",
            "email": _unique_email(),
            "admin_passphrase": "open-sesame",
            "disclaimer": "Participate at your own risk.",
        }
        defaults.update(overrides)
        host, location = await admin.create_host(repos, **defaults)
        if activities:
            location = await repos.locations.set_activity_ids(
                location.id, [a.id for a in activities]
            )
        return host, location


# ---------------------------------------------------------------------------
# Athletes and pets
# ---------------------------------------------------------------------------


class AthleteFactory:
    @staticmethod
    async def create(repos, sign_for=(), **overrides):
        """Create an athlete; ``sign_for`` lists host IDs whose disclaimer is signed."""
        defaults = {
            "first_name": "Test",
            "last_name": f"Athlete{_hex()}",
            "email": _unique_email(),
        }
        defaults.update(overrides)
        athlete = await repos.athletes.create(**defaults)
        for host_id in sign_for:
            athlete = await repos.athletes.add_disclaimer_signature(
                athlete.id, host_id
            )
        return athlete


class PetFactory:
    @staticmethod
    async def create(repos, athlete_id, **overrides):
        defaults = {"name": f"Pet {_hex()}"}
        defaults.update(overrides)
        return await repos.pets.create(athlete_id=athlete_id, **defaults)


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


class RewardFactory:
    @staticmethod
    async def create(repos, **overrides):
        from services.checkin_service.models import RewardType

        defaults = {
            "count": 8,
            "name": f"Reward {_hex()}",
            "icon": "emoji_events",
            "reward_type": RewardType.GLOBAL,
        }
        defaults.update(overrides)
        return await repos.rewards.create(**defaults)
