"""Seed the shared catalogs: default activities and reward tiers.

Run with ``python -m services.checkin_service.seed``. Each catalog is only
seeded when it is empty, so running it twice is harmless.
"""
import asyncio

from libs.common.logging import configure_logging, get_logger
from libs.db.config import AsyncSessionLocal, engine
from libs.db.base import Base
from services.checkin_service.models import TableItem  # noqa: F401
from services.checkin_service.repositories import Repositories

logger = get_logger(__name__)


async def seed_defaults() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        repos = Repositories.from_session(db)
        activities = await repos.activities.create_defaults_if_none()
        global_rewards = await repos.rewards.create_default_global_if_none()
        pet_rewards = await repos.rewards.create_default_pet_if_none()
        logger.info(
            "Catalogs ready: %d activities, %d global rewards, %d pet rewards",
            len(activities),
            len(global_rewards),
            len(pet_rewards),
        )

    await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed_defaults())
