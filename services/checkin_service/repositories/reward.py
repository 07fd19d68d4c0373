import uuid
from typing import Optional

from libs.common.datetime_utils import epoch_seconds
from libs.common.logging import get_logger
from services.checkin_service.models import EntityType, RewardEntity, RewardType
from services.checkin_service.models.keys import (
    HOST_PREFIX,
    REWARD_PREFIX,
    Index,
    reward_catalog_partition,
    reward_indexes,
    reward_key,
)
from services.checkin_service.repositories.base import ItemStore, ItemUpdate
from services.checkin_service.schemas.patches import RewardPatch

logger = get_logger(__name__)

DEFAULT_GLOBAL_REWARDS = [
    (8, "Tier 1 Reward", "checkroom"),
    (30, "Tier 2 Reward", "dry_cleaning"),
    (60, "Tier 3 Reward", "emoji_events"),
]
DEFAULT_PET_REWARDS = [
    (8, "Pet Reward", "pets"),
]


class RewardRepository:
    def __init__(self, store: ItemStore):
        self.store = store

    async def create(
        self,
        *,
        count: int,
        name: str,
        reward_type: RewardType,
        icon: str = "",
        host_id: Optional[str] = None,
    ) -> RewardEntity:
        reward_id = str(uuid.uuid4())
        now = epoch_seconds()
        key = reward_key(reward_id)
        reward = RewardEntity(
            pk=key.pk,
            sk=key.sk,
            id=reward_id,
            created=now,
            updated=now,
            count=count,
            name=name,
            icon=icon,
            reward_type=reward_type,
            host_id=host_id if reward_type == RewardType.HOST else None,
        )
        await self.store.put(
            key,
            EntityType.REWARD.value,
            reward.to_item(),
            reward_indexes(reward_id, reward_type, host_id),
        )
        return reward

    async def get_by_id(self, reward_id: str) -> Optional[RewardEntity]:
        item = await self.store.get(reward_key(reward_id))
        return RewardEntity.model_validate(item) if item else None

    async def _list_catalog(self, reward_type: RewardType) -> list[RewardEntity]:
        items = await self.store.query(
            reward_catalog_partition(reward_type), index=Index.GSI1
        )
        return [RewardEntity.model_validate(item) for item in items]

    async def list_global(self) -> list[RewardEntity]:
        return await self._list_catalog(RewardType.GLOBAL)

    async def list_pet(self) -> list[RewardEntity]:
        return await self._list_catalog(RewardType.PET)

    async def list_for_host(self, host_id: str) -> list[RewardEntity]:
        items = await self.store.query(
            f"{HOST_PREFIX}{host_id}", index=Index.GSI1, begins_with=REWARD_PREFIX
        )
        return [RewardEntity.model_validate(item) for item in items]

    async def list_all(self) -> list[RewardEntity]:
        """Global and pet catalogs plus every host's rewards."""
        items = await self.store.scan(EntityType.REWARD.value)
        rewards = [RewardEntity.model_validate(item) for item in items]
        return sorted(rewards, key=lambda r: (r.reward_type.value, r.count, r.name))

    async def update(
        self, reward_id: str, patch: RewardPatch
    ) -> Optional[RewardEntity]:
        fields = patch.stored_fields()
        fields["u"] = epoch_seconds()
        item = await self.store.update(reward_key(reward_id), ItemUpdate(set=fields))
        return RewardEntity.model_validate(item) if item else None

    async def delete(self, reward_id: str) -> bool:
        return await self.store.delete(reward_key(reward_id))

    async def _seed(self, reward_type: RewardType, defaults) -> list[RewardEntity]:
        existing = await self._list_catalog(reward_type)
        if existing:
            return existing

        created = []
        for count, name, icon in defaults:
            created.append(
                await self.create(
                    count=count, name=name, icon=icon, reward_type=reward_type
                )
            )
        logger.info("Seeded %d default %s rewards", len(created), reward_type.value)
        return created

    async def create_default_global_if_none(self) -> list[RewardEntity]:
        return await self._seed(RewardType.GLOBAL, DEFAULT_GLOBAL_REWARDS)

    async def create_default_pet_if_none(self) -> list[RewardEntity]:
        return await self._seed(RewardType.PET, DEFAULT_PET_REWARDS)
