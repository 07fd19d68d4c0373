import uuid
from datetime import timedelta
from typing import Optional

from libs.common.datetime_utils import epoch_millis
from services.checkin_service.models import EntityType, RewardClaimEntity
from services.checkin_service.models.keys import (
    ATHLETE_PREFIX,
    HOST_PREFIX,
    REWARD_CLAIM_TAG,
    Index,
    event_sort_key,
    reward_claim_indexes,
    reward_claim_key,
)
from services.checkin_service.repositories.base import ItemStore

RECENT_WINDOW = timedelta(hours=24)


class RewardClaimRepository:
    """Append-only record of rewards handed out.

    Nothing here checks for an earlier claim of the same reward.
    """

    def __init__(self, store: ItemStore):
        self.store = store

    async def create(
        self,
        *,
        athlete_id: str,
        reward_id: str,
        host_id: str,
        location_id: str,
        pet_id: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> RewardClaimEntity:
        timestamp = timestamp or epoch_millis()
        key = reward_claim_key(athlete_id, timestamp, reward_id)
        claim = RewardClaimEntity(
            pk=key.pk,
            sk=key.sk,
            id=str(uuid.uuid4()),
            created=timestamp,
            updated=timestamp,
            athlete_id=athlete_id,
            reward_id=reward_id,
            host_id=host_id,
            location_id=location_id,
            pet_id=pet_id,
        )
        await self.store.put(
            key,
            EntityType.REWARD_CLAIM.value,
            claim.to_item(),
            reward_claim_indexes(host_id, timestamp),
        )
        return claim

    async def list_for_athlete(self, athlete_id: str) -> list[RewardClaimEntity]:
        items = await self.store.query(
            f"{ATHLETE_PREFIX}{athlete_id}",
            begins_with=REWARD_CLAIM_TAG,
            descending=True,
        )
        return [RewardClaimEntity.model_validate(item) for item in items]

    async def list_pet_claims_for_athlete(
        self, athlete_id: str
    ) -> list[RewardClaimEntity]:
        claims = await self.list_for_athlete(athlete_id)
        return [claim for claim in claims if claim.pet_id]

    async def list_for_host(
        self, host_id: str, limit: Optional[int] = 50
    ) -> list[RewardClaimEntity]:
        items = await self.store.query(
            f"{HOST_PREFIX}{host_id}",
            index=Index.GSI1,
            begins_with=REWARD_CLAIM_TAG,
            descending=True,
            limit=limit,
        )
        return [RewardClaimEntity.model_validate(item) for item in items]

    async def list_recent_for_host(
        self, host_id: str, now_ms: Optional[int] = None
    ) -> list[RewardClaimEntity]:
        """Claims recorded at the host during the last 24 hours."""
        now_ms = now_ms or epoch_millis()
        since = now_ms - int(RECENT_WINDOW.total_seconds() * 1000)
        items = await self.store.query(
            f"{HOST_PREFIX}{host_id}",
            index=Index.GSI1,
            begins_with=REWARD_CLAIM_TAG,
            greater_than=event_sort_key(REWARD_CLAIM_TAG, since),
            descending=True,
        )
        return [RewardClaimEntity.model_validate(item) for item in items]

    async def list_for_reward(self, reward_id: str) -> list[RewardClaimEntity]:
        items = await self.store.scan(EntityType.REWARD_CLAIM.value)
        return [
            RewardClaimEntity.model_validate(item)
            for item in items
            if item.get("rid") == reward_id
        ]

    async def list_all(self, limit: Optional[int] = 100) -> list[RewardClaimEntity]:
        items = await self.store.scan(EntityType.REWARD_CLAIM.value, limit=limit)
        return [RewardClaimEntity.model_validate(item) for item in items]

    async def delete(self, athlete_id: str, timestamp: int, reward_id: str) -> bool:
        return await self.store.delete(
            reward_claim_key(athlete_id, timestamp, reward_id)
        )
