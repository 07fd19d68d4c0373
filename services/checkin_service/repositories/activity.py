import uuid
from typing import Optional

from libs.common.datetime_utils import epoch_seconds
from libs.common.logging import get_logger
from services.checkin_service.models import ActivityEntity, EntityType
from services.checkin_service.models.keys import (
    Index,
    activity_indexes,
    activity_key,
    type_partition,
)
from services.checkin_service.repositories.base import ItemStore, ItemUpdate
from services.checkin_service.schemas.patches import ActivityPatch

logger = get_logger(__name__)

DEFAULT_ACTIVITIES = [
    ("Bike", "directions_bike"),
    ("Shoe", "directions_walk"),
    ("Snow", "ac_unit"),
    ("Water", "waves"),
]


class ActivityRepository:
    def __init__(self, store: ItemStore):
        self.store = store

    async def create(
        self, *, name: str, icon: str = "", enabled: bool = True
    ) -> ActivityEntity:
        activity_id = str(uuid.uuid4())
        now = epoch_seconds()
        key = activity_key(activity_id)
        activity = ActivityEntity(
            pk=key.pk,
            sk=key.sk,
            id=activity_id,
            created=now,
            updated=now,
            name=name,
            icon=icon,
            enabled=enabled,
        )
        await self.store.put(
            key,
            EntityType.ACTIVITY.value,
            activity.to_item(),
            activity_indexes(activity_id),
        )
        return activity

    async def get_by_id(self, activity_id: str) -> Optional[ActivityEntity]:
        item = await self.store.get(activity_key(activity_id))
        return ActivityEntity.model_validate(item) if item else None

    async def get_many(self, activity_ids: list[str]) -> list[ActivityEntity]:
        """Fetch activities by ID, silently dropping IDs that do not resolve."""
        found = []
        for activity_id in activity_ids:
            activity = await self.get_by_id(activity_id)
            if activity:
                found.append(activity)
        return found

    async def list_all(self, include_disabled: bool = False) -> list[ActivityEntity]:
        items = await self.store.query(
            type_partition(EntityType.ACTIVITY.value), index=Index.GSI1
        )
        activities = [ActivityEntity.model_validate(item) for item in items]
        if not include_disabled:
            activities = [a for a in activities if a.enabled]
        return activities

    async def update(
        self, activity_id: str, patch: ActivityPatch
    ) -> Optional[ActivityEntity]:
        fields = patch.stored_fields()
        fields["u"] = epoch_seconds()
        item = await self.store.update(
            activity_key(activity_id), ItemUpdate(set=fields)
        )
        return ActivityEntity.model_validate(item) if item else None

    async def enable(self, activity_id: str) -> Optional[ActivityEntity]:
        return await self.update(activity_id, ActivityPatch(enabled=True))

    async def disable(self, activity_id: str) -> Optional[ActivityEntity]:
        return await self.update(activity_id, ActivityPatch(enabled=False))

    async def delete(self, activity_id: str) -> bool:
        return await self.store.delete(activity_key(activity_id))

    async def create_defaults_if_none(self) -> list[ActivityEntity]:
        existing = await self.list_all(include_disabled=True)
        if existing:
            return existing

        created = []
        for name, icon in DEFAULT_ACTIVITIES:
            created.append(await self.create(name=name, icon=icon))
        logger.info("Seeded %d default activities", len(created))
        return created
