import uuid
from typing import Optional

from libs.common.datetime_utils import epoch_seconds
from services.checkin_service.models import EntityType, LocationEntity
from services.checkin_service.models.keys import (
    HOST_PREFIX,
    LOCATION_PREFIX,
    Index,
    location_indexes,
    location_key,
    type_partition,
)
from services.checkin_service.repositories.base import ItemStore, ItemUpdate
from services.checkin_service.schemas.patches import LocationPatch


class LocationRepository:
    def __init__(self, store: ItemStore):
        self.store = store

    async def create(
        self,
        *,
        host_id: str,
        name: str,
        address: str = "",
        activity_ids: Optional[list[str]] = None,
    ) -> LocationEntity:
        location_id = str(uuid.uuid4())
        now = epoch_seconds()
        key = location_key(location_id)
        location = LocationEntity(
            pk=key.pk,
            sk=key.sk,
            id=location_id,
            created=now,
            updated=now,
            host_id=host_id,
            name=name,
            address=address,
            activity_ids=list(activity_ids or []),
        )
        await self.store.put(
            key,
            EntityType.LOCATION.value,
            location.to_item(),
            location_indexes(host_id, location_id),
        )
        return location

    async def get_by_id(self, location_id: str) -> Optional[LocationEntity]:
        item = await self.store.get(location_key(location_id))
        return LocationEntity.model_validate(item) if item else None

    async def list_by_host(self, host_id: str) -> list[LocationEntity]:
        items = await self.store.query(
            f"{HOST_PREFIX}{host_id}", index=Index.GSI1, begins_with=LOCATION_PREFIX
        )
        return [LocationEntity.model_validate(item) for item in items]

    async def list_all(self) -> list[LocationEntity]:
        items = await self.store.query(
            type_partition(EntityType.LOCATION.value), index=Index.GSI2
        )
        return [LocationEntity.model_validate(item) for item in items]

    async def update(
        self, location_id: str, patch: LocationPatch
    ) -> Optional[LocationEntity]:
        fields = patch.stored_fields()
        fields["u"] = epoch_seconds()
        item = await self.store.update(
            location_key(location_id), ItemUpdate(set=fields)
        )
        return LocationEntity.model_validate(item) if item else None

    async def delete(self, location_id: str) -> bool:
        return await self.store.delete(location_key(location_id))

    async def set_activity_ids(
        self, location_id: str, activity_ids: list[str]
    ) -> Optional[LocationEntity]:
        item = await self.store.update(
            location_key(location_id),
            ItemUpdate(set={"acts": list(activity_ids), "u": epoch_seconds()}),
        )
        return LocationEntity.model_validate(item) if item else None

    async def add_activity(
        self, location_id: str, activity_id: str
    ) -> Optional[LocationEntity]:
        """Append an activity ID; a no-op when it is already assigned.

        The three-activity limit is enforced by the caller.
        """

        def change(item):
            current = list(item.get("acts") or [])
            if activity_id in current:
                return None
            return ItemUpdate(
                set={"acts": current + [activity_id], "u": epoch_seconds()}
            )

        item = await self.store.update_with(location_key(location_id), change)
        return LocationEntity.model_validate(item) if item else None

    async def remove_activity(
        self, location_id: str, activity_id: str
    ) -> Optional[LocationEntity]:
        def change(item):
            current = list(item.get("acts") or [])
            if activity_id not in current:
                return None
            remaining = [a for a in current if a != activity_id]
            return ItemUpdate(set={"acts": remaining, "u": epoch_seconds()})

        item = await self.store.update_with(location_key(location_id), change)
        return LocationEntity.model_validate(item) if item else None
