import uuid
from typing import Optional

from libs.common.datetime_utils import epoch_seconds
from services.checkin_service.models import EntityType, HostEntity, HostReward
from services.checkin_service.models.keys import (
    IDENTITY_PREFIX,
    Index,
    host_indexes,
    host_key,
    type_partition,
)
from services.checkin_service.repositories.base import ItemStore, ItemUpdate
from services.checkin_service.schemas.patches import HostPatch


class HostRepository:
    def __init__(self, store: ItemStore):
        self.store = store

    async def create(
        self,
        *,
        name: str,
        identity_ref: str,
        email: str = "",
        admin_passphrase: str = "",
        disclaimer: str = "",
        host_id: Optional[str] = None,
    ) -> HostEntity:
        host_id = host_id or str(uuid.uuid4())
        now = epoch_seconds()
        key = host_key(host_id)
        host = HostEntity(
            pk=key.pk,
            sk=key.sk,
            id=host_id,
            created=now,
            updated=now,
            name=name,
            email=email,
            identity_ref=identity_ref,
            admin_passphrase=admin_passphrase,
            location_ids=[],
            disclaimer=disclaimer,
            custom_rewards=[],
        )
        await self.store.put(
            key, EntityType.HOST.value, host.to_item(), host_indexes(identity_ref)
        )
        return host

    async def get_by_id(self, host_id: str) -> Optional[HostEntity]:
        item = await self.store.get(host_key(host_id))
        return HostEntity.model_validate(item) if item else None

    async def list_all(self) -> list[HostEntity]:
        items = await self.store.query(
            type_partition(EntityType.HOST.value), index=Index.GSI1
        )
        return [HostEntity.model_validate(item) for item in items]

    async def get_by_identity_ref(self, identity_ref: str) -> Optional[HostEntity]:
        """Resolve the host record owned by an identity-provider user."""
        items = await self.store.query(
            type_partition(EntityType.HOST.value),
            index=Index.GSI1,
            equals=f"{IDENTITY_PREFIX}{identity_ref}",
            limit=1,
        )
        return HostEntity.model_validate(items[0]) if items else None

    async def update(self, host_id: str, patch: HostPatch) -> Optional[HostEntity]:
        fields = patch.stored_fields()
        fields["u"] = epoch_seconds()
        item = await self.store.update(host_key(host_id), ItemUpdate(set=fields))
        return HostEntity.model_validate(item) if item else None

    async def delete(self, host_id: str) -> bool:
        return await self.store.delete(host_key(host_id))

    async def _update_lists(self, host_id: str, build) -> Optional[HostEntity]:
        def change(item):
            host = HostEntity.model_validate(item)
            return ItemUpdate(set={**build(host), "u": epoch_seconds()})

        item = await self.store.update_with(host_key(host_id), change)
        return HostEntity.model_validate(item) if item else None

    async def add_location(
        self, host_id: str, location_id: str
    ) -> Optional[HostEntity]:
        def build(host: HostEntity):
            ids = list(host.location_ids)
            if location_id not in ids:
                ids.append(location_id)
            return {"lids": ids}

        return await self._update_lists(host_id, build)

    async def remove_location(
        self, host_id: str, location_id: str
    ) -> Optional[HostEntity]:
        return await self._update_lists(
            host_id,
            lambda host: {"lids": [i for i in host.location_ids if i != location_id]},
        )

    async def add_custom_reward(
        self, host_id: str, *, count: int, name: str, icon: str
    ) -> Optional[HostEntity]:
        reward = HostReward(id=str(uuid.uuid4()), count=count, name=name, icon=icon)

        def build(host: HostEntity):
            rewards = [r.model_dump(by_alias=True) for r in host.custom_rewards]
            return {"cr": rewards + [reward.model_dump(by_alias=True)]}

        return await self._update_lists(host_id, build)

    async def remove_custom_reward(
        self, host_id: str, reward_id: str
    ) -> Optional[HostEntity]:
        return await self._update_lists(
            host_id,
            lambda host: {
                "cr": [
                    r.model_dump(by_alias=True)
                    for r in host.custom_rewards
                    if r.id != reward_id
                ]
            },
        )
