import uuid
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import epoch_seconds
from services.checkin_service.models import EntityType, PetEntity
from services.checkin_service.models.keys import (
    ATHLETE_PREFIX,
    PET_PREFIX,
    Index,
    pet_indexes,
    pet_key,
    type_partition,
)
from services.checkin_service.repositories.base import ItemStore, ItemUpdate, Page
from services.checkin_service.schemas.patches import PetPatch


class PetRepository:
    def __init__(self, store: ItemStore):
        self.store = store

    async def create(self, *, athlete_id: str, name: str) -> PetEntity:
        pet_id = str(uuid.uuid4())
        now = epoch_seconds()
        key = pet_key(pet_id)
        pet = PetEntity(
            pk=key.pk,
            sk=key.sk,
            id=pet_id,
            created=now,
            updated=now,
            athlete_id=athlete_id,
            name=name,
        )
        await self.store.put(
            key, EntityType.PET.value, pet.to_item(), pet_indexes(athlete_id, pet_id)
        )
        return pet

    async def get_by_id(self, pet_id: str) -> Optional[PetEntity]:
        item = await self.store.get(pet_key(pet_id))
        return PetEntity.model_validate(item) if item else None

    async def list_by_athlete(self, athlete_id: str) -> list[PetEntity]:
        items = await self.store.query(
            f"{ATHLETE_PREFIX}{athlete_id}", index=Index.GSI1, begins_with=PET_PREFIX
        )
        return [PetEntity.model_validate(item) for item in items]

    async def get_by_name_for_athlete(
        self, name: str, athlete_id: str
    ) -> Optional[PetEntity]:
        wanted = name.strip().lower()
        for pet in await self.list_by_athlete(athlete_id):
            if pet.name.strip().lower() == wanted:
                return pet
        return None

    async def exists_for_athlete(self, name: str, athlete_id: str) -> bool:
        return await self.get_by_name_for_athlete(name, athlete_id) is not None

    async def list_page(
        self,
        limit: Optional[int] = None,
        start_after: Optional[dict[str, str]] = None,
    ) -> Page:
        page = await self.store.query_page(
            type_partition(EntityType.PET.value),
            index=Index.GSI2,
            limit=limit or get_settings().DEFAULT_PAGE_SIZE,
            start_after=start_after,
        )
        return Page(
            items=[PetEntity.model_validate(item) for item in page.items],
            last_key=page.last_key,
        )

    async def update(self, pet_id: str, patch: PetPatch) -> Optional[PetEntity]:
        fields = patch.stored_fields()
        fields["u"] = epoch_seconds()
        item = await self.store.update(pet_key(pet_id), ItemUpdate(set=fields))
        return PetEntity.model_validate(item) if item else None

    async def delete(self, pet_id: str) -> bool:
        """Remove the pet record. Its check-in history stays in place."""
        return await self.store.delete(pet_key(pet_id))
