import uuid
from typing import Callable, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import epoch_seconds
from services.checkin_service.models import AthleteEntity, EntityType
from services.checkin_service.models.keys import (
    Index,
    athlete_indexes,
    athlete_key,
    email_sort_key,
    name_sort_key,
    type_partition,
)
from services.checkin_service.repositories.base import (
    Item,
    ItemStore,
    ItemUpdate,
    Page,
)
from services.checkin_service.schemas.patches import AthletePatch

ATHLETE_CATALOG = type_partition(EntityType.ATHLETE.value)


def _live(items: list[Item]) -> list[AthleteEntity]:
    athletes = [AthleteEntity.model_validate(item) for item in items]
    return [athlete for athlete in athletes if not athlete.deleted]


class AthleteRepository:
    """Athlete records.

    Catalog reads (search, listing) skip soft-deleted athletes; direct lookup
    by ID still returns them.
    """

    def __init__(self, store: ItemStore):
        self.store = store

    async def create(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        middle_initial: str = "",
        employer: str = "",
        shirt_gender: str = "",
        shirt_size: str = "",
        emergency_name: str = "",
        emergency_phone: str = "",
        legacy_count: Optional[int] = None,
    ) -> AthleteEntity:
        athlete_id = str(uuid.uuid4())
        now = epoch_seconds()
        key = athlete_key(athlete_id)
        athlete = AthleteEntity(
            pk=key.pk,
            sk=key.sk,
            id=athlete_id,
            created=now,
            updated=now,
            first_name=first_name,
            last_name=last_name,
            middle_initial=middle_initial,
            email=email,
            employer=employer,
            shirt_gender=shirt_gender,
            shirt_size=shirt_size,
            emergency_name=emergency_name,
            emergency_phone=emergency_phone,
            legacy_count=legacy_count,
        )
        await self.store.put(
            key,
            EntityType.ATHLETE.value,
            athlete.to_item(),
            athlete_indexes(first_name, last_name, email),
        )
        return athlete

    async def get_by_id(self, athlete_id: str) -> Optional[AthleteEntity]:
        item = await self.store.get(athlete_key(athlete_id))
        return AthleteEntity.model_validate(item) if item else None

    async def search_by_name(
        self, last_name: str, first_name: Optional[str] = None
    ) -> list[AthleteEntity]:
        """Prefix search on ``LAST`` or ``LAST#FIRST``, case-insensitive."""
        items = await self.store.query(
            ATHLETE_CATALOG,
            index=Index.GSI1,
            begins_with=name_sort_key(last_name, first_name),
        )
        return _live(items)

    async def search_by_email(self, email: str) -> list[AthleteEntity]:
        items = await self.store.query(
            ATHLETE_CATALOG, index=Index.GSI2, begins_with=email_sort_key(email)
        )
        return _live(items)

    async def list_page(
        self,
        limit: Optional[int] = None,
        start_after: Optional[dict[str, str]] = None,
    ) -> Page:
        """One page of the name-ordered catalog.

        Deleted athletes are filtered after the page is read, so a page can
        hold fewer than ``limit`` items while ``last_key`` is still set.
        """
        page = await self.store.query_page(
            ATHLETE_CATALOG,
            index=Index.GSI1,
            limit=limit or get_settings().DEFAULT_PAGE_SIZE,
            start_after=start_after,
        )
        return Page(items=_live(page.items), last_key=page.last_key)

    async def update(
        self, athlete_id: str, patch: AthletePatch
    ) -> Optional[AthleteEntity]:
        fields = patch.stored_fields()
        fields["u"] = epoch_seconds()

        def change(item: Item) -> ItemUpdate:
            update = ItemUpdate(set=fields)
            if patch.touches_index_keys():
                merged = {**item, **fields}
                update.indexes = athlete_indexes(
                    merged.get("fn", ""), merged.get("ln", ""), merged.get("e", "")
                )
            return update

        item = await self.store.update_with(athlete_key(athlete_id), change)
        return AthleteEntity.model_validate(item) if item else None

    async def update_with(
        self,
        athlete_id: str,
        build: Callable[[AthleteEntity], Optional[ItemUpdate]],
    ) -> Optional[AthleteEntity]:
        """Locked read-modify-write against the typed athlete record."""
        item = await self.store.update_with(
            athlete_key(athlete_id),
            lambda current: build(AthleteEntity.model_validate(current)),
        )
        return AthleteEntity.model_validate(item) if item else None

    async def soft_delete(self, athlete_id: str) -> Optional[AthleteEntity]:
        item = await self.store.update(
            athlete_key(athlete_id),
            ItemUpdate(set={"del": True, "u": epoch_seconds()}),
        )
        return AthleteEntity.model_validate(item) if item else None

    async def hard_delete(self, athlete_id: str) -> bool:
        return await self.store.delete(athlete_key(athlete_id))

    async def add_disclaimer_signature(
        self, athlete_id: str, host_id: str, signed_at: Optional[int] = None
    ) -> Optional[AthleteEntity]:
        """Record (or overwrite) the signature timestamp for one host."""
        now = signed_at or epoch_seconds()
        item = await self.store.update(
            athlete_key(athlete_id),
            ItemUpdate(set={"u": now}, map_set={"ds": {host_id: now}}),
        )
        return AthleteEntity.model_validate(item) if item else None

    async def has_signed_disclaimer(self, athlete_id: str, host_id: str) -> bool:
        athlete = await self.get_by_id(athlete_id)
        return bool(athlete and athlete.disclaimers.get(host_id))
