import uuid
from typing import Optional

from libs.common.datetime_utils import epoch_millis, local_date
from services.checkin_service.models import (
    CheckInEntity,
    EntityType,
    PetCheckInEntity,
)
from services.checkin_service.models.keys import (
    ATHLETE_PREFIX,
    CHECK_IN_TAG,
    HOST_PREFIX,
    PET_CHECK_IN_TAG,
    PET_PREFIX,
    Index,
    check_in_indexes,
    check_in_key,
    date_partition,
    event_sort_key,
    pet_check_in_indexes,
    pet_check_in_key,
)
from services.checkin_service.repositories.base import ItemStore, ItemUpdate

DEFAULT_LIMIT = 50


class CheckInRepository:
    """Check-in and pet check-in events.

    Events are keyed by their creation time in epoch milliseconds, so the
    timestamp doubles as the event's identifier within its partition.
    """

    def __init__(self, store: ItemStore):
        self.store = store

    async def create(
        self,
        *,
        athlete_id: str,
        host_id: str,
        location_id: str,
        activity_id: str,
        timestamp: Optional[int] = None,
    ) -> CheckInEntity:
        timestamp = timestamp or epoch_millis()
        key = check_in_key(athlete_id, timestamp)
        check_in = CheckInEntity(
            pk=key.pk,
            sk=key.sk,
            id=str(uuid.uuid4()),
            created=timestamp,
            updated=timestamp,
            athlete_id=athlete_id,
            host_id=host_id,
            location_id=location_id,
            activity_id=activity_id,
        )
        await self.store.put(
            key,
            EntityType.CHECK_IN.value,
            check_in.to_item(),
            check_in_indexes(
                host_id, athlete_id, timestamp, local_date(timestamp).isoformat()
            ),
        )
        return check_in

    async def create_pet(
        self,
        *,
        athlete_id: str,
        pet_id: str,
        host_id: str,
        location_id: str,
        timestamp: Optional[int] = None,
    ) -> PetCheckInEntity:
        timestamp = timestamp or epoch_millis()
        key = pet_check_in_key(pet_id, timestamp)
        pet_check_in = PetCheckInEntity(
            pk=key.pk,
            sk=key.sk,
            id=str(uuid.uuid4()),
            created=timestamp,
            updated=timestamp,
            athlete_id=athlete_id,
            pet_id=pet_id,
            host_id=host_id,
            location_id=location_id,
        )
        await self.store.put(
            key,
            EntityType.PET_CHECK_IN.value,
            pet_check_in.to_item(),
            pet_check_in_indexes(host_id, timestamp),
        )
        return pet_check_in

    async def get(self, athlete_id: str, timestamp: int) -> Optional[CheckInEntity]:
        item = await self.store.get(check_in_key(athlete_id, timestamp))
        return CheckInEntity.model_validate(item) if item else None

    async def get_pet(self, pet_id: str, timestamp: int) -> Optional[PetCheckInEntity]:
        item = await self.store.get(pet_check_in_key(pet_id, timestamp))
        return PetCheckInEntity.model_validate(item) if item else None

    # -- listings ----------------------------------------------------------

    async def list_for_athlete(
        self, athlete_id: str, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[CheckInEntity]:
        """Newest first."""
        items = await self.store.query(
            f"{ATHLETE_PREFIX}{athlete_id}",
            begins_with=CHECK_IN_TAG,
            descending=True,
            limit=limit,
        )
        return [CheckInEntity.model_validate(item) for item in items]

    async def list_for_pet(
        self, pet_id: str, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[PetCheckInEntity]:
        items = await self.store.query(
            f"{PET_PREFIX}{pet_id}",
            begins_with=CHECK_IN_TAG,
            descending=True,
            limit=limit,
        )
        return [PetCheckInEntity.model_validate(item) for item in items]

    async def list_for_host(
        self, host_id: str, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[CheckInEntity]:
        items = await self.store.query(
            f"{HOST_PREFIX}{host_id}",
            index=Index.GSI1,
            begins_with=CHECK_IN_TAG,
            descending=True,
            limit=limit,
        )
        return [CheckInEntity.model_validate(item) for item in items]

    async def list_pet_for_host(
        self, host_id: str, limit: Optional[int] = DEFAULT_LIMIT
    ) -> list[PetCheckInEntity]:
        items = await self.store.query(
            f"{HOST_PREFIX}{host_id}",
            index=Index.GSI1,
            begins_with=PET_CHECK_IN_TAG,
            descending=True,
            limit=limit,
        )
        return [PetCheckInEntity.model_validate(item) for item in items]

    async def list_by_date(
        self, date_string: str, limit: Optional[int] = 100
    ) -> list[CheckInEntity]:
        """Check-ins on one calendar day (``YYYY-MM-DD``), across all hosts."""
        items = await self.store.query(
            date_partition(date_string), index=Index.GSI3, limit=limit
        )
        return [CheckInEntity.model_validate(item) for item in items]

    async def list_for_athlete_at_host_between(
        self, athlete_id: str, host_id: str, start: int, end: int
    ) -> list[CheckInEntity]:
        """Oldest first; ``start`` and ``end`` are inclusive epoch milliseconds."""
        items = await self.store.query(
            f"{ATHLETE_PREFIX}{athlete_id}",
            between=(
                event_sort_key(CHECK_IN_TAG, start),
                event_sort_key(CHECK_IN_TAG, end),
            ),
        )
        return [
            CheckInEntity.model_validate(item)
            for item in items
            if item.get("hid") == host_id
        ]

    # -- counts ------------------------------------------------------------

    async def count_for_athlete(self, athlete_id: str) -> int:
        return await self.store.count(
            f"{ATHLETE_PREFIX}{athlete_id}", begins_with=CHECK_IN_TAG
        )

    async def count_for_athlete_at_host(self, athlete_id: str, host_id: str) -> int:
        """Reads the athlete's whole check-in history and filters on host."""
        items = await self.store.query(
            f"{ATHLETE_PREFIX}{athlete_id}", begins_with=CHECK_IN_TAG
        )
        return sum(1 for item in items if item.get("hid") == host_id)

    async def count_for_pet(self, pet_id: str) -> int:
        return await self.store.count(f"{PET_PREFIX}{pet_id}", begins_with=CHECK_IN_TAG)

    # -- writes ------------------------------------------------------------

    async def update_activity(
        self, athlete_id: str, timestamp: int, activity_id: str
    ) -> Optional[CheckInEntity]:
        item = await self.store.update(
            check_in_key(athlete_id, timestamp),
            ItemUpdate(set={"actid": activity_id, "u": epoch_millis()}),
        )
        return CheckInEntity.model_validate(item) if item else None

    async def delete(self, athlete_id: str, timestamp: int) -> bool:
        return await self.store.delete(check_in_key(athlete_id, timestamp))

    async def delete_pet(self, pet_id: str, timestamp: int) -> bool:
        return await self.store.delete(pet_check_in_key(pet_id, timestamp))
