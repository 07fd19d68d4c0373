"""Key schema for the single check-in item table.

Every entity type owns a partition-key prefix. Entities of record use the
constant ``METADATA`` sort key; events use ``<TAG>#<timestamp>`` sort keys so
a partition query returns them in time order.

Secondary indexes:

* ``GSI1`` - by owner / type catalog: a host's locations, check-ins, rewards
  and claims (``HOST#<id>``), an athlete's pets (``ATH#<id>``), type catalogs
  (``TYPE#host``, ``TYPE#activity``, ``TYPE#reward#<type>``) and the athlete
  name catalog (``TYPE#athlete`` / ``NAME#<LAST>#<FIRST>``).
* ``GSI2`` - lookup catalog: athlete email (``TYPE#athlete`` /
  ``EMAIL#<email>``), ``TYPE#location`` and ``TYPE#pet`` listings.
* ``GSI3`` - by calendar date: ``DATE#<YYYY-MM-DD>`` / ``CI#<athleteId>``.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from services.checkin_service.models.enums import EntityType, RewardType

METADATA = "METADATA"
SEPARATOR = "#"

HOST_PREFIX = "HOST#"
LOCATION_PREFIX = "LOC#"
ACTIVITY_PREFIX = "ACT#"
ATHLETE_PREFIX = "ATH#"
PET_PREFIX = "PET#"
REWARD_PREFIX = "REW#"

CHECK_IN_TAG = "CI#"
PET_CHECK_IN_TAG = "PCI#"
REWARD_CLAIM_TAG = "RC#"

TYPE_PREFIX = "TYPE#"
NAME_PREFIX = "NAME#"
EMAIL_PREFIX = "EMAIL#"
DATE_PREFIX = "DATE#"
IDENTITY_PREFIX = "COGNITO#"


class Index(str, enum.Enum):
    GSI1 = "gsi1"
    GSI2 = "gsi2"
    GSI3 = "gsi3"


@dataclass(frozen=True)
class ItemKey:
    pk: str
    sk: str


@dataclass(frozen=True)
class IndexKeys:
    """Secondary-index key values carried by one item."""

    gsi1pk: Optional[str] = None
    gsi1sk: Optional[str] = None
    gsi2pk: Optional[str] = None
    gsi2sk: Optional[str] = None
    gsi3pk: Optional[str] = None
    gsi3sk: Optional[str] = None

    def as_columns(self) -> dict[str, Optional[str]]:
        return {
            "gsi1pk": self.gsi1pk,
            "gsi1sk": self.gsi1sk,
            "gsi2pk": self.gsi2pk,
            "gsi2sk": self.gsi2sk,
            "gsi3pk": self.gsi3pk,
            "gsi3sk": self.gsi3sk,
        }


def type_partition(entity_type: str) -> str:
    return f"{TYPE_PREFIX}{entity_type}"


def event_sort_key(tag: str, timestamp: int) -> str:
    return f"{tag}{timestamp}"


def timestamp_from_sort_key(sk: str) -> int:
    """Extract the epoch-millisecond timestamp from an event sort key.

    ``CI#1700000000000`` and ``RC#1700000000000#<rewardId>`` both yield
    ``1700000000000``.
    """
    _, _, rest = sk.partition(SEPARATOR)
    return int(rest.split(SEPARATOR, 1)[0])


# ---------------------------------------------------------------------------
# Primary keys
# ---------------------------------------------------------------------------


def host_key(host_id: str) -> ItemKey:
    return ItemKey(pk=f"{HOST_PREFIX}{host_id}", sk=METADATA)


def location_key(location_id: str) -> ItemKey:
    return ItemKey(pk=f"{LOCATION_PREFIX}{location_id}", sk=METADATA)


def activity_key(activity_id: str) -> ItemKey:
    return ItemKey(pk=f"{ACTIVITY_PREFIX}{activity_id}", sk=METADATA)


def athlete_key(athlete_id: str) -> ItemKey:
    return ItemKey(pk=f"{ATHLETE_PREFIX}{athlete_id}", sk=METADATA)


def pet_key(pet_id: str) -> ItemKey:
    return ItemKey(pk=f"{PET_PREFIX}{pet_id}", sk=METADATA)


def reward_key(reward_id: str) -> ItemKey:
    return ItemKey(pk=f"{REWARD_PREFIX}{reward_id}", sk=METADATA)


def check_in_key(athlete_id: str, timestamp: int) -> ItemKey:
    return ItemKey(
        pk=f"{ATHLETE_PREFIX}{athlete_id}",
        sk=event_sort_key(CHECK_IN_TAG, timestamp),
    )


def pet_check_in_key(pet_id: str, timestamp: int) -> ItemKey:
    # Pet check-ins live in the pet partition under the plain check-in tag
    return ItemKey(
        pk=f"{PET_PREFIX}{pet_id}",
        sk=event_sort_key(CHECK_IN_TAG, timestamp),
    )


def reward_claim_key(athlete_id: str, timestamp: int, reward_id: str) -> ItemKey:
    return ItemKey(
        pk=f"{ATHLETE_PREFIX}{athlete_id}",
        sk=f"{REWARD_CLAIM_TAG}{timestamp}{SEPARATOR}{reward_id}",
    )


# ---------------------------------------------------------------------------
# Secondary index keys
# ---------------------------------------------------------------------------


def name_sort_key(last_name: str, first_name: Optional[str] = None) -> str:
    """``NAME#<LAST>#<FIRST>``; without a first name, the last-name prefix."""
    key = f"{NAME_PREFIX}{last_name.strip().upper()}"
    if first_name is not None:
        key = f"{key}{SEPARATOR}{first_name.strip().upper()}"
    return key


def email_sort_key(email: str) -> str:
    return f"{EMAIL_PREFIX}{(email or '').strip().lower()}"


def date_partition(date_string: str) -> str:
    return f"{DATE_PREFIX}{date_string}"


def host_indexes(identity_ref: str) -> IndexKeys:
    return IndexKeys(
        gsi1pk=type_partition(EntityType.HOST.value),
        gsi1sk=f"{IDENTITY_PREFIX}{identity_ref}",
    )


def location_indexes(host_id: str, location_id: str) -> IndexKeys:
    return IndexKeys(
        gsi1pk=f"{HOST_PREFIX}{host_id}",
        gsi1sk=f"{LOCATION_PREFIX}{location_id}",
        gsi2pk=type_partition(EntityType.LOCATION.value),
        gsi2sk=f"{LOCATION_PREFIX}{location_id}",
    )


def activity_indexes(activity_id: str) -> IndexKeys:
    return IndexKeys(
        gsi1pk=type_partition(EntityType.ACTIVITY.value),
        gsi1sk=f"{ACTIVITY_PREFIX}{activity_id}",
    )


def athlete_indexes(first_name: str, last_name: str, email: str) -> IndexKeys:
    return IndexKeys(
        gsi1pk=type_partition(EntityType.ATHLETE.value),
        gsi1sk=name_sort_key(last_name, first_name),
        gsi2pk=type_partition(EntityType.ATHLETE.value),
        gsi2sk=email_sort_key(email),
    )


def pet_indexes(athlete_id: str, pet_id: str) -> IndexKeys:
    return IndexKeys(
        gsi1pk=f"{ATHLETE_PREFIX}{athlete_id}",
        gsi1sk=f"{PET_PREFIX}{pet_id}",
        gsi2pk=type_partition(EntityType.PET.value),
        gsi2sk=f"{PET_PREFIX}{pet_id}",
    )


def check_in_indexes(
    host_id: str, athlete_id: str, timestamp: int, date_string: str
) -> IndexKeys:
    return IndexKeys(
        gsi1pk=f"{HOST_PREFIX}{host_id}",
        gsi1sk=event_sort_key(CHECK_IN_TAG, timestamp),
        gsi3pk=date_partition(date_string),
        gsi3sk=f"{CHECK_IN_TAG}{athlete_id}",
    )


def pet_check_in_indexes(host_id: str, timestamp: int) -> IndexKeys:
    return IndexKeys(
        gsi1pk=f"{HOST_PREFIX}{host_id}",
        gsi1sk=event_sort_key(PET_CHECK_IN_TAG, timestamp),
    )


def reward_catalog_partition(reward_type: RewardType) -> str:
    return f"{TYPE_PREFIX}{EntityType.REWARD.value}{SEPARATOR}{reward_type.value}"


def reward_indexes(
    reward_id: str, reward_type: RewardType, host_id: Optional[str] = None
) -> IndexKeys:
    if reward_type == RewardType.HOST and host_id:
        partition = f"{HOST_PREFIX}{host_id}"
    else:
        partition = reward_catalog_partition(reward_type)
    return IndexKeys(gsi1pk=partition, gsi1sk=f"{REWARD_PREFIX}{reward_id}")


def reward_claim_indexes(host_id: str, timestamp: int) -> IndexKeys:
    return IndexKeys(
        gsi1pk=f"{HOST_PREFIX}{host_id}",
        gsi1sk=event_sort_key(REWARD_CLAIM_TAG, timestamp),
    )
