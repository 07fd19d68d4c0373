"""Typed partial updates, one per entity.

Each patch enumerates only the attributes callers may change. Input accepts
camelCase or snake_case names; ``stored_fields()`` yields the short stored
attribute names of the fields that were actually supplied.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def _field(stored: str, camel: str, snake: str):
    return Field(
        None,
        validation_alias=AliasChoices(camel, snake),
        serialization_alias=stored,
    )


class EntityPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def stored_fields(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class HostPatch(EntityPatch):
    name: Optional[str] = _field("n", "name", "name")
    email: Optional[str] = _field("e", "email", "email")
    admin_passphrase: Optional[str] = _field("p", "adminPassword", "admin_passphrase")
    disclaimer: Optional[str] = _field("disc", "disclaimer", "disclaimer")


class LocationPatch(EntityPatch):
    name: Optional[str] = _field("n", "name", "name")
    address: Optional[str] = _field("a", "address", "address")


class ActivityPatch(EntityPatch):
    name: Optional[str] = _field("n", "name", "name")
    icon: Optional[str] = _field("i", "icon", "icon")
    enabled: Optional[bool] = _field("en", "enabled", "enabled")


class AthletePatch(EntityPatch):
    first_name: Optional[str] = _field("fn", "firstName", "first_name")
    last_name: Optional[str] = _field("ln", "lastName", "last_name")
    middle_initial: Optional[str] = _field("mi", "middleInitial", "middle_initial")
    email: Optional[str] = _field("e", "email", "email")
    employer: Optional[str] = _field("em", "employer", "employer")
    shirt_gender: Optional[str] = _field("sg", "shirtGender", "shirt_gender")
    shirt_size: Optional[str] = _field("ss", "shirtSize", "shirt_size")
    emergency_name: Optional[str] = _field("en", "emergencyName", "emergency_name")
    emergency_phone: Optional[str] = _field("ep", "emergencyPhone", "emergency_phone")
    archived_reward: Optional[bool] = _field("ar", "archivedReward", "archived_reward")

    def touches_index_keys(self) -> bool:
        return bool(self.model_fields_set & {"first_name", "last_name", "email"})


class PetPatch(EntityPatch):
    name: Optional[str] = _field("n", "name", "name")


class RewardPatch(EntityPatch):
    name: Optional[str] = _field("n", "name", "name")
    icon: Optional[str] = _field("i", "icon", "icon")
    count: Optional[int] = Field(
        None,
        ge=1,
        validation_alias=AliasChoices("count", "cnt"),
        serialization_alias="cnt",
    )
