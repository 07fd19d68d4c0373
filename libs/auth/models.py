from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from libs.common.config import get_settings


class AuthUser(BaseModel):
    """
    Represents a user authenticated by the external identity provider.

    Group membership decides what the caller may do: members of the host
    group manage their own host, super-admins manage everything.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    groups: List[str] = Field(default_factory=list, alias="cognito:groups")

    @property
    def is_super_admin(self) -> bool:
        return get_settings().SUPER_ADMIN_GROUP in self.groups

    @property
    def is_host(self) -> bool:
        return get_settings().HOST_GROUP in self.groups
