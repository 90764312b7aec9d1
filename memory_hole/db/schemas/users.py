from typing import List

from pydantic import Field

from ._base import PayloadModel


class UserInfo(PayloadModel):
    screenname: str
    admin: bool = False
    is_active: bool = True
    # Already hashed by the credential layer
    pass_: str | None = Field(default=None, alias="pass")


class UserCreate(UserInfo):
    belongs_to: List[int] = Field(default_factory=list)


class UserMembershipUpdate(UserCreate):
    member_of: List[int] = Field(default_factory=list)
    update_password: bool = False
