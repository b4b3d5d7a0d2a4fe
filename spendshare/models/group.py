from typing import List

from pydantic import Field, model_validator

from spendshare.core.errors import LedgerValidationError
from spendshare.models.base import MongoModel, PyObjectId


class Group(MongoModel):
    """
    Invariants:
    - members is non-empty
    - admin_id is always one of members
    """
    name: str
    description: str = ""
    avatar: str = ""
    creator_id: PyObjectId
    admin_id: PyObjectId
    members: List[PyObjectId] = Field(default_factory=list)

    @model_validator(mode="after")
    def _admin_is_member(self):
        if not self.members:
            raise ValueError("A group needs at least one member")
        if self.admin_id not in self.members:
            raise ValueError("Group admin must be a member")
        return self

    def is_member(self, user_id) -> bool:
        return user_id in self.members

    def is_admin(self, user_id) -> bool:
        return self.admin_id == user_id

    def ensure_can_be_admin(self, user_id) -> None:
        if not self.is_member(user_id):
            raise LedgerValidationError("New admin must be a group member", code="admin_not_member")

    def successor_for(self, leaving_id) -> PyObjectId | None:
        """First remaining member, used when the admin leaves."""
        return next((m for m in self.members if m != leaving_id), None)
