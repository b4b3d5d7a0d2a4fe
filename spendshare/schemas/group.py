from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from spendshare.schemas.owe import OweResponse
from spendshare.schemas.split import TransactionResponse
from spendshare.schemas.user import UserResponse


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=300)
    avatar: str = ""
    member_ids: List[str] = Field(default_factory=list)


class GroupMemberResponse(UserResponse):
    is_admin: bool = False


class GroupResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    description: str
    avatar: str
    admin_id: str
    creator_id: str
    members: List[str]
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class GroupDetailResponse(GroupResponse):
    member_profiles: List[GroupMemberResponse]
    total_members: int
    is_admin: bool


class GroupMemberChange(BaseModel):
    member_id: str


class GroupTransactionResponse(TransactionResponse):
    owes: List[OweResponse]
