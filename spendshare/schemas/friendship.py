from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from spendshare.schemas.user import UserResponse


class FriendRequestCreate(BaseModel):
    recipient_id: str


class FriendshipResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    requester_id: str
    recipient_id: str
    status: str
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class PendingRequest(FriendshipResponse):
    """A pending edge joined with the other party's profile."""
    counterpart: UserResponse
    incoming: bool
