from enum import Enum

from spendshare.models.base import MongoModel, PyObjectId


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"


class Friendship(MongoModel):
    """
    Directed edge from requester to recipient.

    pending -> fulfilled (recipient only). Deleting the edge is the only way
    out of either state; a rejected request is simply deleted.
    """
    requester_id: PyObjectId
    recipient_id: PyObjectId
    status: FriendshipStatus = FriendshipStatus.PENDING

    def involves(self, user_id) -> bool:
        return user_id in (self.requester_id, self.recipient_id)

    def other_party(self, user_id) -> PyObjectId:
        return self.recipient_id if user_id == self.requester_id else self.requester_id
