from datetime import datetime, timezone

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from spendshare.models.friendship import Friendship, FriendshipStatus


class FriendshipRepository:
    """Friendship edges. At most one edge exists per unordered pair."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.friendships

    @staticmethod
    def _pair_filter(a: ObjectId, b: ObjectId) -> dict:
        return {
            "$or": [
                {"requester_id": a, "recipient_id": b},
                {"requester_id": b, "recipient_id": a}
            ]
        }

    async def create(self, friendship: Friendship) -> Friendship:
        await self.collection.insert_one(friendship.to_document())
        return friendship

    async def get(self, friendship_id: ObjectId) -> Friendship | None:
        doc = await self.collection.find_one({"_id": friendship_id})
        return Friendship(**doc) if doc else None

    async def find_between(self, a: ObjectId, b: ObjectId) -> Friendship | None:
        """Edge in either direction, any status."""
        doc = await self.collection.find_one(self._pair_filter(a, b))
        return Friendship(**doc) if doc else None

    async def are_friends(self, a: ObjectId, b: ObjectId) -> bool:
        query = self._pair_filter(a, b)
        query["status"] = FriendshipStatus.FULFILLED.value
        return await self.collection.count_documents(query, limit=1) > 0

    async def mark_fulfilled(self, friendship_id: ObjectId, session=None) -> Friendship | None:
        """pending -> fulfilled; None if the edge is gone or no longer pending."""
        doc = await self.collection.find_one_and_update(
            {"_id": friendship_id, "status": FriendshipStatus.PENDING.value},
            {"$set": {
                "status": FriendshipStatus.FULFILLED.value,
                "updated_at": datetime.now(timezone.utc)
            }},
            session=session,
            return_document=ReturnDocument.AFTER
        )
        return Friendship(**doc) if doc else None

    async def delete(self, friendship_id: ObjectId, session=None) -> bool:
        result = await self.collection.delete_one({"_id": friendship_id}, session=session)
        return result.deleted_count == 1

    async def list_for_user(self, user_id: ObjectId, status: FriendshipStatus) -> list[Friendship]:
        cursor = self.collection.find({
            "$or": [{"requester_id": user_id}, {"recipient_id": user_id}],
            "status": status.value
        }).sort("created_at", -1)
        return [Friendship(**doc) for doc in await cursor.to_list(None)]
