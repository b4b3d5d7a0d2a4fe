import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from spendshare.models.user import User


def _oid(value) -> ObjectId | None:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class UserRepository:
    """User database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.users

    async def create_user(self, user: User) -> User:
        """Insert a new user document."""
        await self.collection.insert_one(user.to_document())
        return user

    async def get_user_by_id(self, user_id, session=None) -> User | None:
        """Get user by ID (invalid ids are treated as missing)."""
        oid = _oid(user_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "is_deleted": False}, session=session)
        return User(**doc) if doc else None

    async def get_user_by_email(self, email: str) -> User | None:
        doc = await self.collection.find_one({"email": email.lower(), "is_deleted": False})
        return User(**doc) if doc else None

    async def get_user_by_username(self, username: str) -> User | None:
        doc = await self.collection.find_one({"username": username, "is_deleted": False})
        return User(**doc) if doc else None

    async def search(self, query: str, exclude_id: ObjectId, limit: int = 20) -> list[User]:
        """Prefix search on username and email."""
        pattern = {"$regex": f"^{re.escape(query)}", "$options": "i"}
        cursor = self.collection.find({
            "_id": {"$ne": exclude_id},
            "is_deleted": False,
            "$or": [{"username": pattern}, {"email": pattern}]
        }).limit(limit)
        return [User(**doc) for doc in await cursor.to_list(None)]

    async def get_users(self, user_ids: Iterable[ObjectId]) -> dict[ObjectId, User]:
        """Profiles keyed by id, for joining display fields."""
        ids = list(user_ids)
        if not ids:
            return {}
        docs = await self.collection.find({"_id": {"$in": ids}}).to_list(None)
        return {doc["_id"]: User(**doc) for doc in docs}

    async def update_profile(self, user_id: ObjectId, updates: dict) -> User | None:
        updates["updated_at"] = datetime.now(timezone.utc)
        doc = await self.collection.find_one_and_update(
            {"_id": user_id, "is_deleted": False},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        return User(**doc) if doc else None

    async def add_friend(self, user_id: ObjectId, friend_id: ObjectId, session=None) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$addToSet": {"friends": friend_id}},
            session=session
        )

    async def remove_friend(self, user_id: ObjectId, friend_id: ObjectId, session=None) -> None:
        await self.collection.update_one(
            {"_id": user_id},
            {"$pull": {"friends": friend_id}},
            session=session
        )

    async def add_group(self, user_ids: Iterable[ObjectId], group_id: ObjectId, session=None) -> None:
        await self.collection.update_many(
            {"_id": {"$in": list(user_ids)}},
            {"$addToSet": {"groups": group_id}},
            session=session
        )

    async def remove_group(self, user_ids: Iterable[ObjectId], group_id: ObjectId, session=None) -> None:
        await self.collection.update_many(
            {"_id": {"$in": list(user_ids)}},
            {"$pull": {"groups": group_id}},
            session=session
        )

    async def increment_balance(self, user_id: ObjectId, delta: Decimal, session=None) -> bool:
        """Atomic $inc on the cached balance."""
        result = await self.collection.update_one(
            {"_id": user_id},
            {
                "$inc": {"balance": delta},
                "$set": {"updated_at": datetime.now(timezone.utc)}
            },
            session=session
        )
        return result.matched_count == 1
