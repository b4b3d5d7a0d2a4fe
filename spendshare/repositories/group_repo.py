from datetime import datetime, timezone

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from spendshare.models.group import Group


class GroupRepository:
    """Group database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.groups

    async def create(self, group: Group, session=None) -> Group:
        await self.collection.insert_one(group.to_document(), session=session)
        return group

    async def get(self, group_id: ObjectId, session=None) -> Group | None:
        doc = await self.collection.find_one({"_id": group_id}, session=session)
        return Group(**doc) if doc else None

    async def list_for_user(self, user_id: ObjectId) -> list[Group]:
        cursor = self.collection.find({"members": user_id}).sort("created_at", -1)
        return [Group(**doc) for doc in await cursor.to_list(None)]

    async def add_member(self, group_id: ObjectId, member_id: ObjectId, session=None) -> Group | None:
        doc = await self.collection.find_one_and_update(
            {"_id": group_id},
            {
                "$addToSet": {"members": member_id},
                "$set": {"updated_at": datetime.now(timezone.utc)}
            },
            session=session,
            return_document=ReturnDocument.AFTER
        )
        return Group(**doc) if doc else None

    async def remove_member(
        self,
        group_id: ObjectId,
        member_id: ObjectId,
        new_admin_id: ObjectId | None = None,
        session=None
    ) -> Group | None:
        """
        Pull a member, optionally handing over admin in the same update.

        The filter refuses to pull the current admin unless a new admin is
        set at the same time, so admin_id never points outside members.
        """
        query = {"_id": group_id, "members": member_id}
        updates = {"updated_at": datetime.now(timezone.utc)}
        if new_admin_id is None:
            query["admin_id"] = {"$ne": member_id}
        else:
            query["members"] = {"$all": [member_id, new_admin_id]}
            updates["admin_id"] = new_admin_id

        doc = await self.collection.find_one_and_update(
            query,
            {"$pull": {"members": member_id}, "$set": updates},
            session=session,
            return_document=ReturnDocument.AFTER
        )
        return Group(**doc) if doc else None

    async def set_admin(self, group_id: ObjectId, current_admin: ObjectId, new_admin: ObjectId) -> Group | None:
        """Compare-and-set on admin_id; the new admin must still be a member."""
        doc = await self.collection.find_one_and_update(
            {"_id": group_id, "admin_id": current_admin, "members": new_admin},
            {"$set": {"admin_id": new_admin, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER
        )
        return Group(**doc) if doc else None

    async def delete(self, group_id: ObjectId, session=None) -> bool:
        result = await self.collection.delete_one({"_id": group_id}, session=session)
        return result.deleted_count == 1
