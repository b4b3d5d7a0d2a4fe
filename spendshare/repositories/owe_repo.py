"""
OweRepository - debt obligations.

The paid flag is only ever flipped through mark_paid, a compare-and-set on
``paid: False``, so two concurrent payments cannot both succeed.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from spendshare.models.owe import Owe

# Projection of the joined counterpart profile
COUNTERPART_FIELDS = {"_id": 1, "name": 1, "username": 1, "email": 1, "avatar": 1}

NOT_SELF_SHARE = {"$expr": {"$ne": ["$creditor_id", "$debtor_id"]}}


class OweRepository:
    """Repository for owes (financial obligations)."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.owes

    async def insert_many(self, owes: List[Owe], session=None) -> List[Owe]:
        if owes:
            await self.collection.insert_many([owe.to_document() for owe in owes], session=session)
        return owes

    async def get(self, owe_id: ObjectId, session=None) -> Owe | None:
        doc = await self.collection.find_one({"_id": owe_id}, session=session)
        return Owe(**doc) if doc else None

    async def list_for_transaction(self, transaction_id: ObjectId, session=None) -> List[Owe]:
        cursor = self.collection.find({"transaction_id": transaction_id}, session=session)
        return [Owe(**doc) for doc in await cursor.to_list(None)]

    async def mark_paid(self, owe_id: ObjectId, session=None) -> Owe | None:
        """unpaid -> paid. Returns None when the owe was already paid (or is gone)."""
        now = datetime.now(timezone.utc)
        doc = await self.collection.find_one_and_update(
            {"_id": owe_id, "paid": False},
            {"$set": {"paid": True, "paid_at": now, "updated_at": now}},
            session=session,
            return_document=ReturnDocument.AFTER
        )
        return Owe(**doc) if doc else None

    async def count_settled(self, transaction_ids: List[ObjectId], session=None) -> int:
        """Paid owes between two different people (self shares excluded)."""
        query = {"transaction_id": {"$in": transaction_ids}, "paid": True}
        query.update(NOT_SELF_SHARE)
        return await self.collection.count_documents(query, session=session)

    async def delete(self, owe_id: ObjectId, session=None) -> bool:
        """Delete an owe only while it is unpaid."""
        result = await self.collection.delete_one({"_id": owe_id, "paid": False}, session=session)
        return result.deleted_count == 1

    async def delete_for_transactions(self, transaction_ids: List[ObjectId], session=None) -> int:
        result = await self.collection.delete_many(
            {"transaction_id": {"$in": transaction_ids}},
            session=session
        )
        return result.deleted_count

    async def list_with_counterpart(self, user_id: ObjectId, role: str, paid: bool | None = None) -> List[dict]:
        """
        Owes where ``user_id`` plays ``role`` ("debtor" or "creditor"),
        joined with the other party's profile as ``counterpart``.
        Self shares are never listed.
        """
        other = "creditor_id" if role == "debtor" else "debtor_id"
        match = {f"{role}_id": user_id}
        match.update(NOT_SELF_SHARE)
        if paid is not None:
            match["paid"] = paid

        pipeline = [
            {"$match": match},
            {"$sort": {"created_at": -1}},
            {
                "$lookup": {
                    "from": "users",
                    "localField": other,
                    "foreignField": "_id",
                    "as": "counterpart"
                }
            },
            {"$unwind": "$counterpart"},
            {"$project": {"counterpart.password_hash": 0, "counterpart.friends": 0,
                          "counterpart.groups": 0, "counterpart.balance": 0}}
        ]
        return await self.collection.aggregate(pipeline).to_list(None)

    async def paid_total(self, user_id: ObjectId, role: str, session=None) -> Decimal:
        """Sum of settled owes where the user is the given party."""
        match = {f"{role}_id": user_id, "paid": True}
        match.update(NOT_SELF_SHARE)
        result = await self.collection.aggregate([
            {"$match": match},
            {"$group": {"_id": None, "total": {"$sum": "$amount"}}}
        ], session=session).to_list(1)
        return result[0]["total"] if result else Decimal("0")
