from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from spendshare.models.owe import Owe
from spendshare.models.transaction import Transaction


class TransactionRepository:
    """Split events. Documents are written once and never updated."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.transactions

    async def insert(self, transaction: Transaction, session=None) -> Transaction:
        await self.collection.insert_one(transaction.to_document(), session=session)
        return transaction

    async def get(self, transaction_id: ObjectId, session=None) -> Transaction | None:
        doc = await self.collection.find_one({"_id": transaction_id}, session=session)
        return Transaction(**doc) if doc else None

    async def find_by_idempotency_key(self, creditor_id: ObjectId, key: str) -> Transaction | None:
        doc = await self.collection.find_one({"creditor_id": creditor_id, "idempotency_key": key})
        return Transaction(**doc) if doc else None

    async def ids_for_group(self, group_id: ObjectId, session=None) -> list[ObjectId]:
        cursor = self.collection.find({"group_id": group_id}, {"_id": 1}, session=session)
        return [doc["_id"] for doc in await cursor.to_list(None)]

    async def list_for_group(self, group_id: ObjectId) -> list[tuple[Transaction, list[Owe]]]:
        """Group transactions, newest first, each with its owes."""
        pipeline = [
            {"$match": {"group_id": group_id}},
            {"$sort": {"created_at": -1}},
            {
                "$lookup": {
                    "from": "owes",
                    "localField": "_id",
                    "foreignField": "transaction_id",
                    "as": "owes"
                }
            }
        ]
        docs = await self.collection.aggregate(pipeline).to_list(None)
        result = []
        for doc in docs:
            owes = [Owe(**owe) for owe in doc.pop("owes", [])]
            result.append((Transaction(**doc), owes))
        return result

    async def delete(self, transaction_id: ObjectId, session=None) -> bool:
        result = await self.collection.delete_one({"_id": transaction_id}, session=session)
        return result.deleted_count == 1

    async def delete_many(self, transaction_ids: list[ObjectId], session=None) -> int:
        result = await self.collection.delete_many({"_id": {"$in": transaction_ids}}, session=session)
        return result.deleted_count
