from datetime import datetime
from decimal import Decimal

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from spendshare.models.expense import Expense


class ExpenseRepository:
    """Personal ledger lines and the aggregations behind analytics."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.expenses

    async def insert(self, expense: Expense, session=None) -> Expense:
        await self.collection.insert_one(expense.to_document(), session=session)
        return expense

    async def get(self, expense_id: ObjectId) -> Expense | None:
        doc = await self.collection.find_one({"_id": expense_id})
        return Expense(**doc) if doc else None

    async def delete(self, expense_id: ObjectId, owner_id: ObjectId) -> bool:
        result = await self.collection.delete_one({"_id": expense_id, "owner_id": owner_id})
        return result.deleted_count == 1

    async def delete_all(self, owner_id: ObjectId) -> int:
        result = await self.collection.delete_many({"owner_id": owner_id})
        return result.deleted_count

    async def list_page(self, owner_id: ObjectId, category: str, skip: int, limit: int) -> list[Expense]:
        cursor = (
            self.collection.find({"owner_id": owner_id, "category": category})
            .sort("created_at", -1)
            .skip(skip)
            .limit(limit)
        )
        return [Expense(**doc) for doc in await cursor.to_list(None)]

    async def count(self, owner_id: ObjectId, category: str) -> int:
        return await self.collection.count_documents({"owner_id": owner_id, "category": category})

    async def total(
        self,
        owner_id: ObjectId,
        start: datetime | None = None,
        end: datetime | None = None,
        category: str | None = None
    ) -> Decimal:
        """Sum of amounts, optionally bounded by an inclusive created_at range."""
        match: dict = {"owner_id": owner_id}
        if start is not None or end is not None:
            match["created_at"] = {}
            if start is not None:
                match["created_at"]["$gte"] = start
            if end is not None:
                match["created_at"]["$lte"] = end
        if category is not None:
            match["category"] = category

        result = await self.collection.aggregate([
            {"$match": match},
            {"$group": {"_id": None, "total": {"$sum": "$amount"}}}
        ]).to_list(1)
        return result[0]["total"] if result else Decimal("0")

    async def category_totals(self, owner_id: ObjectId, since: datetime) -> list[dict]:
        return await self.collection.aggregate([
            {"$match": {"owner_id": owner_id, "created_at": {"$gte": since}}},
            {"$group": {"_id": "$category", "total_amount": {"$sum": "$amount"}}},
            {"$project": {"_id": 0, "category": "$_id", "total_amount": 1}},
            {"$sort": {"category": 1}}
        ]).to_list(None)

    async def monthly_category_totals(self, owner_id: ObjectId, since: datetime, tz: str) -> list[dict]:
        return await self.collection.aggregate([
            {"$match": {"owner_id": owner_id, "created_at": {"$gte": since}}},
            {
                "$group": {
                    "_id": {
                        "year": {"$year": {"date": "$created_at", "timezone": tz}},
                        "month": {"$month": {"date": "$created_at", "timezone": tz}},
                        "category": "$category"
                    },
                    "total_amount": {"$sum": "$amount"}
                }
            },
            {
                "$project": {
                    "_id": 0,
                    "year": "$_id.year",
                    "month": "$_id.month",
                    "category": "$_id.category",
                    "total_amount": 1
                }
            },
            {"$sort": {"year": 1, "month": 1, "category": 1}}
        ]).to_list(None)

    async def daily_totals(self, owner_id: ObjectId, tz: str) -> list[dict]:
        return await self.collection.aggregate([
            {"$match": {"owner_id": owner_id}},
            {
                "$group": {
                    "_id": {
                        "year": {"$year": {"date": "$created_at", "timezone": tz}},
                        "month": {"$month": {"date": "$created_at", "timezone": tz}},
                        "day": {"$dayOfMonth": {"date": "$created_at", "timezone": tz}}
                    },
                    "total_amount": {"$sum": "$amount"}
                }
            },
            {
                "$project": {
                    "_id": 0,
                    "year": "$_id.year",
                    "month": "$_id.month",
                    "day": "$_id.day",
                    "total_amount": 1
                }
            },
            {"$sort": {"year": 1, "month": 1, "day": 1}}
        ]).to_list(None)
