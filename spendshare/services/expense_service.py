import logging
import math
from typing import List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from spendshare.core.config import settings
from spendshare.core.errors import LedgerValidationError, NotFoundError
from spendshare.models.expense import Expense
from spendshare.repositories.expense_repo import ExpenseRepository
from spendshare.schemas.expense import ExpenseCreate
from spendshare.utils.ids import parse_id
from spendshare.utils.split_calculator import validate_total

logger = logging.getLogger(__name__)


class ExpenseService:
    """The user's personal ledger."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.expenses = ExpenseRepository(db)

    def _check_category(self, category: str) -> None:
        if category not in settings.EXPENSE_CATEGORIES:
            raise LedgerValidationError(
                f"Category must be one of {', '.join(settings.EXPENSE_CATEGORIES)}",
                code="invalid_category"
            )

    async def create(self, owner_id: ObjectId, expense_in: ExpenseCreate) -> Expense:
        self._check_category(expense_in.category)
        amount = validate_total(expense_in.amount)

        expense = Expense(
            owner_id=owner_id,
            category=expense_in.category,
            amount=amount,
            title=expense_in.title,
            description=expense_in.description
        )
        await self.expenses.insert(expense)
        logger.info("Expense %s: %s spent %s on %s", expense.id, owner_id, amount, expense.category)
        return expense

    async def delete(self, expense_id, owner_id: ObjectId) -> None:
        if not await self.expenses.delete(parse_id(expense_id, "expense_id"), owner_id):
            raise NotFoundError("Expense not found", code="expense_not_found")

    async def delete_all(self, owner_id: ObjectId) -> int:
        removed = await self.expenses.delete_all(owner_id)
        logger.info("Cleared %d expenses of %s", removed, owner_id)
        return removed

    async def list_page(self, owner_id: ObjectId, category: str, page: int = 1, limit: int = 10) -> dict:
        """One page of a category, newest first."""
        self._check_category(category)
        if page < 1 or limit < 1:
            raise LedgerValidationError("Page and limit must be positive", code="invalid_page")

        total_count = await self.expenses.count(owner_id, category)
        expenses = await self.expenses.list_page(owner_id, category, (page - 1) * limit, limit)
        return {
            "category": category,
            "expenses": expenses,
            "current_page": page,
            "total_pages": math.ceil(total_count / limit),
            "total_count": total_count
        }

    async def by_category(self, owner_id: ObjectId, limit: int = 10) -> List[dict]:
        """First page and total of every configured category."""
        result = []
        for category in settings.EXPENSE_CATEGORIES:
            page = await self.list_page(owner_id, category, 1, limit)
            page["total_expense"] = await self.expenses.total(owner_id, category=category)
            result.append(page)
        return result
