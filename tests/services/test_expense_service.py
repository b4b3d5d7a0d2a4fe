from decimal import Decimal

import pytest
from bson import ObjectId

from spendshare.core.config import settings
from spendshare.core.errors import LedgerValidationError, NotFoundError
from spendshare.models.expense import Expense
from spendshare.schemas.expense import ExpenseCreate
from spendshare.services.expense_service import ExpenseService
from tests.conftest import make_cursor


@pytest.mark.asyncio
async def test_create_expense(mock_db):
    owner = ObjectId()

    expense = await ExpenseService(mock_db).create(
        owner, ExpenseCreate(category="Food", amount=Decimal("12.40"), title="Lunch")
    )

    assert expense.owner_id == owner
    assert expense.amount == Decimal("12.40")
    mock_db.expenses.insert_one.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_expense_unknown_category(mock_db):
    with pytest.raises(LedgerValidationError) as exc:
        await ExpenseService(mock_db).create(
            ObjectId(), ExpenseCreate(category="Yachts", amount=Decimal("1"), title="Boat")
        )
    assert exc.value.code == "invalid_category"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-3", "1.999"])
async def test_create_expense_invalid_amount(mock_db, amount):
    with pytest.raises(LedgerValidationError):
        await ExpenseService(mock_db).create(
            ObjectId(), ExpenseCreate(category="Food", amount=Decimal(amount), title="Lunch")
        )
    mock_db.expenses.insert_one.assert_not_awaited()


def test_description_length_limited():
    with pytest.raises(ValueError):
        ExpenseCreate(category="Food", amount=Decimal("1"), title="Lunch", description="x" * 201)


@pytest.mark.asyncio
async def test_list_page(mock_db):
    owner = ObjectId()
    expenses = [
        Expense(owner_id=owner, category="Food", amount=Decimal("5"), title=f"Snack {i}").to_document()
        for i in range(10)
    ]
    mock_db.expenses.count_documents.return_value = 25
    cursor = make_cursor(expenses)
    mock_db.expenses.find.return_value = cursor

    page = await ExpenseService(mock_db).list_page(owner, "Food", page=2, limit=10)

    assert page["current_page"] == 2
    assert page["total_pages"] == 3
    assert page["total_count"] == 25
    assert len(page["expenses"]) == 10
    cursor.sort.assert_called_once_with("created_at", -1)
    cursor.skip.assert_called_once_with(10)


@pytest.mark.asyncio
async def test_by_category_covers_every_category(mock_db):
    mock_db.expenses.aggregate.return_value = make_cursor([{"_id": None, "total": Decimal("7.50")}])

    categories = await ExpenseService(mock_db).by_category(ObjectId())

    assert [c["category"] for c in categories] == settings.EXPENSE_CATEGORIES
    assert all(c["total_expense"] == Decimal("7.50") for c in categories)


@pytest.mark.asyncio
async def test_delete_someone_elses_expense(mock_db):
    mock_db.expenses.delete_one.return_value.deleted_count = 0

    with pytest.raises(NotFoundError):
        await ExpenseService(mock_db).delete(str(ObjectId()), ObjectId())
