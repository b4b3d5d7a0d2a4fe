from typing import List

from fastapi import APIRouter, Depends, Query, status

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.models.user import User
from spendshare.schemas.expense import CategoryExpenses, ExpenseCreate, ExpensePage, ExpenseResponse
from spendshare.services.expense_service import ExpenseService
from spendshare.utils.serialization import to_response

router = APIRouter()


def _page(data: dict, schema=ExpensePage):
    data["expenses"] = [to_response(ExpenseResponse, expense) for expense in data["expenses"]]
    return schema(**data)


@router.post("/", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_in: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    expense = await ExpenseService(db).create(current_user.id, expense_in)
    return to_response(ExpenseResponse, expense)


@router.get("/", response_model=List[CategoryExpenses])
async def list_expenses_by_category(
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """First page and total of every category"""
    categories = await ExpenseService(db).by_category(current_user.id, limit)
    return [_page(category, CategoryExpenses) for category in categories]


@router.get("/category/{category}", response_model=ExpensePage)
async def list_category_expenses(
    category: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    data = await ExpenseService(db).list_page(current_user.id, category, page, limit)
    return _page(data)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    await ExpenseService(db).delete(expense_id, current_user.id)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_expenses(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    await ExpenseService(db).delete_all(current_user.id)
