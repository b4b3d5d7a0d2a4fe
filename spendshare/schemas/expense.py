from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExpenseCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=50)
    amount: Decimal
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=200)


class ExpenseResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    owner_id: str
    category: str
    amount: Decimal
    title: str
    description: str
    source: str
    owe_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class ExpensePage(BaseModel):
    category: str
    expenses: List[ExpenseResponse]
    current_page: int
    total_pages: int
    total_count: int


class CategoryExpenses(ExpensePage):
    total_expense: Decimal
