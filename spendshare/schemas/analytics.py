from decimal import Decimal
from typing import List

from pydantic import BaseModel


class ExpenseComparison(BaseModel):
    week_total: Decimal
    past_week_total: Decimal
    month_total: Decimal
    past_month_total: Decimal
    overall_total: Decimal
    week_delta: str
    month_delta: str


class CategoryTotal(BaseModel):
    category: str
    total_amount: Decimal


class MonthlyCategoryTotal(BaseModel):
    year: int
    month: int
    category: str
    total_amount: Decimal


class DailyTotal(BaseModel):
    year: int
    month: int
    day: int
    total_amount: Decimal


class ExpenseVisualization(BaseModel):
    category_breakdown: List[CategoryTotal]
    monthly_spending: List[MonthlyCategoryTotal]
    daily_expense: List[DailyTotal]
