from decimal import Decimal
from enum import Enum
from typing import Optional

from spendshare.models.base import MongoModel, PyObjectId


class ExpenseSource(str, Enum):
    MANUAL = "manual"
    OWE_PAYMENT = "owe_payment"


class Expense(MongoModel):
    owner_id: PyObjectId
    category: str
    amount: Decimal
    title: str
    description: str = ""
    source: ExpenseSource = ExpenseSource.MANUAL
    owe_id: Optional[PyObjectId] = None
