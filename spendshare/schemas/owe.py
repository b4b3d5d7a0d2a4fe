from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from spendshare.schemas.expense import ExpenseResponse


class DirectRequestCreate(BaseModel):
    """Ask a friend for money outside of any group."""
    debtor_id: str
    amount: Decimal
    category: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=200)


class OweResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    transaction_id: str
    group_id: Optional[str] = None
    creditor_id: str
    debtor_id: str
    amount: Decimal
    paid: bool
    paid_at: Optional[datetime] = None
    category: str
    title: str
    description: str
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class CounterpartInfo(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    username: str
    email: str
    avatar: str = ""

    model_config = ConfigDict(populate_by_name=True)


class OweWithCounterpart(OweResponse):
    """Owe joined with the other party's profile."""
    counterpart: CounterpartInfo


class BalanceDelta(BaseModel):
    creditor_id: str
    debtor_id: str
    amount: Decimal


class PaymentResponse(BaseModel):
    owe: OweResponse
    expense: ExpenseResponse
    balance_delta: BalanceDelta
