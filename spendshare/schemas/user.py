from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserResponse(BaseModel):
    """Public profile, also used for joined counterpart fields."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    username: str
    email: EmailStr
    avatar: str = ""

    model_config = ConfigDict(populate_by_name=True)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar: Optional[str] = None


class BalanceResponse(BaseModel):
    user_id: str
    balance: Decimal


class BalanceReconcileResponse(BaseModel):
    user_id: str
    cached: Decimal
    derived: Decimal
    drift: Decimal
    repaired: bool
