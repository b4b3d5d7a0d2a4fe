from decimal import Decimal
from typing import List

from pydantic import Field

from spendshare.models.base import MongoModel, PyObjectId


class User(MongoModel):
    """
    A ledger participant.

    ``balance`` is a cache: positive means others owe this user, negative
    means this user owes others. The owes collection is the source of truth
    (see SettlementService.reconcile_balance).
    """
    name: str
    username: str
    email: str
    password_hash: str
    avatar: str = ""
    balance: Decimal = Decimal("0")
    friends: List[PyObjectId] = Field(default_factory=list)
    groups: List[PyObjectId] = Field(default_factory=list)
    is_deleted: bool = False
