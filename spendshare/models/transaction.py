from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from spendshare.models.base import MongoModel, PyObjectId


class SplitType(str, Enum):
    EQUAL = "EQUAL"
    PERCENTAGE = "PERCENTAGE"
    SHARE = "SHARE"


class TransactionKind(str, Enum):
    SPLIT = "split"            # group split, parent of N owes
    DIRECT = "direct"          # synthetic parent of a friend-to-friend request
    SETTLEMENT = "settlement"  # booked when an owe is paid


class Transaction(MongoModel):
    """Immutable record of one split event. Deleting it cascades to its owes."""
    kind: TransactionKind = TransactionKind.SPLIT
    amount: Decimal
    title: str
    category: str
    description: str = ""
    creditor_id: PyObjectId
    debtor_id: Optional[PyObjectId] = None
    members: List[PyObjectId] = Field(default_factory=list)
    group_id: Optional[PyObjectId] = None
    split_type: Optional[SplitType] = None
    owe_id: Optional[PyObjectId] = None
    idempotency_key: Optional[str] = None
