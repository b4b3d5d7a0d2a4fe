"""
Owe model - one debt obligation produced by a Transaction.

- Creditor's own share is stored with paid=True at creation
- paid: False -> True exactly once, never back
- Amounts are Decimal with two places
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from spendshare.models.base import MongoModel, PyObjectId


class Owe(MongoModel):
    transaction_id: PyObjectId
    group_id: Optional[PyObjectId] = None
    creditor_id: PyObjectId
    debtor_id: PyObjectId
    amount: Decimal
    paid: bool = False
    paid_at: Optional[datetime] = None
    category: str
    title: str
    description: str = ""

    @property
    def is_self_share(self) -> bool:
        """The creditor's own part of a split; never moves a balance."""
        return self.creditor_id == self.debtor_id
