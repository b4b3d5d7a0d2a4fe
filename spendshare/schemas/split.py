from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from spendshare.schemas.owe import OweResponse


class EqualSplit(BaseModel):
    """Everyone listed plus the requester pays the same amount."""
    split_type: Literal["EQUAL"] = "EQUAL"
    members: List[str]


class PercentageSplit(BaseModel):
    """member id -> percentage of the total; the requester takes the rest."""
    split_type: Literal["PERCENTAGE"] = "PERCENTAGE"
    shares: Dict[str, Decimal]


class ShareSplit(BaseModel):
    """member id -> absolute amount; the requester takes the rest."""
    split_type: Literal["SHARE"] = "SHARE"
    shares: Dict[str, Decimal]


SplitPolicy = Annotated[
    Union[EqualSplit, PercentageSplit, ShareSplit],
    Field(discriminator="split_type")
]


class SplitCreate(BaseModel):
    """Request body for splitting a group expense."""
    amount: Decimal
    title: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=50)
    description: str = Field("", max_length=200)
    policy: SplitPolicy


class TransactionResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    kind: str
    amount: Decimal
    title: str
    category: str
    description: str
    creditor_id: str
    debtor_id: Optional[str] = None
    members: List[str]
    group_id: Optional[str] = None
    split_type: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class SplitResponse(BaseModel):
    transaction: TransactionResponse
    owes: List[OweResponse]
