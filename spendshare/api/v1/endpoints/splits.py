from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.models.user import User
from spendshare.schemas.owe import OweResponse
from spendshare.schemas.split import SplitCreate, SplitResponse, TransactionResponse
from spendshare.services.settlement_service import SettlementService
from spendshare.utils.serialization import to_response

router = APIRouter()


@router.post("/groups/{group_id}/splits", response_model=SplitResponse, status_code=status.HTTP_201_CREATED)
async def create_split(
    group_id: str,
    split_in: SplitCreate,
    idempotency_key: Optional[str] = Header(None, max_length=100),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Split a group expense; you are the creditor of every resulting owe"""
    transaction, owes = await SettlementService(db).create_split(
        group_id, current_user.id, split_in, idempotency_key
    )
    return SplitResponse(
        transaction=to_response(TransactionResponse, transaction),
        owes=[to_response(OweResponse, owe) for owe in owes]
    )


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Delete a split with its owes; refused once any of them is paid"""
    await SettlementService(db).delete_transaction(transaction_id, current_user.id)
