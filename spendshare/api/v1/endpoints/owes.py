from typing import List, Optional

from fastapi import APIRouter, Depends, Header, status

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.models.owe import Owe
from spendshare.models.user import User
from spendshare.schemas.expense import ExpenseResponse
from spendshare.schemas.owe import (
    CounterpartInfo,
    DirectRequestCreate,
    OweResponse,
    OweWithCounterpart,
    PaymentResponse,
)
from spendshare.services.settlement_service import SettlementService
from spendshare.utils.serialization import to_response

router = APIRouter()


def _with_counterpart(doc: dict) -> OweWithCounterpart:
    counterpart = dict(doc["counterpart"], _id=str(doc["counterpart"]["_id"]))
    return to_response(
        OweWithCounterpart,
        Owe(**doc),
        counterpart=CounterpartInfo.model_validate(counterpart)
    )


@router.post("/requests", response_model=OweResponse, status_code=status.HTTP_201_CREATED)
async def create_direct_request(
    request_in: DirectRequestCreate,
    idempotency_key: Optional[str] = Header(None, max_length=100),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Ask a friend for money"""
    owe = await SettlementService(db).create_direct_request(current_user.id, request_in, idempotency_key)
    return to_response(OweResponse, owe)


@router.post("/{owe_id}/pay", response_model=PaymentResponse)
async def pay_owe(
    owe_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Settle one of your debts"""
    result = await SettlementService(db).pay_owe(owe_id, current_user.id)
    return PaymentResponse(
        owe=to_response(OweResponse, result.owe),
        expense=to_response(ExpenseResponse, result.expense),
        balance_delta={
            "creditor_id": str(result.balance_delta.creditor_id),
            "debtor_id": str(result.balance_delta.debtor_id),
            "amount": result.balance_delta.amount
        }
    )


@router.delete("/{owe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_owe(
    owe_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Withdraw an unpaid direct request"""
    await SettlementService(db).delete_owe(owe_id, current_user.id)


@router.get("/owed-by-me", response_model=List[OweWithCounterpart])
async def list_owed_by_me(
    paid: Optional[bool] = None,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """What you owe, with each creditor's profile"""
    docs = await SettlementService(db).owes_of_user(current_user.id, paid)
    return [_with_counterpart(doc) for doc in docs]


@router.get("/owed-to-me", response_model=List[OweWithCounterpart])
async def list_owed_to_me(
    paid: Optional[bool] = None,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """What others owe you, with each debtor's profile"""
    docs = await SettlementService(db).amount_owed_to_user(current_user.id, paid)
    return [_with_counterpart(doc) for doc in docs]
