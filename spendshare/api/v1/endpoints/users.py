from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.models.user import User
from spendshare.repositories.user_repo import UserRepository
from spendshare.schemas.user import BalanceReconcileResponse, BalanceResponse, UserResponse, UserUpdate
from spendshare.services.settlement_service import SettlementService
from spendshare.utils.serialization import to_response

router = APIRouter()


@router.get("/search", response_model=List[UserResponse])
async def search_users(
    q: str = Query(..., min_length=1, max_length=100),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Find users by username or email prefix"""
    users = await UserRepository(db).search(q, exclude_id=current_user.id)
    return [to_response(UserResponse, user) for user in users]


@router.patch("/me", response_model=UserResponse)
async def update_my_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Update current user profile"""
    updates = user_update.model_dump(exclude_none=True)
    if not updates:
        return to_response(UserResponse, current_user)
    user = await UserRepository(db).update_profile(current_user.id, updates)
    return to_response(UserResponse, user)


@router.get("/me/balance", response_model=BalanceResponse)
async def get_my_balance(current_user: User = Depends(get_current_user)):
    """Cached net position: positive means others owe you"""
    return BalanceResponse(user_id=str(current_user.id), balance=current_user.balance)


@router.post("/me/balance/reconcile", response_model=BalanceReconcileResponse)
async def reconcile_my_balance(
    repair: bool = False,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Recompute the balance from settled owes"""
    report = await SettlementService(db).reconcile_balance(current_user.id, repair=repair)
    return BalanceReconcileResponse(
        user_id=str(report.user_id),
        cached=report.cached,
        derived=report.derived,
        drift=report.drift,
        repaired=report.repaired
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Public profile of a user"""
    user = await UserRepository(db).get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return to_response(UserResponse, user)
