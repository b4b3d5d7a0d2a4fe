from typing import List

from fastapi import APIRouter, Depends, status

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.models.user import User
from spendshare.schemas.group import (
    GroupCreate,
    GroupDetailResponse,
    GroupMemberChange,
    GroupMemberResponse,
    GroupResponse,
    GroupTransactionResponse,
)
from spendshare.schemas.owe import OweResponse
from spendshare.services.group_service import GroupService
from spendshare.utils.serialization import to_response

router = APIRouter()


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_in: GroupCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Create a group; the creator becomes its admin"""
    group = await GroupService(db).create(current_user.id, group_in)
    return to_response(GroupResponse, group)


@router.get("/", response_model=List[GroupResponse])
async def list_my_groups(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    groups = await GroupService(db).list_for_user(current_user.id)
    return [to_response(GroupResponse, group) for group in groups]


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    group, members = await GroupService(db).get(group_id, current_user.id)
    return to_response(
        GroupDetailResponse,
        group,
        member_profiles=[
            to_response(GroupMemberResponse, member, is_admin=group.is_admin(member.id))
            for member in members
        ],
        total_members=len(group.members),
        is_admin=group.is_admin(current_user.id)
    )


@router.get("/{group_id}/transactions", response_model=List[GroupTransactionResponse])
async def list_group_transactions(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Group transactions, newest first, each with its owes"""
    transactions = await GroupService(db).list_transactions(group_id, current_user.id)
    return [
        to_response(
            GroupTransactionResponse,
            transaction,
            owes=[to_response(OweResponse, owe) for owe in owes]
        )
        for transaction, owes in transactions
    ]


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_group_member(
    group_id: str,
    change: GroupMemberChange,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    group = await GroupService(db).add_member(group_id, current_user.id, change.member_id)
    return to_response(GroupResponse, group)


@router.delete("/{group_id}/members/{member_id}", response_model=GroupResponse)
async def remove_group_member(
    group_id: str,
    member_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    group = await GroupService(db).remove_member(group_id, current_user.id, member_id)
    return to_response(GroupResponse, group)


@router.post("/{group_id}/admin", response_model=GroupResponse)
async def transfer_group_admin(
    group_id: str,
    change: GroupMemberChange,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    group = await GroupService(db).transfer_admin(group_id, current_user.id, change.member_id)
    return to_response(GroupResponse, group)


@router.post("/{group_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    await GroupService(db).leave(group_id, current_user.id)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    await GroupService(db).delete(group_id, current_user.id)
