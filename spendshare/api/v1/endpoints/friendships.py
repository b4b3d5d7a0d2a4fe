from typing import List

from fastapi import APIRouter, Depends, status

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.models.user import User
from spendshare.schemas.friendship import FriendRequestCreate, FriendshipResponse, PendingRequest
from spendshare.schemas.user import UserResponse
from spendshare.services.friendship_service import FriendshipService
from spendshare.utils.serialization import to_response

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
async def list_friends(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    """Fulfilled friendships of the current user"""
    friends = await FriendshipService(db).list_friends(current_user.id)
    return [to_response(UserResponse, friend) for friend in friends]


@router.get("/requests", response_model=List[PendingRequest])
async def list_pending_requests(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    """Incoming and outgoing pending requests"""
    pending = await FriendshipService(db).list_pending(current_user.id)
    return [
        to_response(
            PendingRequest,
            edge,
            counterpart=to_response(UserResponse, counterpart),
            incoming=incoming
        )
        for edge, counterpart, incoming in pending
    ]


@router.post("/requests", response_model=FriendshipResponse, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    request_in: FriendRequestCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    friendship = await FriendshipService(db).send_request(current_user.id, request_in.recipient_id)
    return to_response(FriendshipResponse, friendship)


@router.post("/requests/{request_id}/accept", response_model=FriendshipResponse)
async def accept_friend_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    friendship = await FriendshipService(db).accept_request(request_id, current_user.id)
    return to_response(FriendshipResponse, friendship)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_friendship(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Reject, cancel or unfriend"""
    await FriendshipService(db).delete(request_id, current_user.id)
