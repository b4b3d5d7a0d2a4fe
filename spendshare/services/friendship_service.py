"""
Friendship gate.

Two persisted states, pending and fulfilled. Accepting is the recipient's
move; deleting (reject, cancel, unfriend) is open to either party and is
the only way out of both states.
"""

import logging

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from spendshare.core.errors import (
    AuthorizationError,
    ConflictError,
    LedgerValidationError,
    NotFoundError,
)
from spendshare.db.session import run_in_transaction
from spendshare.models.friendship import Friendship, FriendshipStatus
from spendshare.models.user import User
from spendshare.repositories.friendship_repo import FriendshipRepository
from spendshare.repositories.user_repo import UserRepository
from spendshare.utils.ids import parse_id

logger = logging.getLogger(__name__)


class FriendshipService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.friendships = FriendshipRepository(db)
        self.users = UserRepository(db)

    async def is_friend(self, a: ObjectId, b: ObjectId) -> bool:
        if a == b:
            return False
        return await self.friendships.are_friends(a, b)

    async def send_request(self, requester_id: ObjectId, recipient_id) -> Friendship:
        recipient_oid = parse_id(recipient_id, "recipient_id")
        if recipient_oid == requester_id:
            raise LedgerValidationError("You cannot send a friend request to yourself", code="self_friendship")

        if await self.users.get_user_by_id(recipient_oid) is None:
            raise NotFoundError("User not found", code="user_not_found")

        existing = await self.friendships.find_between(requester_id, recipient_oid)
        if existing is not None:
            if existing.status == FriendshipStatus.FULFILLED:
                raise ConflictError("You are already friends", code="already_friends")
            raise ConflictError("Friend request already sent", code="request_pending")

        friendship = Friendship(requester_id=requester_id, recipient_id=recipient_oid)
        try:
            await self.friendships.create(friendship)
        except DuplicateKeyError:
            raise ConflictError("Friend request already sent", code="request_pending")

        logger.info("Friend request %s: %s -> %s", friendship.id, requester_id, recipient_oid)
        return friendship

    async def accept_request(self, request_id, user_id: ObjectId) -> Friendship:
        request_oid = parse_id(request_id, "request_id")
        friendship = await self.friendships.get(request_oid)
        if friendship is None:
            raise NotFoundError("Friend request not found", code="request_not_found")
        if friendship.recipient_id != user_id:
            raise AuthorizationError("Only the recipient can accept this request", code="not_recipient")
        if friendship.status != FriendshipStatus.PENDING:
            raise ConflictError("Friend request already processed", code="request_processed")

        async def work(session):
            accepted = await self.friendships.mark_fulfilled(request_oid, session=session)
            if accepted is None:
                raise ConflictError("Friend request already processed", code="request_processed")
            await self.users.add_friend(accepted.requester_id, accepted.recipient_id, session=session)
            await self.users.add_friend(accepted.recipient_id, accepted.requester_id, session=session)
            return accepted

        accepted = await run_in_transaction(self.db, work)
        logger.info("Friend request %s accepted", request_oid)
        return accepted

    async def delete(self, request_id, user_id: ObjectId) -> None:
        """Reject, cancel or unfriend."""
        request_oid = parse_id(request_id, "request_id")
        friendship = await self.friendships.get(request_oid)
        if friendship is None:
            raise NotFoundError("Friend request not found", code="request_not_found")
        if not friendship.involves(user_id):
            raise AuthorizationError("Not your friendship", code="not_party")

        async def work(session):
            if not await self.friendships.delete(request_oid, session=session):
                raise NotFoundError("Friend request not found", code="request_not_found")
            await self.users.remove_friend(friendship.requester_id, friendship.recipient_id, session=session)
            await self.users.remove_friend(friendship.recipient_id, friendship.requester_id, session=session)

        await run_in_transaction(self.db, work)
        logger.info("Friendship %s deleted by %s", request_oid, user_id)

    async def list_friends(self, user_id: ObjectId) -> list[User]:
        edges = await self.friendships.list_for_user(user_id, FriendshipStatus.FULFILLED)
        profiles = await self.users.get_users(edge.other_party(user_id) for edge in edges)
        return list(profiles.values())

    async def list_pending(self, user_id: ObjectId) -> list[tuple[Friendship, User, bool]]:
        """(edge, counterpart, incoming) for every pending request touching the user."""
        edges = await self.friendships.list_for_user(user_id, FriendshipStatus.PENDING)
        profiles = await self.users.get_users(edge.other_party(user_id) for edge in edges)
        result = []
        for edge in edges:
            counterpart = profiles.get(edge.other_party(user_id))
            if counterpart is not None:
                result.append((edge, counterpart, edge.recipient_id == user_id))
        return result
