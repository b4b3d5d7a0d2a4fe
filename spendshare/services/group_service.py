"""
Group service - membership and admin rules.

Invariants kept here and in GroupRepository:
- admin_id is always one of members
- the admin cannot be removed until admin has been handed over
- the last member leaving deletes the group with its ledger records
"""

import logging
from typing import List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from spendshare.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
)
from spendshare.db.session import run_in_transaction
from spendshare.models.group import Group
from spendshare.models.owe import Owe
from spendshare.models.transaction import Transaction
from spendshare.models.user import User
from spendshare.repositories.group_repo import GroupRepository
from spendshare.repositories.owe_repo import OweRepository
from spendshare.repositories.transaction_repo import TransactionRepository
from spendshare.repositories.user_repo import UserRepository
from spendshare.schemas.group import GroupCreate
from spendshare.services.friendship_service import FriendshipService
from spendshare.utils.ids import parse_id

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.groups = GroupRepository(db)
        self.users = UserRepository(db)
        self.transactions = TransactionRepository(db)
        self.owes = OweRepository(db)
        self.friendships = FriendshipService(db)

    async def _load(self, group_id) -> Group:
        group = await self.groups.get(parse_id(group_id, "group_id"))
        if group is None:
            raise NotFoundError("Group does not exist", code="group_not_found")
        return group

    async def _load_as_member(self, group_id, user_id: ObjectId) -> Group:
        group = await self._load(group_id)
        if not group.is_member(user_id):
            raise AuthorizationError("You are not a member of this group", code="not_group_member")
        return group

    async def _load_as_admin(self, group_id, user_id: ObjectId) -> Group:
        group = await self._load(group_id)
        if not group.is_admin(user_id):
            raise AuthorizationError("Only the group admin can do this", code="not_group_admin")
        return group

    async def _ensure_friend(self, user_id: ObjectId, other_id: ObjectId) -> None:
        if not await self.friendships.is_friend(user_id, other_id):
            raise AuthorizationError(f"User {other_id} is not your friend", code="not_friends")

    async def create(self, creator_id: ObjectId, group_in: GroupCreate) -> Group:
        member_ids = [creator_id]
        for raw in group_in.member_ids:
            member_id = parse_id(raw, "member_id")
            if member_id not in member_ids:
                member_ids.append(member_id)

        for member_id in member_ids[1:]:
            await self._ensure_friend(creator_id, member_id)

        group = Group(
            name=group_in.name,
            description=group_in.description,
            avatar=group_in.avatar,
            creator_id=creator_id,
            admin_id=creator_id,
            members=member_ids
        )

        async def work(session):
            await self.groups.create(group, session=session)
            await self.users.add_group(member_ids, group.id, session=session)

        await run_in_transaction(self.db, work)
        logger.info("Group %s created by %s with %d members", group.id, creator_id, len(member_ids))
        return group

    async def get(self, group_id, user_id: ObjectId) -> tuple[Group, List[User]]:
        """The group and its member profiles, in membership order."""
        group = await self._load_as_member(group_id, user_id)
        profiles = await self.users.get_users(group.members)
        return group, [profiles[m] for m in group.members if m in profiles]

    async def list_for_user(self, user_id: ObjectId) -> List[Group]:
        return await self.groups.list_for_user(user_id)

    async def add_member(self, group_id, admin_id: ObjectId, member_id) -> Group:
        group = await self._load_as_admin(group_id, admin_id)
        member_oid = parse_id(member_id, "member_id")
        if group.is_member(member_oid):
            raise ConflictError("User is already a member", code="already_member")
        await self._ensure_friend(admin_id, member_oid)

        async def work(session):
            updated = await self.groups.add_member(group.id, member_oid, session=session)
            await self.users.add_group([member_oid], group.id, session=session)
            return updated

        updated = await run_in_transaction(self.db, work)
        logger.info("User %s added to group %s", member_oid, group.id)
        return updated

    async def remove_member(self, group_id, admin_id: ObjectId, member_id) -> Group:
        group = await self._load_as_admin(group_id, admin_id)
        member_oid = parse_id(member_id, "member_id")
        if member_oid == admin_id:
            raise ConflictError("Transfer admin before removing yourself", code="admin_must_transfer")
        if not group.is_member(member_oid):
            raise NotFoundError("User is not a member of this group", code="member_not_found")

        async def work(session):
            updated = await self.groups.remove_member(group.id, member_oid, session=session)
            if updated is None:
                raise ConflictError("Group changed, try again", code="group_changed")
            await self.users.remove_group([member_oid], group.id, session=session)
            return updated

        updated = await run_in_transaction(self.db, work)
        logger.info("User %s removed from group %s", member_oid, group.id)
        return updated

    async def transfer_admin(self, group_id, admin_id: ObjectId, new_admin_id) -> Group:
        group = await self._load_as_admin(group_id, admin_id)
        new_admin = parse_id(new_admin_id, "member_id")
        if new_admin == admin_id:
            raise ConflictError("You are already the admin", code="already_admin")
        group.ensure_can_be_admin(new_admin)

        updated = await self.groups.set_admin(group.id, admin_id, new_admin)
        if updated is None:
            raise ConflictError("Group changed, try again", code="group_changed")
        logger.info("Group %s admin %s -> %s", group.id, admin_id, new_admin)
        return updated

    async def leave(self, group_id, user_id: ObjectId) -> Group | None:
        """Returns the updated group, or None when the group was deleted."""
        group = await self._load_as_member(group_id, user_id)

        if len(group.members) == 1:
            await self._delete_cascade(group, keep_settled=True)
            logger.info("Last member %s left, group %s deleted", user_id, group.id)
            return None

        successor = group.successor_for(user_id) if group.is_admin(user_id) else None

        async def work(session):
            updated = await self.groups.remove_member(group.id, user_id, new_admin_id=successor, session=session)
            if updated is None:
                raise ConflictError("Group changed, try again", code="group_changed")
            await self.users.remove_group([user_id], group.id, session=session)
            return updated

        updated = await run_in_transaction(self.db, work)
        if successor is not None:
            logger.info("Admin %s left group %s, admin passed to %s", user_id, group.id, successor)
        else:
            logger.info("User %s left group %s", user_id, group.id)
        return updated

    async def delete(self, group_id, admin_id: ObjectId) -> None:
        group = await self._load_as_admin(group_id, admin_id)
        await self._delete_cascade(group)
        logger.info("Group %s deleted by %s", group.id, admin_id)

    async def _delete_cascade(self, group: Group, keep_settled: bool = False) -> None:
        """
        Delete the group with its splits and their owes. With settled payments
        the admin is refused, while with ``keep_settled`` (last member leaving)
        only the group goes and its ledger stays as history.
        """
        async def work(session):
            transaction_ids = await self.transactions.ids_for_group(group.id, session=session)
            if transaction_ids and await self.owes.count_settled(transaction_ids, session=session):
                if not keep_settled:
                    raise ConflictError("Group has settled payments and cannot be deleted", code="settled_records")
                logger.info("Group %s has settled payments, keeping its %d transactions", group.id, len(transaction_ids))
                transaction_ids = []
            if transaction_ids:
                await self.owes.delete_for_transactions(transaction_ids, session=session)
                await self.transactions.delete_many(transaction_ids, session=session)
            await self.groups.delete(group.id, session=session)
            await self.users.remove_group(group.members, group.id, session=session)

        await run_in_transaction(self.db, work)

    async def list_transactions(self, group_id, user_id: ObjectId) -> List[tuple[Transaction, List[Owe]]]:
        group = await self._load_as_member(group_id, user_id)
        return await self.transactions.list_for_group(group.id)
