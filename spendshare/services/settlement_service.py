"""
Settlement service - splits, direct requests, payments and deletions.

Every mutating operation runs through run_in_transaction, so a split is
written with all of its owes or not at all, and a payment flips the owe,
books the payer's expense and moves both balances as one unit.

Balance rules:
- Balances move only when an owe is paid: creditor +amount, debtor -amount
- Self shares (creditor == debtor) are created paid and never move a balance
- Paid owes are never deleted, so applied balance effects are never orphaned
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from spendshare.core.config import settings
from spendshare.core.errors import (
    AuthorizationError,
    ConflictError,
    LedgerValidationError,
    NotFoundError,
)
from spendshare.db.session import run_in_transaction
from spendshare.models.expense import Expense, ExpenseSource
from spendshare.models.owe import Owe
from spendshare.models.transaction import SplitType, Transaction, TransactionKind
from spendshare.repositories.expense_repo import ExpenseRepository
from spendshare.repositories.group_repo import GroupRepository
from spendshare.repositories.owe_repo import OweRepository
from spendshare.repositories.transaction_repo import TransactionRepository
from spendshare.repositories.user_repo import UserRepository
from spendshare.schemas.owe import DirectRequestCreate
from spendshare.schemas.split import SplitCreate
from spendshare.services.friendship_service import FriendshipService
from spendshare.utils.ids import parse_id
from spendshare.utils.split_calculator import compute_shares, validate_total

logger = logging.getLogger(__name__)


@dataclass
class BalanceDelta:
    creditor_id: ObjectId
    debtor_id: ObjectId
    amount: Decimal


@dataclass
class PaymentResult:
    owe: Owe
    expense: Expense
    settlement: Transaction
    balance_delta: BalanceDelta


@dataclass
class BalanceReport:
    user_id: ObjectId
    cached: Decimal
    derived: Decimal
    repaired: bool = False

    @property
    def drift(self) -> Decimal:
        return self.cached - self.derived


class SettlementService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.owes = OweRepository(db)
        self.expenses = ExpenseRepository(db)
        self.groups = GroupRepository(db)
        self.users = UserRepository(db)
        self.friendships = FriendshipService(db)

    # ----- creation -----

    async def create_split(
        self,
        group_id,
        requester_id: ObjectId,
        split_in: SplitCreate,
        idempotency_key: Optional[str] = None
    ) -> tuple[Transaction, List[Owe]]:
        """Split a group expense; the requester is the creditor of every owe."""
        group_oid = parse_id(group_id, "group_id")

        if idempotency_key:
            replay = await self._replay(requester_id, idempotency_key)
            if replay is not None:
                return replay

        # Pure validation first; nothing below runs for a bad split
        shares = compute_shares(split_in.amount, split_in.policy, str(requester_id))
        member_ids = [parse_id(member_id, "member_id") for member_id in shares if member_id != str(requester_id)]

        group = await self.groups.get(group_oid)
        if group is None:
            raise NotFoundError("Group does not exist", code="group_not_found")
        if not group.is_member(requester_id):
            raise AuthorizationError("You are not a member of this group", code="not_group_member")
        for member_id in member_ids:
            if not group.is_member(member_id):
                raise LedgerValidationError(f"User {member_id} is not a member of this group", code="member_not_in_group")

        if settings.REQUIRE_FRIENDSHIP_FOR_SPLITS:
            for member_id in member_ids:
                if not await self.friendships.is_friend(requester_id, member_id):
                    raise AuthorizationError(f"User {member_id} is not your friend", code="not_friends")

        transaction = Transaction(
            kind=TransactionKind.SPLIT,
            amount=sum(shares.values(), Decimal("0")),
            title=split_in.title,
            category=split_in.category,
            description=split_in.description,
            creditor_id=requester_id,
            members=[requester_id, *member_ids],
            group_id=group_oid,
            split_type=SplitType(split_in.policy.split_type),
            idempotency_key=idempotency_key
        )

        owes = []
        for member_key, amount in shares.items():
            debtor_id = requester_id if member_key == str(requester_id) else ObjectId(member_key)
            if amount <= 0:
                # Requester whose remainder is zero has no share to record
                continue
            owes.append(Owe(
                transaction_id=transaction.id,
                group_id=group_oid,
                creditor_id=requester_id,
                debtor_id=debtor_id,
                amount=amount,
                paid=debtor_id == requester_id,
                paid_at=transaction.created_at if debtor_id == requester_id else None,
                category=split_in.category,
                title=split_in.title,
                description=split_in.description
            ))

        async def work(session):
            await self.transactions.insert(transaction, session=session)
            await self.owes.insert_many(owes, session=session)

        try:
            await run_in_transaction(self.db, work)
        except DuplicateKeyError:
            replay = await self._replay(requester_id, idempotency_key) if idempotency_key else None
            if replay is None:
                raise
            return replay

        logger.info(
            "Split %s in group %s: %s %s among %d",
            transaction.id, group_oid, transaction.amount, transaction.split_type.value, len(owes)
        )
        return transaction, owes

    async def create_direct_request(
        self,
        creditor_id: ObjectId,
        request_in: DirectRequestCreate,
        idempotency_key: Optional[str] = None
    ) -> Owe:
        """Ask a friend for money. A one-owe 'direct' transaction is the parent."""
        debtor_id = parse_id(request_in.debtor_id, "debtor_id")
        if debtor_id == creditor_id:
            raise LedgerValidationError("You cannot request money from yourself", code="self_request")
        amount = validate_total(request_in.amount)

        if idempotency_key:
            replay = await self._replay(creditor_id, idempotency_key)
            if replay is not None:
                return replay[1][0]

        debtor = await self.users.get_user_by_id(debtor_id)
        if debtor is None:
            raise NotFoundError("User not found", code="user_not_found")
        if not await self.friendships.is_friend(creditor_id, debtor_id):
            raise AuthorizationError("You can only request money from friends", code="not_friends")

        transaction = Transaction(
            kind=TransactionKind.DIRECT,
            amount=amount,
            title=request_in.title,
            category=request_in.category,
            description=f"Requested {amount} {request_in.category.lower()} from {debtor.username} for {request_in.title}",
            creditor_id=creditor_id,
            debtor_id=debtor_id,
            members=[creditor_id, debtor_id],
            split_type=SplitType.SHARE,
            idempotency_key=idempotency_key
        )
        owe = Owe(
            transaction_id=transaction.id,
            creditor_id=creditor_id,
            debtor_id=debtor_id,
            amount=amount,
            category=request_in.category,
            title=request_in.title,
            description=request_in.description
        )

        async def work(session):
            await self.transactions.insert(transaction, session=session)
            await self.owes.insert_many([owe], session=session)

        try:
            await run_in_transaction(self.db, work)
        except DuplicateKeyError:
            replay = await self._replay(creditor_id, idempotency_key) if idempotency_key else None
            if replay is None:
                raise
            return replay[1][0]

        logger.info("Direct request %s: %s owes %s %s", owe.id, debtor_id, creditor_id, amount)
        return owe

    async def _replay(self, creditor_id: ObjectId, key: str) -> tuple[Transaction, List[Owe]] | None:
        transaction = await self.transactions.find_by_idempotency_key(creditor_id, key)
        if transaction is None:
            return None
        logger.info("Idempotent replay of transaction %s", transaction.id)
        return transaction, await self.owes.list_for_transaction(transaction.id)

    # ----- settlement -----

    async def pay_owe(self, owe_id, payer_id: ObjectId) -> PaymentResult:
        """unpaid -> paid, booking the payer's expense and both balance moves."""
        owe_oid = parse_id(owe_id, "owe_id")
        owe = await self.owes.get(owe_oid)
        if owe is None:
            raise NotFoundError("Owe does not exist", code="owe_not_found")
        if owe.debtor_id != payer_id:
            raise AuthorizationError("Only the debtor can pay this owe", code="not_debtor")
        if owe.is_self_share:
            raise LedgerValidationError("You cannot pay yourself", code="self_payment")
        if owe.paid:
            raise ConflictError("Owe has already been paid", code="already_paid")

        creditor = await self.users.get_user_by_id(owe.creditor_id)
        creditor_name = creditor.name if creditor else str(owe.creditor_id)

        async def work(session):
            paid = await self.owes.mark_paid(owe_oid, session=session)
            if paid is None:
                # Lost the race against a concurrent payment
                raise ConflictError("Owe has already been paid", code="already_paid")

            expense = Expense(
                owner_id=payer_id,
                category=paid.category,
                amount=paid.amount,
                title=paid.title,
                description=f"Paid {paid.amount} to {creditor_name} for owed money",
                source=ExpenseSource.OWE_PAYMENT,
                owe_id=paid.id
            )
            settlement = Transaction(
                kind=TransactionKind.SETTLEMENT,
                amount=paid.amount,
                title=paid.title,
                category=paid.category,
                description=f"Paid {paid.amount} to {creditor_name} for {paid.title}",
                creditor_id=paid.creditor_id,
                debtor_id=payer_id,
                members=[paid.creditor_id, payer_id],
                group_id=paid.group_id,
                owe_id=paid.id
            )
            await self.expenses.insert(expense, session=session)
            await self.transactions.insert(settlement, session=session)
            await self.users.increment_balance(paid.creditor_id, paid.amount, session=session)
            await self.users.increment_balance(payer_id, -paid.amount, session=session)
            return PaymentResult(
                owe=paid,
                expense=expense,
                settlement=settlement,
                balance_delta=BalanceDelta(paid.creditor_id, payer_id, paid.amount)
            )

        result = await run_in_transaction(self.db, work)
        logger.info("Owe %s paid: %s -> %s %s", owe_oid, payer_id, owe.creditor_id, owe.amount)
        return result

    # ----- deletion -----

    async def delete_owe(self, owe_id, requester_id: ObjectId) -> None:
        """
        Remove an unpaid direct request together with its synthetic parent.
        Owes of a group split go away only with their transaction.
        """
        owe_oid = parse_id(owe_id, "owe_id")
        owe = await self.owes.get(owe_oid)
        if owe is None:
            raise NotFoundError("Owe does not exist", code="owe_not_found")
        if owe.creditor_id != requester_id:
            raise AuthorizationError("Only the creditor can delete this owe", code="not_creditor")
        if owe.paid:
            raise ConflictError("Paid owes cannot be deleted", code="owe_settled")

        parent = await self.transactions.get(owe.transaction_id)
        if parent is not None and parent.kind != TransactionKind.DIRECT:
            raise ConflictError("This owe is part of a split; delete the transaction instead", code="owe_belongs_to_split")

        async def work(session):
            if not await self.owes.delete(owe_oid, session=session):
                raise ConflictError("Paid owes cannot be deleted", code="owe_settled")
            if parent is not None:
                await self.transactions.delete(parent.id, session=session)

        await run_in_transaction(self.db, work)
        logger.info("Owe %s deleted by %s", owe_oid, requester_id)

    async def delete_transaction(self, transaction_id, requester_id: ObjectId) -> int:
        """Delete a split and all of its owes. Returns the number of owes removed."""
        transaction_oid = parse_id(transaction_id, "transaction_id")
        transaction = await self.transactions.get(transaction_oid)
        if transaction is None:
            raise NotFoundError("Transaction does not exist", code="transaction_not_found")
        if transaction.creditor_id != requester_id:
            raise AuthorizationError("Only the creditor can delete this transaction", code="not_creditor")
        if transaction.kind == TransactionKind.SETTLEMENT:
            raise ConflictError("Settlement records cannot be deleted", code="settlement_record")

        async def work(session):
            if await self.owes.count_settled([transaction_oid], session=session):
                raise ConflictError("Some owes of this transaction are already paid", code="settled_records")
            removed = await self.owes.delete_for_transactions([transaction_oid], session=session)
            await self.transactions.delete(transaction_oid, session=session)
            return removed

        removed = await run_in_transaction(self.db, work)
        logger.info("Transaction %s deleted with %d owes", transaction_oid, removed)
        return removed

    # ----- reads -----

    async def owes_of_user(self, user_id: ObjectId, paid: bool | None = None) -> List[dict]:
        """What the user owes to others, with each creditor's profile."""
        return await self.owes.list_with_counterpart(user_id, "debtor", paid)

    async def amount_owed_to_user(self, user_id: ObjectId, paid: bool | None = None) -> List[dict]:
        """What others owe the user, with each debtor's profile."""
        return await self.owes.list_with_counterpart(user_id, "creditor", paid)

    async def reconcile_balance(self, user_id: ObjectId, repair: bool = False) -> BalanceReport:
        """
        Recompute the cached balance from settled owes.

        The reads and the repair share one transaction, and the repair is an
        $inc of the drift, so a payment committed in between makes the unit
        conflict and retry instead of being overwritten.
        """
        async def work(session):
            user = await self.users.get_user_by_id(user_id, session=session)
            if user is None:
                raise NotFoundError("User not found", code="user_not_found")

            received = await self.owes.paid_total(user_id, "creditor", session=session)
            paid_out = await self.owes.paid_total(user_id, "debtor", session=session)
            report = BalanceReport(user_id=user_id, cached=user.balance, derived=received - paid_out)
            if repair and report.drift != 0:
                await self.users.increment_balance(user_id, -report.drift, session=session)
                report.repaired = True
            return report

        report = await run_in_transaction(self.db, work)
        if report.drift != 0:
            logger.warning(
                "Balance drift for %s: cached %s, derived %s%s",
                user_id, report.cached, report.derived, " (repaired)" if report.repaired else ""
            )
        return report
