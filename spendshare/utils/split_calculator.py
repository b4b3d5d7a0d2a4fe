"""
Split calculator - turns one expense total into per-member amounts.

Pure functions, no I/O. Rules:
- The requester is always an implicit participant and is never listed
- Every listed member ends up with a share > 0
- Member shares are rounded down, so the requester's share is whatever is
  left and the shares always add up to the total exactly
- All arithmetic is Decimal, rounded to cents
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Dict, Iterable

from spendshare.core.errors import LedgerValidationError
from spendshare.schemas.split import EqualSplit, PercentageSplit, ShareSplit
from spendshare.utils.ids import canonical_id

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
# Keeps every amount well inside Decimal128 and the default context precision
MAX_AMOUNT = Decimal("1000000000000")


def to_money(value) -> Decimal:
    """Coerce to a Decimal without going through binary floating point."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise LedgerValidationError(f"Not a valid amount: {value!r}", code="invalid_amount")


def _in_cents(value: Decimal) -> bool:
    """True for a positive, bounded amount with at most two decimal places."""
    if not value.is_finite() or value <= 0 or value > MAX_AMOUNT:
        return False
    return value == value.quantize(CENT)


def validate_total(total_amount) -> Decimal:
    total = to_money(total_amount)
    if not total.is_finite() or total <= 0:
        raise LedgerValidationError("Amount must be greater than 0", code="invalid_amount")
    if total > MAX_AMOUNT:
        raise LedgerValidationError(f"Amount cannot exceed {MAX_AMOUNT}", code="invalid_amount")
    if not _in_cents(total):
        raise LedgerValidationError("Amount cannot have more than two decimal places", code="invalid_amount")
    return total


def validate_participants(member_ids: Iterable[str], requester_id: str) -> list[str]:
    """Canonical member ids, so two spellings of one id count as the same member."""
    members = [canonical_id(member_id) for member_id in member_ids]
    if not members:
        raise LedgerValidationError("At least one member must be selected", code="no_participants")
    if canonical_id(requester_id) in members:
        raise LedgerValidationError("The requester is included automatically", code="requester_in_members")
    if len(set(members)) != len(members):
        raise LedgerValidationError("A member was selected more than once", code="duplicate_member")
    return members


def compute_shares(total_amount, policy, requester_id: str) -> Dict[str, Decimal]:
    """
    Return ``{member_id: amount}`` including the requester's own share.

    Member keys come back in canonical form. Raises LedgerValidationError
    for any input that cannot be split.
    """
    total = validate_total(total_amount)

    if isinstance(policy, EqualSplit):
        member_shares = _equal_shares(total, policy.members, requester_id)
    elif isinstance(policy, PercentageSplit):
        member_shares = _percentage_shares(total, policy.shares, requester_id)
    elif isinstance(policy, ShareSplit):
        member_shares = _absolute_shares(total, policy.shares, requester_id)
    else:
        raise LedgerValidationError(f"Unknown split policy: {policy!r}", code="unknown_split_type")

    remainder = total - sum(member_shares.values(), Decimal("0"))
    shares = {requester_id: remainder.quantize(CENT)}
    shares.update(member_shares)
    return shares


def _equal_shares(total: Decimal, member_ids, requester_id: str) -> Dict[str, Decimal]:
    members = validate_participants(member_ids, requester_id)
    headcount = len(members) + 1
    base = (total / headcount).quantize(CENT, rounding=ROUND_DOWN)
    if base <= 0:
        raise LedgerValidationError("Amount is too small to split", code="share_too_small")
    return {member_id: base for member_id in members}


def _percentage_shares(total: Decimal, percentages: Dict[str, Decimal], requester_id: str) -> Dict[str, Decimal]:
    members = validate_participants(percentages.keys(), requester_id)

    percents = {}
    for member_id, raw in zip(members, percentages.values()):
        percent = to_money(raw)
        if not percent.is_finite() or percent <= 0 or percent > HUNDRED:
            raise LedgerValidationError(
                f"Percentage for {member_id} must be between 0 and 100",
                code="invalid_percentage"
            )
        percents[member_id] = percent

    # The requester must keep a part of the bill
    percent_sum = sum(percents.values(), Decimal("0"))
    if percent_sum >= HUNDRED:
        raise LedgerValidationError(
            f"Percentages add up to {percent_sum}, must be less than 100",
            code="percentage_exceeds_limit"
        )

    shares = {}
    for member_id, percent in percents.items():
        share = (total * percent / HUNDRED).quantize(CENT, rounding=ROUND_DOWN)
        if share <= 0:
            raise LedgerValidationError(
                f"Share for {member_id} rounds to zero",
                code="share_too_small"
            )
        shares[member_id] = share
    return shares


def _absolute_shares(total: Decimal, amounts: Dict[str, Decimal], requester_id: str) -> Dict[str, Decimal]:
    members = validate_participants(amounts.keys(), requester_id)

    shares = {}
    for member_id, raw in zip(members, amounts.values()):
        share = to_money(raw)
        if not _in_cents(share):
            raise LedgerValidationError(
                f"Share for {member_id} must be a positive amount in cents",
                code="invalid_share"
            )
        shares[member_id] = share.quantize(CENT)

    share_sum = sum(shares.values(), Decimal("0"))
    if share_sum > total:
        raise LedgerValidationError(
            f"Shares add up to {share_sum}, more than the total {total}",
            code="shares_exceed_total"
        )
    return shares
