"""
Tests for the split calculator.

Covers:
- Shares always add up to the total
- EQUAL rounding (requester absorbs the residue)
- PERCENTAGE and SHARE boundaries
- Participant validation
"""

from decimal import Decimal

import pytest
from bson import ObjectId

from spendshare.core.errors import LedgerValidationError
from spendshare.schemas.split import EqualSplit, PercentageSplit, ShareSplit
from spendshare.utils.split_calculator import compute_shares, to_money, validate_total

REQUESTER = str(ObjectId())
A = str(ObjectId())
B = str(ObjectId())
C = str(ObjectId())


def test_equal_split_three_ways_requester_takes_extra_cent():
    shares = compute_shares(Decimal("100.00"), EqualSplit(members=[A, B]), REQUESTER)

    assert shares == {REQUESTER: Decimal("33.34"), A: Decimal("33.33"), B: Decimal("33.33")}
    assert sum(shares.values()) == Decimal("100.00")


def test_equal_split_even_division():
    shares = compute_shares(Decimal("90"), EqualSplit(members=[A, B]), REQUESTER)

    assert set(shares.values()) == {Decimal("30.00")}


@pytest.mark.parametrize("total", ["0.05", "1.00", "10.01", "99.99", "1234.57"])
@pytest.mark.parametrize("members", [[A], [A, B], [A, B, C]])
def test_equal_split_sum_invariant(total, members):
    shares = compute_shares(Decimal(total), EqualSplit(members=members), REQUESTER)

    assert sum(shares.values()) == Decimal(total)
    assert len(shares) == len(members) + 1


def test_equal_split_too_small_amount_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("0.02"), EqualSplit(members=[A, B]), REQUESTER)
    assert exc.value.code == "share_too_small"


def test_percentage_split_just_under_limit():
    shares = compute_shares(
        Decimal("100"),
        PercentageSplit(shares={A: Decimal("60"), B: Decimal("39")}),
        REQUESTER
    )

    assert shares[REQUESTER] == Decimal("1.00")
    assert shares[A] == Decimal("60.00")
    assert shares[B] == Decimal("39.00")


def test_percentage_split_at_limit_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(
            Decimal("100"),
            PercentageSplit(shares={A: Decimal("60"), B: Decimal("40")}),
            REQUESTER
        )
    assert exc.value.code == "percentage_exceeds_limit"


def test_percentage_split_rounding_absorbed_by_requester():
    shares = compute_shares(
        Decimal("10.00"),
        PercentageSplit(shares={A: Decimal("33.33"), B: Decimal("33.33")}),
        REQUESTER
    )

    assert shares[A] == Decimal("3.33")
    assert shares[REQUESTER] == Decimal("3.34")
    assert sum(shares.values()) == Decimal("10.00")


@pytest.mark.parametrize("percent", ["0", "-5", "101"])
def test_percentage_out_of_range_rejected(percent):
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), PercentageSplit(shares={A: Decimal(percent)}), REQUESTER)
    assert exc.value.code == "invalid_percentage"


def test_share_split_whole_amount_to_member():
    shares = compute_shares(Decimal("100"), ShareSplit(shares={A: Decimal("100")}), REQUESTER)

    assert shares[REQUESTER] == Decimal("0.00")
    assert str(shares[A]) == "100.00"


def test_share_split_over_total_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), ShareSplit(shares={A: Decimal("100.01")}), REQUESTER)
    assert exc.value.code == "shares_exceed_total"


def test_share_split_sub_cent_share_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), ShareSplit(shares={A: Decimal("10.005")}), REQUESTER)
    assert exc.value.code == "invalid_share"


def test_no_members_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), EqualSplit(members=[]), REQUESTER)
    assert exc.value.code == "no_participants"


def test_requester_listed_as_member_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), ShareSplit(shares={REQUESTER: Decimal("10")}), REQUESTER)
    assert exc.value.code == "requester_in_members"


def test_duplicate_member_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), EqualSplit(members=[A, A]), REQUESTER)
    assert exc.value.code == "duplicate_member"


@pytest.mark.parametrize("total", ["0", "-1", "10.001", "NaN"])
def test_invalid_total_rejected(total):
    with pytest.raises(LedgerValidationError) as exc:
        validate_total(Decimal(total))
    assert exc.value.code == "invalid_amount"


def test_to_money_avoids_float_artifacts():
    assert to_money(0.1) == Decimal("0.1")
    assert to_money("12.50") == Decimal("12.50")


def test_percentage_split_near_limit_never_overshoots_total():
    shares = compute_shares(
        Decimal("100"),
        PercentageSplit(shares={A: Decimal("33.335"), B: Decimal("33.335"), C: Decimal("33.325")}),
        REQUESTER
    )

    assert shares[A] == Decimal("33.33")
    assert shares[C] == Decimal("33.32")
    assert shares[REQUESTER] == Decimal("0.02")
    assert sum(shares.values()) == Decimal("100")


@pytest.mark.parametrize("total", ["10.00", "10.01", "99.99", "1234.57"])
@pytest.mark.parametrize("percentages", [
    {A: "50"},
    {A: "33.33", B: "33.33"},
    {A: "33.335", B: "33.335", C: "33.325"},
    {A: "12.5", B: "0.5", C: "86.99"},
])
def test_percentage_split_sum_invariant(total, percentages):
    shares = compute_shares(
        Decimal(total),
        PercentageSplit(shares={key: Decimal(value) for key, value in percentages.items()}),
        REQUESTER
    )

    assert sum(shares.values()) == Decimal(total)
    assert shares[REQUESTER] >= 0
    assert len(shares) == len(percentages) + 1


@pytest.mark.parametrize("total", ["5.00", "100", "1234.57"])
@pytest.mark.parametrize("amounts", [{A: "5"}, {A: "1.25", B: "2.5"}, {A: "0.01", B: "0.01", C: "4.98"}])
def test_share_split_sum_invariant(total, amounts):
    shares = compute_shares(
        Decimal(total),
        ShareSplit(shares={key: Decimal(value) for key, value in amounts.items()}),
        REQUESTER
    )

    assert sum(shares.values()) == Decimal(total)
    for key in amounts:
        assert shares[key].as_tuple().exponent == -2


def test_duplicate_member_in_other_case_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), ShareSplit(shares={A: Decimal("10"), A.upper(): Decimal("10")}), REQUESTER)
    assert exc.value.code == "duplicate_member"


def test_requester_in_other_case_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), EqualSplit(members=[A, REQUESTER.upper()]), REQUESTER)
    assert exc.value.code == "requester_in_members"


def test_member_keys_come_back_lower_case():
    shares = compute_shares(Decimal("30"), EqualSplit(members=[A.upper()]), REQUESTER)

    assert set(shares) == {REQUESTER, A}


@pytest.mark.parametrize("total", ["1e30", "1000000000000.01", "123456789012345678901234567890123456"])
def test_oversized_total_rejected(total):
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal(total), ShareSplit(shares={A: Decimal("1")}), REQUESTER)
    assert exc.value.code == "invalid_amount"


def test_oversized_share_rejected():
    with pytest.raises(LedgerValidationError) as exc:
        compute_shares(Decimal("100"), ShareSplit(shares={A: Decimal("1e40")}), REQUESTER)
    assert exc.value.code == "invalid_share"
