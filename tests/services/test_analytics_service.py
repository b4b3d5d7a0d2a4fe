from datetime import datetime, timezone
from decimal import Decimal

import pytest
from bson import ObjectId

from spendshare.services.analytics_service import AnalyticsService
from tests.conftest import make_cursor


def totals(*amounts):
    return [make_cursor([{"_id": None, "total": Decimal(a)}] if a is not None else []) for a in amounts]


@pytest.mark.asyncio
async def test_expense_comparison(mock_db):
    # week, past week, month, past month, overall
    mock_db.expenses.aggregate.side_effect = totals("150", "100", "400", None, "900")
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)

    result = await AnalyticsService(mock_db).expense_comparison(ObjectId(), now)

    assert result["week_total"] == Decimal("150")
    assert result["past_week_total"] == Decimal("100")
    assert result["past_month_total"] == Decimal("0")
    assert result["overall_total"] == Decimal("900")
    assert result["week_delta"] == "+50.00%"
    assert result["month_delta"] == "+100%"


@pytest.mark.asyncio
async def test_expense_comparison_queries_inclusive_week_range(mock_db):
    owner = ObjectId()
    mock_db.expenses.aggregate.side_effect = totals(None, None, None, None, None)
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)

    result = await AnalyticsService(mock_db).expense_comparison(owner, now)

    week_match = mock_db.expenses.aggregate.call_args_list[0].args[0][0]["$match"]
    assert week_match["owner_id"] == owner
    assert week_match["created_at"]["$gte"] == datetime(2024, 5, 12, tzinfo=timezone.utc)
    assert week_match["created_at"]["$lte"].date() == datetime(2024, 5, 18).date()

    overall_match = mock_db.expenses.aggregate.call_args_list[4].args[0][0]["$match"]
    assert "created_at" not in overall_match

    # Both periods empty still reports +100%
    assert result["week_delta"] == "+100%"


@pytest.mark.asyncio
async def test_visualize(mock_db):
    mock_db.expenses.aggregate.side_effect = [
        make_cursor([{"category": "Food", "total_amount": Decimal("20")}]),
        make_cursor([{"year": 2024, "month": 5, "category": "Food", "total_amount": Decimal("20")}]),
        make_cursor([{"year": 2024, "month": 5, "day": 14, "total_amount": Decimal("20")}]),
    ]
    now = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)

    result = await AnalyticsService(mock_db).visualize(ObjectId(), now)

    assert result["category_breakdown"][0]["category"] == "Food"
    assert result["daily_expense"][0]["day"] == 14

    since = mock_db.expenses.aggregate.call_args_list[0].args[0][0]["$match"]["created_at"]["$gte"]
    assert since == datetime(2024, 4, 17, tzinfo=timezone.utc)
