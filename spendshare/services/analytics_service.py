"""
Analytics over the user's own expense records.

Read-only. Windows are laid out on the local calendar of
ANALYTICS_TIMEZONE and queried as UTC ranges.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from spendshare.core.config import settings
from spendshare.repositories.expense_repo import ExpenseRepository
from spendshare.utils.periods import (
    month_window,
    past_month_window,
    past_week_window,
    percentage_delta,
    start_of_day,
    week_window,
)


class AnalyticsService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.expenses = ExpenseRepository(db)
        self.tz = ZoneInfo(settings.ANALYTICS_TIMEZONE)

    def _local_now(self, now: datetime | None) -> datetime:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self.tz)

    async def _window_total(self, owner_id: ObjectId, window):
        window = window.to_utc()
        return await self.expenses.total(owner_id, window.start, window.end)

    async def expense_comparison(self, owner_id: ObjectId, now: datetime | None = None) -> dict:
        local_now = self._local_now(now)

        week_total = await self._window_total(owner_id, week_window(local_now))
        past_week_total = await self._window_total(owner_id, past_week_window(local_now))
        month_total = await self._window_total(owner_id, month_window(local_now))
        past_month_total = await self._window_total(owner_id, past_month_window(local_now))
        overall_total = await self.expenses.total(owner_id)

        return {
            "week_total": week_total,
            "past_week_total": past_week_total,
            "month_total": month_total,
            "past_month_total": past_month_total,
            "overall_total": overall_total,
            "week_delta": percentage_delta(week_total, past_week_total),
            "month_delta": percentage_delta(month_total, past_month_total)
        }

    async def visualize(self, owner_id: ObjectId, now: datetime | None = None) -> dict:
        local_now = self._local_now(now)
        since = start_of_day(local_now - timedelta(days=settings.CATEGORY_BREAKDOWN_DAYS))
        since = since.astimezone(timezone.utc)
        tz_name = settings.ANALYTICS_TIMEZONE

        return {
            "category_breakdown": await self.expenses.category_totals(owner_id, since),
            "monthly_spending": await self.expenses.monthly_category_totals(owner_id, since, tz_name),
            "daily_expense": await self.expenses.daily_totals(owner_id, tz_name)
        }
