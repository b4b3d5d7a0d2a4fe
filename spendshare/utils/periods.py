"""
Reporting windows and period-over-period deltas.

All boundaries are computed on the local calendar of ``now`` (an aware
datetime) and are inclusive at both ends. Weeks start on Sunday.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

PERCENT_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class Window:
    start: datetime
    end: datetime

    def to_utc(self) -> "Window":
        return Window(self.start.astimezone(timezone.utc), self.end.astimezone(timezone.utc))

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)


def week_window(now: datetime) -> Window:
    # weekday(): Monday=0 ... Sunday=6; shift so Sunday is day 0
    days_since_sunday = (now.weekday() + 1) % 7
    first = now - timedelta(days=days_since_sunday)
    last = first + timedelta(days=6)
    return Window(start_of_day(first), end_of_day(last))


def past_week_window(now: datetime) -> Window:
    current = week_window(now)
    return Window(
        start_of_day(current.start - timedelta(days=7)),
        end_of_day(current.end - timedelta(days=7))
    )


def month_window(now: datetime) -> Window:
    last_day = calendar.monthrange(now.year, now.month)[1]
    return Window(
        start_of_day(now.replace(day=1)),
        end_of_day(now.replace(day=last_day))
    )


def past_month_window(now: datetime) -> Window:
    first_of_month = now.replace(day=1)
    return month_window(first_of_month - timedelta(days=1))


def percentage_delta(current: Decimal, previous: Decimal) -> str:
    """
    Signed change from previous to current, e.g. "+12.50%" or "-3.00%".

    A zero previous period always reports "+100%", even when the current
    period is zero as well.
    """
    if previous == 0:
        return "+100%"
    change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    change = change.quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)
    if change == 0:
        change = change.copy_abs()
    sign = "+" if change >= 0 else ""
    return f"{sign}{change}%"
