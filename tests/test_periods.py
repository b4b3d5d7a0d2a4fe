from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from spendshare.utils.periods import (
    month_window,
    past_month_window,
    past_week_window,
    percentage_delta,
    week_window,
)

# Wednesday
NOW = datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)


def test_week_starts_on_sunday():
    window = week_window(NOW)

    assert window.start == datetime(2024, 5, 12, tzinfo=timezone.utc)
    assert window.end.date() == datetime(2024, 5, 18).date()
    assert window.end.hour == 23 and window.end.minute == 59


def test_week_window_on_sunday_starts_same_day():
    sunday = datetime(2024, 5, 12, 0, 0, 1, tzinfo=timezone.utc)
    assert week_window(sunday).start.date() == sunday.date()


def test_past_week_is_the_seven_days_before():
    window = past_week_window(NOW)

    assert window.start == datetime(2024, 5, 5, tzinfo=timezone.utc)
    assert window.end.date() == datetime(2024, 5, 11).date()


def test_month_windows():
    current = month_window(NOW)
    previous = past_month_window(NOW)

    assert current.start == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert current.end.date() == datetime(2024, 5, 31).date()
    assert previous.start == datetime(2024, 4, 1, tzinfo=timezone.utc)
    assert previous.end.date() == datetime(2024, 4, 30).date()


def test_past_month_crosses_year():
    previous = past_month_window(datetime(2024, 1, 10, tzinfo=timezone.utc))

    assert previous.start == datetime(2023, 12, 1, tzinfo=timezone.utc)
    assert previous.end.date() == datetime(2023, 12, 31).date()


def test_windows_are_inclusive():
    window = week_window(NOW)
    assert window.contains(window.start)
    assert window.contains(window.end)


def test_local_window_converted_to_utc():
    local_now = NOW.astimezone(ZoneInfo("Asia/Kolkata"))
    window = week_window(local_now).to_utc()

    # Sunday 00:00 in Kolkata is Saturday 18:30 UTC
    assert window.start == datetime(2024, 5, 11, 18, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("current,previous,expected", [
    ("0", "0", "+100%"),
    ("50", "0", "+100%"),
    ("150", "100", "+50.00%"),
    ("50", "100", "-50.00%"),
    ("100", "100", "+0.00%"),
    ("10", "3", "+233.33%"),
])
def test_percentage_delta(current, previous, expected):
    assert percentage_delta(Decimal(current), Decimal(previous)) == expected
