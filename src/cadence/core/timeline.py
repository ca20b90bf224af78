"""
Epoch-millisecond timeline shared by the whole engine.

Every occurrence lives on a single UTC timeline expressed as integer
milliseconds. The adapters at the bottom convert to and from `date` and
`datetime` for callers that prefer those.
"""

import time
from datetime import date, datetime, timedelta, timezone

DAY_MS = 24 * 60 * 60 * 1000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def start_of_day_ms(timestamp_ms: int) -> int:
    """Midnight (UTC) of the day containing timestamp_ms."""
    return timestamp_ms - timestamp_ms % DAY_MS


def add_days_ms(timestamp_ms: int, days: int) -> int:
    return timestamp_ms + days * DAY_MS


def days_in_month(year: int, month: int) -> int:
    """Last day of a month (1-based), found as the day before the 1st of the next month."""
    if month == 12:
        first_of_next = date(year + 1, 1, 1)
    else:
        first_of_next = date(year, month + 1, 1)
    return (first_of_next - timedelta(days=1)).day


def valid_day_of_month(year: int, month: int, day: int) -> int:
    """Clamp day to the length of the month, e.g. Feb 31 -> 28 (or 29)."""
    return min(day, days_in_month(year, month))


def add_months_ms(timestamp_ms: int, months: int) -> int:
    """
    Calendar-aware month add.

    The day-of-month is clamped to the target month, so Jan 31 + 1 month
    lands on the last day of February rather than rolling into March.
    Time-of-day is preserved.
    """
    dt = datetime_from_ms(timestamp_ms)
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = valid_day_of_month(year, month, dt.day)
    return ms_from_datetime(dt.replace(year=year, month=month, day=day))


def add_years_ms(timestamp_ms: int, years: int) -> int:
    """Calendar-aware year add (Feb 29 clamps to Feb 28 in common years)."""
    return add_months_ms(timestamp_ms, years * 12)


def day_of_week(timestamp_ms: int) -> int:
    """Weekday index with Sunday=0 ... Saturday=6."""
    return (datetime_from_ms(timestamp_ms).weekday() + 1) % 7


def difference_in_days_ms(later_ms: int, earlier_ms: int) -> int:
    """Whole days between two timestamps, floored."""
    return (later_ms - earlier_ms) // DAY_MS


# ============== Boundary adapters ==============


def ms_from_datetime(value: datetime) -> int:
    """Naive datetimes are read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def ms_from_date(value: date) -> int:
    return (value - _EPOCH.date()).days * DAY_MS


def datetime_from_ms(timestamp_ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=timestamp_ms)


def date_from_ms(timestamp_ms: int) -> date:
    return datetime_from_ms(timestamp_ms).date()


def now_ms() -> int:
    """Current wall-clock instant. Only boundary code should call this."""
    return time.time_ns() // 1_000_000
