"""Recurrence patterns - the declarative repeat rule and its validation."""

from dataclasses import dataclass, field
from enum import Enum


class Frequency(str, Enum):
    """How often a pattern repeats."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


FREQUENCIES = tuple(f.value for f in Frequency)


@dataclass
class RecurrencePattern:
    """
    A repeat rule: "every `interval` `frequency` units".

    days_of_week (Sunday=0) only matters for weekly patterns, day_of_month
    only for monthly ones. end_date_ms is an inclusive upper bound.
    """

    frequency: str
    interval: int = 1
    days_of_week: list[int] = field(default_factory=list)
    day_of_month: int | None = None
    end_date_ms: int | None = None
    count: int | None = None

    def to_dict(self) -> dict:
        data = {"frequency": self.frequency, "interval": self.interval}
        if self.days_of_week:
            data["days_of_week"] = list(self.days_of_week)
        if self.day_of_month is not None:
            data["day_of_month"] = self.day_of_month
        if self.end_date_ms is not None:
            data["end_date_ms"] = self.end_date_ms
        if self.count is not None:
            data["count"] = self.count
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrencePattern":
        return cls(
            frequency=data.get("frequency", ""),
            interval=data.get("interval", 1),
            days_of_week=list(data.get("days_of_week") or []),
            day_of_month=data.get("day_of_month"),
            end_date_ms=data.get("end_date_ms"),
            count=data.get("count"),
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_recurrence(pattern: RecurrencePattern | None) -> bool:
    """
    Check whether a pattern is well-formed enough to generate instances.

    Never raises - anything malformed is simply invalid.
    """
    if pattern is None:
        return False

    if pattern.frequency not in FREQUENCIES:
        return False

    if not _is_int(pattern.interval) or pattern.interval < 1:
        return False

    if pattern.frequency == Frequency.WEEKLY:
        days = pattern.days_of_week
        if not isinstance(days, (list, tuple, set, frozenset)) or not days:
            return False
        if not all(_is_int(d) and 0 <= d <= 6 for d in days):
            return False

    if pattern.frequency == Frequency.MONTHLY:
        day = pattern.day_of_month
        if not _is_int(day) or not 1 <= day <= 31:
            return False

    if pattern.count is not None and (not _is_int(pattern.count) or pattern.count < 1):
        return False

    return True


def describe_pattern(pattern: RecurrencePattern) -> str:
    """Short human-readable label, e.g. "Every 2 weeks"."""
    n = pattern.interval

    match pattern.frequency:
        case Frequency.DAILY:
            return "Daily" if n == 1 else f"Every {n} days"
        case Frequency.WEEKLY:
            if n == 1:
                # Every weekday selected reads as daily
                if len(set(pattern.days_of_week or [])) == 7:
                    return "Daily"
                return "Weekly"
            return f"Every {n} weeks"
        case Frequency.MONTHLY:
            return "Monthly" if n == 1 else f"Every {n} months"
        case Frequency.YEARLY:
            return "Yearly" if n == 1 else f"Every {n} years"
        case _:
            return "Recurring"
