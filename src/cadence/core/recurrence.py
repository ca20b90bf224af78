"""
Recurrence engine - pure, deterministic occurrence generation.

Turns a RecurrencePattern into concrete occurrence timestamps on the UTC
epoch-millisecond timeline. Nothing here reads the clock or touches storage;
callers pass every instant in explicitly.
"""

from collections.abc import Iterable
from dataclasses import replace

from .pattern import Frequency, RecurrencePattern, is_valid_recurrence
from .tasks import Task
from .timeline import (
    add_days_ms,
    add_months_ms,
    add_years_ms,
    datetime_from_ms,
    day_of_week,
    difference_in_days_ms,
    ms_from_date,
    start_of_day_ms,
    valid_day_of_month,
)

DEFAULT_LOOKAHEAD_DAYS = 90
MAX_RECURRENCE_INSTANCES = 365


def next_occurrence_ms(pattern: RecurrencePattern, from_ms: int) -> int | None:
    """
    Next occurrence strictly after the day containing from_ms.

    Returns None when the pattern cannot say (weekly without weekdays,
    monthly without a day, unknown frequency). Daily and yearly always succeed.
    """
    normalized = start_of_day_ms(from_ms)

    match pattern.frequency:
        case Frequency.DAILY:
            return add_days_ms(normalized, pattern.interval)

        case Frequency.WEEKLY:
            if not pattern.days_of_week:
                return None

            candidate = add_days_ms(normalized, 1)
            for _ in range(pattern.interval * 7):
                if day_of_week(candidate) in pattern.days_of_week:
                    days_since_start = difference_in_days_ms(candidate, normalized)
                    # Any match in the first week counts; later ones only in active weeks
                    if days_since_start < 7 or (days_since_start // 7) % pattern.interval == 0:
                        return candidate
                candidate = add_days_ms(candidate, 1)
            return None

        case Frequency.MONTHLY:
            if not pattern.day_of_month:
                return None

            target = datetime_from_ms(add_months_ms(normalized, pattern.interval))
            day = valid_day_of_month(target.year, target.month, pattern.day_of_month)
            return ms_from_date(target.date().replace(day=day))

        case Frequency.YEARLY:
            return add_years_ms(normalized, pattern.interval)

        case _:
            return None


def _first_occurrence_ms(pattern: RecurrencePattern, start_ms: int) -> int | None:
    """The start day itself when it structurally matches the pattern, else the next one."""
    match pattern.frequency:
        case Frequency.DAILY:
            return start_ms
        case Frequency.WEEKLY if day_of_week(start_ms) in pattern.days_of_week:
            return start_ms
        case Frequency.MONTHLY if datetime_from_ms(start_ms).day == pattern.day_of_month:
            return start_ms
    return next_occurrence_ms(pattern, start_ms)


def _make_instance(parent: Task, occurrence_ms: int) -> Task:
    return Task(
        title=parent.title,
        priority=parent.priority,
        description=parent.description,
        completed=False,
        due_date_ms=occurrence_ms,
        subtasks=[replace(s) for s in parent.subtasks],
        tag_ids=list(parent.tag_ids),
        recurring_parent_id=parent.id,
        instance_date_ms=occurrence_ms,
        is_customized=False,
    )


def generate_instances(
    parent: Task,
    start_ms: int,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    max_instances: int = MAX_RECURRENCE_INSTANCES,
) -> list[Task]:
    """
    Materialize a parent's occurrences inside the lookahead window.

    Generation stops at whichever comes first: the calculator gives up,
    max_instances is reached, the pattern's end date or count is hit, or
    the window [start, start + lookahead_days] is exceeded. Both boundaries
    are inclusive.

    A missing or invalid pattern yields an empty list.
    """
    pattern = parent.recurrence
    if pattern is None or not is_valid_recurrence(pattern):
        return []

    start = start_of_day_ms(start_ms)
    end_of_window = add_days_ms(start, lookahead_days)

    instances: list[Task] = []
    current = _first_occurrence_ms(pattern, start)

    while current is not None and len(instances) < max_instances:
        if pattern.end_date_ms is not None and current > pattern.end_date_ms:
            break
        if pattern.count is not None and len(instances) >= pattern.count:
            break
        if current > end_of_window:
            break

        instances.append(_make_instance(parent, current))
        current = next_occurrence_ms(pattern, current)

    return instances


def needs_extension(
    instances: Iterable[Task],
    now_ms: int,
    window_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> bool:
    """
    Whether the materialized window has shrunk below window_days.

    An empty series always needs extending. Instances without a date are
    ignored; if none has one, the latest date falls back to today.
    """
    instances = list(instances)
    if not instances:
        return True

    today = start_of_day_ms(now_ms)
    dates = [i.instance_date_ms for i in instances if i.instance_date_ms is not None]
    latest = max(dates, default=today)

    return difference_in_days_ms(latest, today) < window_days
