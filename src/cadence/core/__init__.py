"""Functional core - pure recurrence and task logic with no I/O."""

from .pattern import Frequency, RecurrencePattern, is_valid_recurrence, describe_pattern
from .tasks import Task, Subtask, filter_instances_of, filter_recurring_parents, is_series_updatable, sort_by_due
from .recurrence import (
    DEFAULT_LOOKAHEAD_DAYS,
    MAX_RECURRENCE_INSTANCES,
    next_occurrence_ms,
    generate_instances,
    needs_extension,
)

__all__ = [
    # Patterns
    "Frequency",
    "RecurrencePattern",
    "is_valid_recurrence",
    "describe_pattern",
    # Tasks
    "Task",
    "Subtask",
    "filter_instances_of",
    "filter_recurring_parents",
    "is_series_updatable",
    "sort_by_due",
    # Recurrence
    "DEFAULT_LOOKAHEAD_DAYS",
    "MAX_RECURRENCE_INSTANCES",
    "next_occurrence_ms",
    "generate_instances",
    "needs_extension",
]
