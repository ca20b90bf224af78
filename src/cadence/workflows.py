"""
Series workflows shared by the CLI and the background refresher.

Each function composes the pure recurrence core with a TaskStore. The
current instant is always passed in; nothing here reads the clock.
"""

import logging
from dataclasses import replace

from .adapters.json_store import JsonTaskStore
from .config import Config
from .core.pattern import is_valid_recurrence
from .core.recurrence import DEFAULT_LOOKAHEAD_DAYS, generate_instances, needs_extension
from .core.tasks import PRIORITIES, Subtask, Task, is_series_updatable
from .core.timeline import add_days_ms, difference_in_days_ms, start_of_day_ms
from .ports.task_store import TaskStore

logger = logging.getLogger(__name__)

# Fields a series-wide update copies from parent to instances
SERIES_FIELDS = ("title", "description", "priority", "subtasks", "tag_ids")

# Fields an individual edit may touch
EDITABLE_FIELDS = SERIES_FIELDS + ("completed", "due_date_ms")


def get_store(config: Config) -> JsonTaskStore:
    """Open the task store named in config."""
    return JsonTaskStore(config.store_file)


class TaskNotFoundError(Exception):
    """Raised when a task id does not exist in the store."""

    pass


class NotRecurringError(Exception):
    """Raised when a series operation targets a task without a pattern."""

    pass


def _require(store: TaskStore, task_id: str) -> Task:
    task = store.get(task_id)
    if task is None:
        raise TaskNotFoundError(f"Task {task_id} not found")
    return task


def _require_parent(store: TaskStore, parent_id: str) -> Task:
    parent = _require(store, parent_id)
    if parent.recurrence is None:
        raise NotRecurringError(f"Task {parent_id} is not a recurring task")
    return parent


def _check_updates(updates: dict, allowed: tuple[str, ...]) -> dict:
    unknown = set(updates) - set(allowed)
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    if "priority" in updates and updates["priority"] not in PRIORITIES:
        raise ValueError(f"Priority must be one of: {', '.join(PRIORITIES)}")
    checked = dict(updates)
    if "subtasks" in checked:
        checked["subtasks"] = [s if isinstance(s, Subtask) else Subtask.from_dict(s) for s in checked["subtasks"]]
    return checked


def _insert_instances(store: TaskStore, parent: Task, instances: list[Task], now_ms: int) -> list[Task]:
    for instance in instances:
        instance.recurring_parent_id = parent.id
        instance.created_at_ms = now_ms
        instance.updated_at_ms = now_ms
    store.insert_many(instances)
    return instances


def create_task(
    store: TaskStore,
    task: Task,
    now_ms: int,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> tuple[Task, list[Task]]:
    """
    Store a new task. Recurring tasks also get their first window of instances.

    Generation starts from the task's due date when it has one, otherwise now.
    Returns (parent, instances).
    """
    task.created_at_ms = now_ms
    task.updated_at_ms = now_ms
    task.is_recurring_parent = task.recurrence is not None
    store.insert(task)

    if task.recurrence is None:
        return task, []

    start = task.due_date_ms if task.due_date_ms is not None else now_ms
    instances = generate_instances(task, start, lookahead_days)
    if not instances:
        logger.info(f"Recurring task {task.id} produced no instances")
        return task, []

    _insert_instances(store, task, instances, now_ms)
    logger.info(f"Created recurring task {task.id} with {len(instances)} instance(s)")
    return task, instances


def generate_instances_for_parent(
    store: TaskStore,
    parent_id: str,
    now_ms: int,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> list[Task]:
    """
    Top up a series so it is materialized through now + lookahead_days.

    A series that already has instances continues from its latest instance
    date, keeping the cadence anchored where it started; only an empty series
    starts from now. Safe to call repeatedly: an occurrence date that already
    has an instance for this parent is never inserted twice, and a pattern
    count caps the series as a whole. Runs under the store lock.
    """
    with store.locked():
        parent = _require_parent(store, parent_id)
        existing = store.list_by_parent(parent_id)
        existing_dates = {i.instance_date_ms for i in existing}
        latest = max((d for d in existing_dates if d is not None), default=None)

        if latest is None:
            candidates = generate_instances(parent, now_ms, lookahead_days)
        else:
            end_of_window = add_days_ms(start_of_day_ms(now_ms), lookahead_days)
            remaining_days = difference_in_days_ms(end_of_window, latest)
            candidates = [
                c
                for c in generate_instances(parent, latest, max(remaining_days, 0))
                if c.instance_date_ms > latest
            ]
        new = [c for c in candidates if c.instance_date_ms not in existing_dates]

        if parent.recurrence.count is not None:
            new = new[: max(0, parent.recurrence.count - len(existing))]

        if not new:
            logger.debug(f"No new instances for series {parent_id}")
            return []

        _insert_instances(store, parent, new, now_ms)
    logger.info(f"Added {len(new)} instance(s) to series {parent_id}")
    return new


def extend_lookahead(
    store: TaskStore,
    now_ms: int,
    window_days: int = DEFAULT_LOOKAHEAD_DAYS,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> dict[str, int]:
    """
    Top up every series whose materialized window is running out.

    Returns parent id -> number of instances added, for series that were extended.
    """
    added = {}
    for parent in store.list_recurring_parents():
        if not is_valid_recurrence(parent.recurrence):
            continue
        instances = store.list_by_parent(parent.id)
        if not needs_extension(instances, now_ms, window_days):
            continue
        new = generate_instances_for_parent(store, parent.id, now_ms, lookahead_days)
        if new:
            added[parent.id] = len(new)
    logger.info(f"Lookahead refresh extended {len(added)} series")
    return added


def update_series(store: TaskStore, parent_id: str, updates: dict, now_ms: int) -> int:
    """
    Apply updates to a parent and its future, non-customized instances.

    Returns the number of instances updated.
    """
    updates = _check_updates(updates, SERIES_FIELDS)
    with store.locked():
        parent = _require_parent(store, parent_id)
        store.update(replace(parent, **updates, updated_at_ms=now_ms))

        count = 0
        for instance in store.list_by_parent(parent_id):
            if not is_series_updatable(instance, now_ms):
                continue
            fields = dict(updates)
            if "subtasks" in fields:
                fields["subtasks"] = [replace(s) for s in fields["subtasks"]]
            store.update(replace(instance, **fields, updated_at_ms=now_ms))
            count += 1

    logger.info(f"Updated series {parent_id}: {count} instance(s) changed")
    return count


def delete_series(store: TaskStore, parent_id: str) -> int:
    """Delete a parent and all of its instances. Returns the number of records removed."""
    with store.locked():
        _require(store, parent_id)
        removed = 0
        for instance in store.list_by_parent(parent_id):
            if store.delete(instance.id):
                removed += 1
        if store.delete(parent_id):
            removed += 1
    logger.info(f"Deleted series {parent_id} ({removed} record(s))")
    return removed


def update_task(store: TaskStore, task_id: str, updates: dict, now_ms: int) -> Task:
    """Edit a single task. Editing a series instance beyond completion marks it customized."""
    updates = _check_updates(updates, EDITABLE_FIELDS)
    with store.locked():
        task = _require(store, task_id)
        updated = replace(task, **updates, updated_at_ms=now_ms)
        if task.is_instance and set(updates) - {"completed"}:
            updated.is_customized = True
        store.update(updated)
    return updated


def toggle_complete(store: TaskStore, task_id: str, now_ms: int) -> bool:
    """Flip a task's completion. Returns the previous state."""
    with store.locked():
        task = _require(store, task_id)
        store.update(replace(task, completed=not task.completed, updated_at_ms=now_ms))
    return task.completed
