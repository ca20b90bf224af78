"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, field

from .pattern import RecurrencePattern

PRIORITIES = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"


def _priority(value) -> str:
    return value if value in PRIORITIES else DEFAULT_PRIORITY


@dataclass
class Subtask:
    """A checklist item inside a task."""

    id: str
    title: str
    completed: bool = False
    priority: str | None = None
    due_date_ms: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "priority": self.priority,
            "due_date_ms": self.due_date_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Subtask":
        priority = data.get("priority")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            completed=bool(data.get("completed", False)),
            priority=priority if priority in PRIORITIES else None,
            due_date_ms=data.get("due_date_ms"),
        )


@dataclass
class Task:
    """
    A task, a recurring parent, or one materialized instance of a series.

    Instances point back at their parent through recurring_parent_id; the
    parent does not own them and deleting it does not cascade.
    """

    title: str
    priority: str = DEFAULT_PRIORITY
    description: str | None = None
    completed: bool = False
    due_date_ms: int | None = None
    subtasks: list[Subtask] = field(default_factory=list)
    tag_ids: list[str] = field(default_factory=list)
    recurrence: RecurrencePattern | None = None
    is_recurring_parent: bool = False
    recurring_parent_id: str | None = None
    instance_date_ms: int | None = None
    is_customized: bool = False
    id: str | None = None
    created_at_ms: int = 0
    updated_at_ms: int = 0

    @property
    def is_instance(self) -> bool:
        return self.recurring_parent_id is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "priority": self.priority,
            "description": self.description,
            "completed": self.completed,
            "due_date_ms": self.due_date_ms,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "tag_ids": list(self.tag_ids),
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "is_recurring_parent": self.is_recurring_parent,
            "recurring_parent_id": self.recurring_parent_id,
            "instance_date_ms": self.instance_date_ms,
            "is_customized": self.is_customized,
            "created_at_ms": self.created_at_ms,
            "updated_at_ms": self.updated_at_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its stored mapping."""
        recurrence = None
        if data.get("recurrence"):
            recurrence = RecurrencePattern.from_dict(data["recurrence"])
        return cls(
            id=data.get("id"),
            title=data["title"],
            priority=_priority(data.get("priority")),
            description=data.get("description"),
            completed=bool(data.get("completed", False)),
            due_date_ms=data.get("due_date_ms"),
            subtasks=[Subtask.from_dict(s) for s in data.get("subtasks") or []],
            tag_ids=list(data.get("tag_ids") or []),
            recurrence=recurrence,
            is_recurring_parent=bool(data.get("is_recurring_parent", False)),
            recurring_parent_id=data.get("recurring_parent_id"),
            instance_date_ms=data.get("instance_date_ms"),
            is_customized=bool(data.get("is_customized", False)),
            created_at_ms=data.get("created_at_ms", 0),
            updated_at_ms=data.get("updated_at_ms", 0),
        )


def filter_instances_of(tasks: list[Task], parent_id: str) -> list[Task]:
    """Instances belonging to one series."""
    return [t for t in tasks if t.recurring_parent_id == parent_id]


def filter_recurring_parents(tasks: list[Task]) -> list[Task]:
    return [t for t in tasks if t.is_recurring_parent]


def is_series_updatable(instance: Task, now_ms: int) -> bool:
    """
    Whether a series-wide edit should reach this instance.

    Past instances and ones edited by hand keep their own values.
    """
    if instance.instance_date_ms is None:
        return False
    return instance.instance_date_ms >= now_ms and not instance.is_customized


def sort_by_due(tasks: list[Task]) -> list[Task]:
    """
    Sort tasks by due date (ascending), undated tasks last.

    Pure function - no I/O.
    """

    def sort_key(t: Task) -> tuple[int, int]:
        if t.due_date_ms is None:
            return (1, 0)
        return (0, t.due_date_ms)

    return sorted(tasks, key=sort_key)
