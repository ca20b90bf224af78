"""Task storage interface."""

from contextlib import AbstractContextManager
from typing import Protocol

from cadence.core.tasks import Task


class TaskStore(Protocol):
    """Interface for persisting tasks, parents and series instances."""

    def locked(self) -> AbstractContextManager[None]:
        """Serialize a read-modify-write sequence against every other writer."""
        ...

    def get(self, task_id: str) -> Task | None:
        """Fetch one task. Returns None if not found."""
        ...

    def list_all(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def list_by_parent(self, parent_id: str) -> list[Task]:
        """Fetch every instance whose recurring_parent_id is parent_id."""
        ...

    def list_recurring_parents(self) -> list[Task]:
        """Fetch tasks flagged as recurring parents."""
        ...

    def insert(self, task: Task) -> str:
        """Store a new task, assign and return its id."""
        ...

    def insert_many(self, tasks: list[Task]) -> list[str]:
        """Store several new tasks in one write."""
        ...

    def update(self, task: Task) -> None:
        """Overwrite an existing task by id."""
        ...

    def delete(self, task_id: str) -> bool:
        """Remove a task. Returns False if it did not exist."""
        ...
