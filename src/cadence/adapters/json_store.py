"""File-based task storage adapter."""

import fcntl
import json
import logging
import os
import tempfile
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from cadence.core.tasks import Task

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the task file cannot be read."""

    pass


@contextmanager
def _file_lock(lock_path: Path) -> Iterator[None]:
    """Block until an exclusive flock on lock_path is held."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    handle = lock_path.open("a+", encoding="utf-8")
    try:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        yield
    finally:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        handle.close()


class JsonTaskStore:
    """
    JSON file task storage.

    Implements TaskStore protocol. Every task lives in a single document,
    {"tasks": [...]}, rewritten on each change through a temp file and an
    atomic replace. Read-modify-write cycles hold an flock on a sibling
    "<name>.lock" file, so separate processes sharing the file (the
    refresher and a CLI call) never interleave their writes.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def locked(self) -> Iterator[None]:
        """
        Hold the store lock across several reads and writes.

        Re-entrant within one store object; the file lock is taken by the
        outermost block only.
        """
        with self._lock:
            self._depth += 1
            try:
                if self._depth == 1:
                    with _file_lock(self.lock_path):
                        yield
                else:
                    yield
            finally:
                self._depth -= 1

    def _load(self) -> list[Task]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
            return [Task.from_dict(item) for item in data.get("tasks", [])]
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to read task store {self.path}: {e}")
            raise StoreError(f"Task store {self.path} is unreadable: {e}") from e

    def _save(self, tasks: list[Task]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = None
        try:
            # Same directory so the replace stays on one filesystem
            with tempfile.NamedTemporaryFile(
                "w", dir=self.path.parent, prefix=f".{self.path.name}.", delete=False, encoding="utf-8"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump({"tasks": [t.to_dict() for t in tasks]}, tf, indent=2)
                tf.flush()
                os.fsync(tf.fileno())
            os.replace(tmp_path, self.path)
        except Exception as e:
            logger.error(f"Failed to write task store {self.path}: {e}")
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise

    def get(self, task_id: str) -> Task | None:
        """Fetch one task. Returns None if not found."""
        for task in self._load():
            if task.id == task_id:
                return task
        return None

    def list_all(self) -> list[Task]:
        return self._load()

    def list_by_parent(self, parent_id: str) -> list[Task]:
        return [t for t in self._load() if t.recurring_parent_id == parent_id]

    def list_recurring_parents(self) -> list[Task]:
        return [t for t in self._load() if t.is_recurring_parent]

    def insert(self, task: Task) -> str:
        return self.insert_many([task])[0]

    def insert_many(self, tasks: list[Task]) -> list[str]:
        """Assign ids to new tasks and append them in a single write."""
        if not tasks:
            return []
        with self.locked():
            existing = self._load()
            ids = []
            for task in tasks:
                task.id = uuid.uuid4().hex
                ids.append(task.id)
            self._save(existing + tasks)
        logger.debug(f"Inserted {len(ids)} task(s) into {self.path}")
        return ids

    def update(self, task: Task) -> None:
        with self.locked():
            tasks = self._load()
            for i, existing in enumerate(tasks):
                if existing.id == task.id:
                    tasks[i] = task
                    break
            else:
                raise KeyError(task.id)
            self._save(tasks)

    def delete(self, task_id: str) -> bool:
        with self.locked():
            tasks = self._load()
            remaining = [t for t in tasks if t.id != task_id]
            if len(remaining) == len(tasks):
                return False
            self._save(remaining)
        return True
