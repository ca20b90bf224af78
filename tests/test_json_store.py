"""Tests for the JSON file task store."""

import json
import threading
from unittest.mock import patch

import pytest

from cadence.adapters.json_store import JsonTaskStore, StoreError
from cadence.core.tasks import Task


@pytest.fixture
def store(tmp_path):
    return JsonTaskStore(tmp_path / "data" / "tasks.json")


class TestJsonTaskStore:
    def test_missing_file_is_empty(self, store):
        assert store.list_all() == []
        assert store.get("anything") is None

    def test_insert_assigns_id(self, store):
        task = Task(title="Write report")
        task_id = store.insert(task)
        assert task_id
        assert task.id == task_id
        assert store.get(task_id).title == "Write report"

    def test_creates_parent_directories(self, store):
        store.insert(Task(title="x"))
        assert store.path.exists()

    def test_persists_across_instances(self, store):
        task_id = store.insert(Task(title="Persisted", priority="low"))
        reopened = JsonTaskStore(store.path)
        assert reopened.get(task_id).priority == "low"

    def test_insert_many(self, store):
        ids = store.insert_many([Task(title="a"), Task(title="b")])
        assert len(set(ids)) == 2
        assert [t.title for t in store.list_all()] == ["a", "b"]

    def test_insert_many_empty(self, store):
        assert store.insert_many([]) == []
        assert not store.path.exists()

    def test_list_by_parent(self, store):
        store.insert_many([
            Task(title="a", recurring_parent_id="p1"),
            Task(title="b", recurring_parent_id="p2"),
            Task(title="c", recurring_parent_id="p1"),
        ])
        assert [t.title for t in store.list_by_parent("p1")] == ["a", "c"]

    def test_list_recurring_parents(self, store):
        store.insert_many([Task(title="a", is_recurring_parent=True), Task(title="b")])
        assert [t.title for t in store.list_recurring_parents()] == ["a"]

    def test_update(self, store):
        task = Task(title="old")
        store.insert(task)
        task.title = "new"
        store.update(task)
        assert store.get(task.id).title == "new"

    def test_update_missing_raises(self, store):
        with pytest.raises(KeyError):
            store.update(Task(title="ghost", id="missing"))

    def test_delete(self, store):
        task_id = store.insert(Task(title="x"))
        assert store.delete(task_id) is True
        assert store.get(task_id) is None
        assert store.delete(task_id) is False

    def test_corrupt_file_raises(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        with pytest.raises(StoreError):
            store.list_all()

    def test_file_format(self, store):
        store.insert(Task(title="x"))
        data = json.loads(store.path.read_text())
        assert data["tasks"][0]["title"] == "x"


class TestJsonTaskStoreWrites:
    def test_no_temp_files_left_behind(self, store):
        store.insert(Task(title="a"))
        task_id = store.insert(Task(title="b"))
        store.delete(task_id)
        names = sorted(p.name for p in store.path.parent.iterdir())
        assert names == ["tasks.json", "tasks.json.lock"]

    def test_failed_write_keeps_previous_file(self, store):
        store.insert(Task(title="kept"))
        with patch("cadence.adapters.json_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.insert(Task(title="lost"))
        assert [t.title for t in store.list_all()] == ["kept"]
        assert sorted(p.name for p in store.path.parent.iterdir()) == ["tasks.json", "tasks.json.lock"]

    def test_locked_is_reentrant(self, store):
        with store.locked():
            with store.locked():
                store.insert(Task(title="nested"))
        assert [t.title for t in store.list_all()] == ["nested"]

    def test_other_writer_waits_for_lock(self, store):
        other = JsonTaskStore(store.path)
        started = threading.Event()

        def insert_from_other():
            started.set()
            other.insert(Task(title="from other"))

        with store.locked():
            thread = threading.Thread(target=insert_from_other)
            thread.start()
            started.wait(timeout=5)
            thread.join(timeout=0.2)
            assert thread.is_alive()
            store.insert(Task(title="from store"))

        thread.join(timeout=5)
        assert not thread.is_alive()
        assert sorted(t.title for t in store.list_all()) == ["from other", "from store"]
