"""Tests for the background lookahead refresh."""

from datetime import date
from unittest.mock import patch

import pytest

from cadence.adapters.json_store import JsonTaskStore
from cadence.config import Config
from cadence.core.pattern import RecurrencePattern
from cadence.core.tasks import Task
from cadence.core.timeline import ms_from_date
from cadence.scheduler import refresh_lookahead, setup_scheduler
from cadence.workflows import create_task


@pytest.fixture
def store(tmp_path):
    return JsonTaskStore(tmp_path / "tasks.json")


class TestSetupScheduler:
    def test_adds_refresh_job(self, store):
        scheduler = setup_scheduler(store, Config(refresh_time="04:30"))
        job = scheduler.get_job("extend_lookahead")
        assert job is not None
        assert job.max_instances == 1
        assert job.args[0] is store

    def test_invalid_time_adds_no_job(self, store):
        scheduler = setup_scheduler(store, Config(refresh_time="half past four"))
        assert scheduler.get_jobs() == []

    def test_out_of_range_time_adds_no_job(self, store):
        scheduler = setup_scheduler(store, Config(refresh_time="25:00"))
        assert scheduler.get_jobs() == []


class TestRefreshLookahead:
    def test_extends_using_config_windows(self, store):
        day0 = ms_from_date(date(2026, 1, 1))
        task = Task(title="Read", due_date_ms=day0, recurrence=RecurrencePattern(frequency="daily"))
        parent, _ = create_task(store, task, day0, lookahead_days=5)

        config = Config(lookahead_days=20, extension_window_days=10)
        with patch("cadence.scheduler.now_ms", return_value=day0):
            added = refresh_lookahead(store, config)

        assert added == {parent.id: 15}
