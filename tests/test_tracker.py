# tests/test_tracker.py

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from edf_tracker.core.errors import ImportFormatError, TaskNotFoundError, ValidationError
from edf_tracker.core.tracker import LOAD_FAILED, LOAD_OK, SAVE_FAILED, SAVE_OK, TaskTracker
from edf_tracker.tasks.task_models import FixedTask, RecurringTask, Stats

from .fakes import FailingStateRepo, InMemoryStateRepo


def test_start_loads_and_expires_stale_fixed_tasks(clock, repo) -> None:
    today = clock.today()
    repo.tasks = [
        FixedTask(id=1, title="missed", description="", deadline=today - timedelta(days=2), created_at=""),
        FixedTask(id=2, title="fine", description="", deadline=today + timedelta(days=5), created_at=""),
    ]
    repo.stats = Stats(completed_on_time=1, deleted_or_expired=0, total_finished=1)

    tracker = TaskTracker(clock=clock, repo=repo)
    report = tracker.start()

    assert report.expired == [1]
    assert [t.id for t in tracker.tasks] == [2]
    assert tracker.stats == Stats(completed_on_time=1, deleted_or_expired=1, total_finished=2)
    assert tracker.completion_score == 50
    assert tracker.save_status == SAVE_OK
    # Persisted right away, not on the next mutation.
    assert [t.id for t in repo.tasks] == [2]
    assert repo.stats.total_finished == 2
    assert repo.last_check == today


def test_start_without_changes_does_not_rewrite_tasks(tracker, repo) -> None:
    tracker.start()
    assert tracker.save_status == LOAD_OK
    assert repo.task_saves == 0
    assert repo.stats_saves == 0


def test_check_day_change_fires_once_per_day(tracker, clock, repo) -> None:
    tracker.start()
    assert tracker.check_day_change() is False

    clock.advance(minutes=30)
    assert tracker.check_day_change() is False

    clock.advance(days=1)
    assert tracker.check_day_change() is True
    assert tracker.check_day_change() is False
    assert repo.last_check == clock.today()


def test_day_change_rolls_recurring_task(tracker, clock) -> None:
    tracker.start()
    task = tracker.create_task(title="Stand-up", task_type="recurring", recurrence_interval="daily")
    assert task.deadline == clock.today() + timedelta(days=1)

    clock.advance(days=3)
    assert tracker.check_day_change() is True

    rolled = tracker.find(task.id)
    assert isinstance(rolled, RecurringTask)
    assert rolled.deadline == clock.today() + timedelta(days=1)
    assert tracker.stats == Stats()


def test_mutations_hit_the_repo(tracker, repo, clock) -> None:
    tracker.start()
    task = tracker.create_task(title="Report", deadline=clock.today() + timedelta(days=1))
    assert [t.id for t in repo.tasks] == [task.id]

    tracker.update_task(task.id, title="Quarterly report")
    assert repo.tasks[0].title == "Quarterly report"

    result = tracker.complete_task(task.id)
    assert result.on_time is True
    assert result.removed is True
    assert repo.tasks == []
    assert repo.stats == Stats(completed_on_time=1, deleted_or_expired=0, total_finished=1)

    tracker.reset_stats()
    assert repo.stats == Stats()


def test_delete_counts_as_miss_and_saves(tracker, repo, clock) -> None:
    task = tracker.create_task(title="Maybe", deadline=clock.today() + timedelta(days=9))
    tracker.delete_task(task.id)

    assert tracker.tasks == []
    assert repo.stats == Stats(completed_on_time=0, deleted_or_expired=1, total_finished=1)

    with pytest.raises(TaskNotFoundError):
        tracker.delete_task(task.id)


def test_validation_error_leaves_state_untouched(tracker, repo) -> None:
    with pytest.raises(ValidationError):
        tracker.create_task(title="   ", deadline=None)
    assert tracker.tasks == []
    assert repo.task_saves == 0


def test_failing_repo_degrades_to_memory(clock) -> None:
    tracker = TaskTracker(clock=clock, repo=FailingStateRepo())

    tracker.start()
    assert tracker.save_status == LOAD_FAILED

    task = tracker.create_task(title="Still works", deadline=clock.today())
    assert tracker.save_status == SAVE_FAILED
    assert tracker.find(task.id) == task

    tracker.complete_task(task.id)
    assert tracker.stats.completed_on_time == 1


def test_no_repo_is_memory_only(clock) -> None:
    tracker = TaskTracker(clock=clock)
    tracker.start()
    tracker.create_task(title="x", deadline=clock.today())
    assert tracker.save_status is None
    assert len(tracker.tasks) == 1


def test_export_then_import_into_fresh_tracker(tracker, clock, tmp_path) -> None:
    tracker.create_task(title="Rent", deadline=clock.today() + timedelta(days=1))
    tracker.create_task(title="Gym", task_type="recurring", recurrence_interval="weekly")
    tracker.stats_tracker.record_on_time()

    path = tracker.write_export(tmp_path / "out")
    assert path.name == "edf-scheduler-backup-2024-01-09.json"
    assert not path.with_suffix(".tmp").exists()

    doc = json.loads(path.read_text("utf-8"))
    assert doc["version"] == "v4"
    assert len(doc["tasks"]) == 2

    other = TaskTracker(clock=clock, repo=InMemoryStateRepo())
    asked: list[int] = []
    assert other.read_import(path, lambda n: asked.append(n) or True) is True

    assert asked == [2]
    assert other.tasks == tracker.tasks
    assert other.stats == tracker.stats
    assert other.repo.tasks == tracker.tasks


def test_declined_import_keeps_state(tracker, clock) -> None:
    kept = tracker.create_task(title="Keep me", deadline=clock.today())
    text = json.dumps({"tasks": [], "stats": {"completedOnTime": 9, "deletedOrExpired": 0, "totalFinished": 9}})

    assert tracker.import_document(text, lambda _n: False) is False
    assert tracker.tasks == [kept]
    assert tracker.stats == Stats()


def test_malformed_import_keeps_state_and_skips_confirm(tracker, clock) -> None:
    kept = tracker.create_task(title="Keep me", deadline=clock.today())
    asked: list[int] = []

    with pytest.raises(ImportFormatError):
        tracker.import_document('{"stats": {}}', asked.append)

    assert asked == []
    assert tracker.tasks == [kept]


def test_non_utf8_backup_is_a_format_error(tracker, clock, tmp_path) -> None:
    kept = tracker.create_task(title="Keep me", deadline=clock.today())
    path = tmp_path / "broken.json"
    path.write_bytes(b'{"tasks": [\xff\xfe]}')

    with pytest.raises(ImportFormatError):
        tracker.read_import(path, lambda _n: True)

    assert tracker.tasks == [kept]
