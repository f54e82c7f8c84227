# tests/test_task_lifecycle.py

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import pytest

from edf_tracker.core.errors import TaskNotFoundError, ValidationError
from edf_tracker.tasks.task_lifecycle import complete_task, delete_task, run_daily_pass
from edf_tracker.tasks.task_models import RecurringTask, Stats
from edf_tracker.tasks.task_scheduler import build_projection


def _recurring(store, interval: str = "daily", *, deadline: date | None = None, done: date | None = None):
    task = store.create(title=f"every {interval}", task_type="recurring", recurrence_interval=interval)
    if deadline is not None or done is not None:
        task = replace(task, deadline=deadline or task.deadline, completed_today=done)
        store.put(task)
    return task


def test_fixed_task_past_deadline_expires(store, stats, clock) -> None:
    today = clock.today()
    stale = store.create(title="yesterday", deadline=today - timedelta(days=1))
    due = store.create(title="today", deadline=today)

    report = run_daily_pass(store, stats, clock)

    assert report.expired == [stale.id]
    assert store.find(stale.id) is None
    assert store.find(due.id) is not None
    assert stats.stats == Stats(completed_on_time=0, deleted_or_expired=1, total_finished=1)


def test_overdue_recurring_rolls_forward_from_now_without_stats(store, stats, clock) -> None:
    today = clock.today()
    task = _recurring(store, "daily", deadline=today - timedelta(days=1))

    report = run_daily_pass(store, stats, clock)

    assert report.rolled == [task.id]
    assert store.find(task.id).deadline == today + timedelta(days=1)
    assert stats.stats == Stats()


def test_long_overdue_weekly_rolls_from_now_not_from_old_deadline(store, stats, clock) -> None:
    today = clock.today()
    task = _recurring(store, "weekly", deadline=today - timedelta(days=30))

    run_daily_pass(store, stats, clock)

    assert store.find(task.id).deadline == today + timedelta(days=7)


def test_daily_pass_is_idempotent(store, stats, clock) -> None:
    today = clock.today()
    store.create(title="gone", deadline=today - timedelta(days=3))
    store.create(title="stays", deadline=today + timedelta(days=3))
    _recurring(store, "daily", deadline=today - timedelta(days=2))
    _recurring(store, "weekly", deadline=today, done=today - timedelta(days=7))

    first = run_daily_pass(store, stats, clock)
    tasks_after_first = store.list_tasks()
    stats_after_first = stats.stats

    second = run_daily_pass(store, stats, clock)

    assert first.changed
    assert not second.changed
    assert store.list_tasks() == tasks_after_first
    assert stats.stats == stats_after_first


def test_stale_completion_stamp_reveals_and_rolls_in_one_pass(store, stats, clock) -> None:
    today = clock.today()
    task = _recurring(store, "daily", deadline=today - timedelta(days=5), done=today - timedelta(days=6))

    report = run_daily_pass(store, stats, clock)

    refreshed = store.find(task.id)
    assert report.revealed == [task.id]
    assert report.rolled == [task.id]
    assert refreshed.completed_today is None
    assert refreshed.deadline == today + timedelta(days=1)


def test_complete_fixed_on_time_scenario(store, stats, clock) -> None:
    assert clock.today() == date(2024, 1, 9)
    task = store.create(title="Pay rent", deadline=date(2024, 1, 10))

    result = complete_task(store, stats, task.id, clock)

    assert result.on_time is True
    assert result.removed is True
    assert store.find(task.id) is None
    assert stats.stats == Stats(completed_on_time=1, deleted_or_expired=0, total_finished=1)


def test_complete_fixed_late_counts_as_miss(store, stats, clock) -> None:
    task = store.create(title="late", deadline=clock.today() - timedelta(days=1))

    result = complete_task(store, stats, task.id, clock)

    assert result.on_time is False
    assert stats.stats == Stats(completed_on_time=0, deleted_or_expired=1, total_finished=1)


def test_weekly_cycle_hides_then_reappears(store, stats, clock) -> None:
    day0 = clock.today()
    task = _recurring(store, "weekly")
    assert task.deadline == day0 + timedelta(days=7)

    result = complete_task(store, stats, task.id, clock)

    done = store.find(task.id)
    assert isinstance(done, RecurringTask)
    assert result.on_time is True and result.removed is False
    assert done.completed_today == day0
    assert done.deadline == day0 + timedelta(days=7)
    assert build_projection(store.list_tasks(), day0).recurring == []

    clock.advance(days=7)
    report = run_daily_pass(store, stats, clock)

    back = store.find(task.id)
    assert report.revealed == [task.id]
    assert back.completed_today is None
    assert back.deadline == day0 + timedelta(days=7)
    assert build_projection(store.list_tasks(), clock.today()).recurring == [back]
    assert stats.stats == Stats(completed_on_time=1, deleted_or_expired=0, total_finished=1)


def test_late_recurring_completion_does_not_compound_delay(store, stats, clock) -> None:
    today = clock.today()
    task = _recurring(store, "daily", deadline=today - timedelta(days=3))

    result = complete_task(store, stats, task.id, clock)

    assert result.on_time is False
    assert store.find(task.id).deadline == today + timedelta(days=1)
    assert stats.stats.deleted_or_expired == 1
    assert stats.stats.total_finished == 1


def test_delete_always_counts_as_miss(store, stats, clock) -> None:
    far = store.create(title="far", deadline=clock.today() + timedelta(days=100))
    rec = _recurring(store, "monthly")

    delete_task(store, stats, far.id)
    delete_task(store, stats, rec.id)

    assert store.list_tasks() == []
    assert stats.stats == Stats(completed_on_time=0, deleted_or_expired=2, total_finished=2)


def test_unknown_ids_leave_stats_alone(store, stats, clock) -> None:
    with pytest.raises(TaskNotFoundError):
        complete_task(store, stats, 123, clock)
    with pytest.raises(TaskNotFoundError):
        delete_task(store, stats, 123)
    assert stats.stats == Stats()


def test_recurring_cycle_completes_once_per_day(store, stats, clock) -> None:
    task = _recurring(store, "daily")
    first = complete_task(store, stats, task.id, clock)

    with pytest.raises(ValidationError):
        complete_task(store, stats, task.id, clock)

    assert store.find(task.id) == first.task
    assert stats.stats == Stats(completed_on_time=1, deleted_or_expired=0, total_finished=1)
