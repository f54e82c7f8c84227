# src/edf_tracker/tasks/task_lifecycle.py

from __future__ import annotations

"""
Lifecycle engine.

- run_daily_pass: reveal recurring tasks whose next cycle has started, roll stale
  recurring deadlines forward, expire past-due fixed tasks.
- complete_task / delete_task: the only task mutations that touch Stats.

Every function here is synchronous and leaves store + stats consistent:
validation and lookups happen before the first mutation.
"""

import logging
from dataclasses import dataclass, field, replace

from ..core.clock import next_recurrence_date
from ..core.errors import TaskNotFoundError, ValidationError
from ..core.ports import Clock
from .stats import StatsTracker
from .task_models import FixedTask, RecurringTask, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DailyPassReport:
    revealed: list[int] = field(default_factory=list)
    rolled: list[int] = field(default_factory=list)
    expired: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.revealed or self.rolled or self.expired)


@dataclass(slots=True, frozen=True)
class CompletionResult:
    task: Task
    on_time: bool
    removed: bool


def refresh_recurring_tasks(store: TaskStore, clock: Clock, report: DailyPassReport) -> None:
    today = clock.today()

    for task in store.list_tasks():
        if not isinstance(task, RecurringTask):
            continue

        current = task

        # Next cycle has started: show it again.
        if current.completed_today is not None and today >= current.deadline:
            current = replace(current, completed_today=None)
            report.revealed.append(current.id)

        # Overdue and not acted on: move to the next cycle from *now*. Not a miss yet.
        if current.deadline < today and current.completed_today is None:
            new_deadline = next_recurrence_date(current.recurrence_interval, clock.now())
            logger.info(
                "Recurring task %s rolled over %s -> %s",
                current.id,
                current.deadline,
                new_deadline,
            )
            current = replace(current, deadline=new_deadline)
            report.rolled.append(current.id)

        if current is not task:
            store.put(current)


def expire_fixed_tasks(
    store: TaskStore, stats: StatsTracker, clock: Clock, report: DailyPassReport
) -> None:
    today = clock.today()
    expired = [t for t in store.list_tasks() if isinstance(t, FixedTask) and t.deadline < today]
    for task in expired:
        store.delete(task.id)
        report.expired.append(task.id)

    if expired:
        stats.record_miss(len(expired))
        logger.info("Expired %d fixed task(s): %s", len(expired), report.expired)


def run_daily_pass(store: TaskStore, stats: StatsTracker, clock: Clock) -> DailyPassReport:
    """
    Daily rollover. Reentrant: running it again on the same day is a no-op.
    """
    report = DailyPassReport()
    refresh_recurring_tasks(store, clock, report)
    expire_fixed_tasks(store, stats, clock, report)

    if report.changed:
        logger.info(
            "Daily pass today=%s revealed=%d rolled=%d expired=%d",
            clock.today(),
            len(report.revealed),
            len(report.rolled),
            len(report.expired),
        )
    return report


def complete_task(
    store: TaskStore, stats: StatsTracker, task_id: int, clock: Clock
) -> CompletionResult:
    """
    Finish a task (fixed) or the current cycle (recurring).

    On time iff the current deadline is today or later. A recurring task's next
    deadline is counted from now, so a late completion doesn't compound the delay.
    """
    task = store.find(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)

    today = clock.today()
    if isinstance(task, RecurringTask) and task.completed_today == today:
        raise ValidationError("Task already completed today")
    on_time = task.deadline >= today

    if isinstance(task, RecurringTask):
        updated = replace(
            task,
            completed_today=today,
            deadline=next_recurrence_date(task.recurrence_interval, clock.now()),
        )
        store.put(updated)
        stats.record(on_time=on_time)
        logger.info(
            "Recurring task %s completed on_time=%s next=%s", task.id, on_time, updated.deadline
        )
        return CompletionResult(task=updated, on_time=on_time, removed=False)

    store.delete(task.id)
    stats.record(on_time=on_time)
    logger.info("Fixed task %s completed on_time=%s", task.id, on_time)
    return CompletionResult(task=task, on_time=on_time, removed=True)


def delete_task(store: TaskStore, stats: StatsTracker, task_id: int) -> Task:
    """Explicit deletion never counts as on time, whatever the remaining time."""
    task = store.delete(task_id)
    stats.record_miss()
    logger.info("Task %s deleted (%s)", task.id, task.task_type.value)
    return task
