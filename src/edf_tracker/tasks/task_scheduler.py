# src/edf_tracker/tasks/task_scheduler.py

from __future__ import annotations

"""
EDF view.

A pure projection of (tasks, today):
- hides finished tasks and recurring tasks already done for today,
- splits fixed / recurring,
- orders each group Earliest-Deadline-First, ties by id (creation order),
- picks the critical subset (less than CRITICAL_THRESHOLD_DAYS days left).

Never mutates anything; presentation code can call it as often as it likes.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from ..core.clock import days_until
from .task_models import FixedTask, RecurringTask, Task

CRITICAL_THRESHOLD_DAYS = 3


class UrgencyLevel(StrEnum):
    OVERDUE = "overdue"
    DUE_TODAY = "urgent"
    WARNING = "warning"
    CAUTION = "caution"
    SAFE = "safe"


@dataclass(slots=True, frozen=True)
class Urgency:
    level: UrgencyLevel
    days: int
    label: str

    @property
    def is_critical(self) -> bool:
        return self.days < CRITICAL_THRESHOLD_DAYS


@dataclass(slots=True, frozen=True)
class EdfProjection:
    today: date
    fixed: list[Task]
    recurring: list[Task]
    critical: list[Task]

    @property
    def fixed_count(self) -> int:
        return len(self.fixed)

    @property
    def recurring_count(self) -> int:
        return len(self.recurring)

    @property
    def critical_count(self) -> int:
        return len(self.critical)


def days_until_deadline(deadline: date, today: date) -> int:
    """Whole calendar days left; 0 on the due date, negative once overdue."""
    return days_until(deadline, today)


def classify_urgency(deadline: date, today: date) -> Urgency:
    days = days_until_deadline(deadline, today)
    if days < 0:
        return Urgency(UrgencyLevel.OVERDUE, days, f"Overdue by {abs(days)} days")
    if days == 0:
        return Urgency(UrgencyLevel.DUE_TODAY, days, "DUE TODAY")
    if days <= 2:
        return Urgency(UrgencyLevel.WARNING, days, f"{days} days left")
    if days <= 7:
        return Urgency(UrgencyLevel.CAUTION, days, f"{days} days left")
    return Urgency(UrgencyLevel.SAFE, days, f"{days} days left")


def edf_key(task: Task) -> tuple[date, int]:
    return (task.deadline, task.id)


def is_visible(task: Task, today: date) -> bool:
    if task.completed:
        return False
    if isinstance(task, RecurringTask) and task.completed_today == today:
        return False
    return True


def build_projection(tasks: Iterable[Task], today: date) -> EdfProjection:
    active = [t for t in tasks if is_visible(t, today)]

    fixed = sorted((t for t in active if isinstance(t, FixedTask)), key=edf_key)
    recurring = sorted((t for t in active if isinstance(t, RecurringTask)), key=edf_key)
    critical = sorted(
        (t for t in active if days_until_deadline(t.deadline, today) < CRITICAL_THRESHOLD_DAYS),
        key=edf_key,
    )

    return EdfProjection(today=today, fixed=fixed, recurring=recurring, critical=critical)
