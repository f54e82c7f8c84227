# src/edf_tracker/tasks/task_models.py

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any, TypeAlias


class TaskType(StrEnum):
    FIXED = "fixed"
    RECURRING = "recurring"

    @classmethod
    def from_wire(cls, raw: Any) -> TaskType:
        # Oldest stored tasks have no taskType at all: they were all one-off tasks.
        if not raw:
            return cls.FIXED
        try:
            return cls(str(raw))
        except ValueError:
            raise ValueError(f"Unknown task type: {raw!r}") from None


class RecurrenceInterval(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, raw: Any) -> RecurrenceInterval:
        if not raw:
            return cls.DAILY
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown recurrence interval: {raw!r}") from None

    @property
    def reappears(self) -> str:
        return {
            RecurrenceInterval.DAILY: "tomorrow",
            RecurrenceInterval.WEEKLY: "next week",
            RecurrenceInterval.MONTHLY: "next month",
        }[self]


@dataclass(slots=True)
class FixedTask:
    """One-off task: removed once completed, or once its deadline has passed."""

    id: int
    title: str
    description: str
    deadline: date
    created_at: str
    completed: bool = False

    @property
    def task_type(self) -> TaskType:
        return TaskType.FIXED

    @property
    def type_label(self) -> str:
        return "Fixed Deadline"


@dataclass(slots=True)
class RecurringTask:
    """
    Task that regenerates its deadline every cycle.

    deadline is the current cycle's due date. completed_today is stamped when the
    current cycle is done and hides the task until the next cycle starts.
    """

    id: int
    title: str
    description: str
    deadline: date
    recurrence_interval: RecurrenceInterval
    created_at: str
    completed_today: date | None = None
    completed: bool = False

    @property
    def task_type(self) -> TaskType:
        return TaskType.RECURRING

    @property
    def type_label(self) -> str:
        return f"Recurring ({self.recurrence_interval.value})"


Task: TypeAlias = FixedTask | RecurringTask


def _parse_date(raw: Any, field: str) -> date:
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw:
        raise ValueError(f"{field} must be a YYYY-MM-DD string, got {raw!r}")
    # Tolerate full ISO timestamps written by older versions.
    return date.fromisoformat(raw[:10])


def task_to_dict(task: Task) -> dict[str, Any]:
    """Wire form shared by the persistence adapter and backup documents."""
    out: dict[str, Any] = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "deadline": task.deadline.isoformat(),
        "completed": task.completed,
        "taskType": task.task_type.value,
        "recurrenceInterval": None,
        "createdAt": task.created_at,
    }
    if isinstance(task, RecurringTask):
        out["recurrenceInterval"] = task.recurrence_interval.value
        if task.completed_today is not None:
            out["completedToday"] = task.completed_today.isoformat()
    return out


def task_from_dict(raw: Any) -> Task:
    """Decode one wire record. Raises ValueError on anything malformed."""
    if not isinstance(raw, dict):
        raise ValueError(f"Task record must be an object, got {type(raw).__name__}")

    task_id = raw.get("id")
    if isinstance(task_id, bool) or not isinstance(task_id, (int, float)):
        raise ValueError(f"Task id must be a number, got {task_id!r}")
    if isinstance(task_id, float) and not (math.isfinite(task_id) and task_id.is_integer()):
        raise ValueError(f"Task id must be a whole number, got {task_id!r}")

    title = raw.get("title")
    if not isinstance(title, str):
        raise ValueError(f"Task {task_id} has no title")

    description = raw.get("description") or ""
    deadline = _parse_date(raw.get("deadline"), "deadline")
    created_at = str(raw.get("createdAt") or "")
    completed = bool(raw.get("completed", False))

    task_type = TaskType.from_wire(raw.get("taskType"))
    if task_type == TaskType.FIXED:
        return FixedTask(
            id=int(task_id),
            title=title,
            description=str(description),
            deadline=deadline,
            created_at=created_at,
            completed=completed,
        )

    completed_today_raw = raw.get("completedToday")
    return RecurringTask(
        id=int(task_id),
        title=title,
        description=str(description),
        deadline=deadline,
        recurrence_interval=RecurrenceInterval.parse(raw.get("recurrenceInterval")),
        created_at=created_at,
        completed_today=(
            _parse_date(completed_today_raw, "completedToday") if completed_today_raw else None
        ),
        completed=completed,
    )


@dataclass(slots=True)
class Stats:
    completed_on_time: int = 0
    deleted_or_expired: int = 0
    total_finished: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "completedOnTime": self.completed_on_time,
            "deletedOrExpired": self.deleted_or_expired,
            "totalFinished": self.total_finished,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Stats:
        if not isinstance(raw, dict):
            raise ValueError(f"Stats record must be an object, got {type(raw).__name__}")
        try:
            return cls(
                completed_on_time=int(raw.get("completedOnTime") or 0),
                deleted_or_expired=int(raw.get("deletedOrExpired") or 0),
                total_finished=int(raw.get("totalFinished") or 0),
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"Invalid stats record: {e}") from None
