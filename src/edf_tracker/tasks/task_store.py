# src/edf_tracker/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from typing import Any

from ..core.clock import next_recurrence_date
from ..core.errors import TaskNotFoundError, ValidationError
from ..core.ports import Clock
from .task_models import FixedTask, RecurrenceInterval, RecurringTask, Task, TaskType

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _clean_title(title: str | None) -> str:
    t = (title or "").strip()
    if not t:
        raise ValidationError("Please enter a task title")
    return t


def _coerce_interval(raw: Any) -> RecurrenceInterval:
    try:
        return RecurrenceInterval.parse(raw)
    except ValueError as e:
        raise ValidationError(str(e)) from None


class TaskStore:
    """
    In-memory task collection.

    Order of the underlying list is insertion order (that's what gets persisted);
    display order is computed by the EDF projection.

    The store validates and shapes tasks, but never touches Stats: completion,
    deletion accounting and expiry live in task_lifecycle.
    """

    def __init__(self, clock: Clock, tasks: Iterable[Task] = ()) -> None:
        self._clock = clock
        self._tasks: list[Task] = list(tasks)
        self._last_id = max((t.id for t in self._tasks), default=0)

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- low-level helpers ----

    def _next_id(self) -> int:
        # Millisecond timestamp, bumped when two tasks land in the same millisecond.
        candidate = int(self._clock.now().timestamp() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return self._last_id

    def _index_of(self, task_id: int) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        raise TaskNotFoundError(task_id)

    # ---- public API ----

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def find(self, task_id: int) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def replace_all(self, tasks: Iterable[Task]) -> None:
        self._tasks = list(tasks)
        self._last_id = max([self._last_id, *(t.id for t in self._tasks)])

    def put(self, task: Task) -> None:
        """Replace a task in place (same id, same position)."""
        self._tasks[self._index_of(task.id)] = task

    def create(
        self,
        *,
        title: str,
        description: str = "",
        task_type: TaskType | str = TaskType.FIXED,
        deadline: date | None = None,
        recurrence_interval: RecurrenceInterval | str | None = None,
    ) -> Task:
        """
        Add a task.

        Fixed tasks need an explicit deadline. Recurring tasks ignore any given
        deadline: their first cycle is one interval out from now.
        """
        clean_title = _clean_title(title)
        try:
            kind = TaskType(task_type)
        except ValueError:
            raise ValidationError(f"Unknown task type: {task_type!r}") from None

        now = self._clock.now()
        task: Task
        if kind == TaskType.FIXED:
            if deadline is None:
                raise ValidationError("Please select a deadline")
            task = FixedTask(
                id=self._next_id(),
                title=clean_title,
                description=(description or "").strip(),
                deadline=deadline,
                created_at=now.isoformat(),
            )
        else:
            interval = _coerce_interval(recurrence_interval)
            task = RecurringTask(
                id=self._next_id(),
                title=clean_title,
                description=(description or "").strip(),
                deadline=next_recurrence_date(interval, now),
                recurrence_interval=interval,
                created_at=now.isoformat(),
            )

        self._tasks.append(task)
        logger.debug(
            "Task created id=%s type=%s deadline=%s",
            task.id,
            task.task_type.value,
            task.deadline,
        )
        return task

    def update(
        self,
        task_id: int,
        *,
        title: str | None = _UNSET,
        description: str | None = _UNSET,
        deadline: date | None = _UNSET,
        recurrence_interval: RecurrenceInterval | str | None = _UNSET,
    ) -> Task:
        """
        Edit title/description/deadline/recurrence_interval.

        id, created_at, completed_today and the task type are preserved. Changing a
        recurring task's interval restarts its cycle from now unless a deadline is
        passed explicitly as well.
        """
        current = self._tasks[self._index_of(task_id)]
        changes: dict[str, Any] = {}

        if title is not _UNSET:
            changes["title"] = _clean_title(title)
        if description is not _UNSET:
            changes["description"] = (description or "").strip()

        if deadline is not _UNSET:
            if deadline is None:
                if isinstance(current, FixedTask):
                    raise ValidationError("Please select a deadline")
            else:
                changes["deadline"] = deadline

        if recurrence_interval is not _UNSET:
            if isinstance(current, FixedTask):
                raise ValidationError("Fixed tasks have no recurrence interval")
            interval = _coerce_interval(recurrence_interval)
            changes["recurrence_interval"] = interval
            if "deadline" not in changes and interval != current.recurrence_interval:
                changes["deadline"] = next_recurrence_date(interval, self._clock.now())

        if not changes:
            return current

        updated = replace(current, **changes)
        self.put(updated)
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return updated

    def delete(self, task_id: int) -> Task:
        """Permanently remove a task of any type and return it."""
        idx = self._index_of(task_id)
        task = self._tasks.pop(idx)
        logger.debug("Task removed id=%s type=%s", task.id, task.task_type.value)
        return task
