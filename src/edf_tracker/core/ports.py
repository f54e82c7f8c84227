# src/edf_tracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The tracker depends on Protocols instead of concrete implementations.
This keeps storage and the time source swappable and makes testing deterministic.
"""

from datetime import date, datetime
from typing import Protocol

from ..tasks.task_models import Stats, Task


class Clock(Protocol):
    """Source of "now" / "today". SystemClock in production, a fake in tests."""

    def now(self) -> datetime: ...
    def today(self) -> date: ...


class StateRepo(Protocol):
    """
    Persistence adapter.

    Every method may raise PersistenceError; the tracker logs it and keeps going
    with in-memory state.
    """

    def load_tasks(self) -> list[Task]: ...
    def save_tasks(self, tasks: list[Task]) -> None: ...

    def load_stats(self) -> Stats: ...
    def save_stats(self, stats: Stats) -> None: ...

    # Day watcher marker ("last calendar day we ran the daily pass for").
    def load_last_check(self) -> date | None: ...
    def save_last_check(self, day: date) -> None: ...
