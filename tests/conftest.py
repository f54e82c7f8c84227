# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from edf_tracker.core.state import AppState
from edf_tracker.core.tracker import TaskTracker
from edf_tracker.tasks.stats import StatsTracker
from edf_tracker.tasks.task_store import TaskStore

from .fakes import FakeClock, InMemoryStateRepo

DAY0 = date(2024, 1, 9)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="edf-test",
        log_level="DEBUG",
        console_enabled=False,
        day_watcher_enabled=False,
        day_check_interval_seconds=60.0,
        data_dir=tmp_path,
        state_db_path=tmp_path / "state.sqlite3",
        export_dir=tmp_path / "backups",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(DAY0)


@pytest.fixture()
def store(clock: FakeClock) -> TaskStore:
    return TaskStore(clock)


@pytest.fixture()
def stats() -> StatsTracker:
    return StatsTracker()


@pytest.fixture()
def repo() -> InMemoryStateRepo:
    return InMemoryStateRepo()


@pytest.fixture()
def tracker(clock: FakeClock, repo: InMemoryStateRepo) -> TaskTracker:
    return TaskTracker(clock=clock, repo=repo)


@pytest.fixture()
def state(settings: SimpleNamespace, tracker: TaskTracker) -> AppState:
    """
    AppState wired with a fake clock and an in-memory repo.

    Destructive commands are confirmed by default; tests flip state.confirm to decline.
    """
    return AppState(settings=settings, tracker=tracker, confirm=lambda _prompt: True)
