# src/edf_tracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite repo and the system clock into a TaskTracker inside AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.clock import SystemClock
from ..core.errors import PersistenceError
from ..core.ports import Clock, StateRepo
from ..core.state import AppState
from ..core.tracker import TaskTracker
from ..storage.state_repo import SqliteStateRepo

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings/clock injectable makes the app easier to test and avoids hidden
    global config reads. If settings is None, falls back to get_settings().

    The tracker is not started here; call state.tracker.start() once logging is up.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    repo: StateRepo | None
    try:
        repo = SqliteStateRepo(settings.state_db_path)
    except PersistenceError:
        # Degraded mode: everything works, nothing survives a restart.
        logger.exception("State storage unavailable; running in memory only.")
        repo = None

    tracker = TaskTracker(clock=clock or SystemClock(), repo=repo)
    return AppState(settings=settings, tracker=tracker)
