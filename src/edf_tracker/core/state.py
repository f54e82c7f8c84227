# src/edf_tracker/core/state.py

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from .tracker import TaskTracker


def _decline(_prompt: str) -> bool:
    return False


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    tracker: TaskTracker

    # Presentation-only toggle (/critical).
    show_critical: bool = False

    # Asked before destructive commands (delete, import, stats reset).
    # The console connector installs an input()-based prompt.
    confirm: Callable[[str], bool] = _decline

    # Serialises tracker access between the console and the day watcher thread.
    lock: threading.Lock = field(default_factory=threading.Lock)
