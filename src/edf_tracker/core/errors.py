# src/edf_tracker/core/errors.py

from __future__ import annotations

"""
Error taxonomy for the tracker.

None of these is fatal to the process:
- ValidationError / ImportFormatError abort the operation before any mutation,
- PersistenceError is logged and the app keeps working on in-memory state.
"""


class TrackerError(Exception):
    """Base class for all tracker errors."""


class ValidationError(TrackerError, ValueError):
    """Invalid task input, e.g. an empty title."""


class TaskNotFoundError(TrackerError, LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class PersistenceError(TrackerError, RuntimeError):
    """Storage read/write failure."""


class ImportFormatError(TrackerError, ValueError):
    """Malformed backup document."""
