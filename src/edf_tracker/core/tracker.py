# src/edf_tracker/core/tracker.py

"""
Application service.

TaskTracker owns the task store, the stats tracker, the (optional) persistence
adapter and the clock. Presentation code talks only to this class:
- mutations go through it and hit a save point afterwards,
- reads go through projection() / completion_score,
- storage failures never propagate: they are logged and reflected in save_status.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from datetime import date
from pathlib import Path

from ..storage.backup import (
    build_export_document,
    dumps_document,
    export_filename,
    parse_import_document,
)
from ..tasks.stats import StatsTracker
from ..tasks.task_lifecycle import (
    CompletionResult,
    DailyPassReport,
    complete_task,
    delete_task,
    run_daily_pass,
)
from ..tasks.task_models import RecurrenceInterval, Stats, Task, TaskType
from ..tasks.task_scheduler import EdfProjection, build_projection
from ..tasks.task_store import TaskStore
from .errors import ImportFormatError, PersistenceError
from .ports import Clock, StateRepo

logger = logging.getLogger(__name__)

ConfirmImport = Callable[[int], bool]

SAVE_OK = "Saved"
SAVE_FAILED = "Save failed"
LOAD_OK = "Data loaded"
LOAD_FAILED = "Load failed"


class TaskTracker:
    def __init__(self, clock: Clock, repo: StateRepo | None = None) -> None:
        self.clock = clock
        self.repo = repo
        self.store = TaskStore(clock)
        self.stats_tracker = StatsTracker()
        self.last_check: date | None = None
        self.save_status: str | None = None

    # ---- save points ----

    def _save_tasks(self) -> None:
        if self.repo is None:
            return
        try:
            self.repo.save_tasks(self.store.list_tasks())
            self.save_status = SAVE_OK
        except PersistenceError:
            logger.exception("Failed to save tasks; keeping in-memory state.")
            self.save_status = SAVE_FAILED

    def _save_stats(self) -> None:
        if self.repo is None:
            return
        try:
            self.repo.save_stats(self.stats_tracker.stats)
        except PersistenceError:
            logger.exception("Failed to save stats; keeping in-memory state.")
            self.save_status = SAVE_FAILED

    def _save_last_check(self, day: date) -> None:
        if self.repo is None:
            return
        try:
            self.repo.save_last_check(day)
        except PersistenceError:
            logger.exception("Failed to save last day check marker.")

    # ---- lifecycle ----

    def load(self) -> None:
        if self.repo is None:
            return
        try:
            tasks = self.repo.load_tasks()
            stats = self.repo.load_stats()
            last_check = self.repo.load_last_check()
        except PersistenceError:
            logger.exception("Failed to load state; starting with in-memory state only.")
            self.save_status = LOAD_FAILED
            return

        self.store.replace_all(tasks)
        self.stats_tracker.replace(stats)
        self.last_check = last_check
        self.save_status = LOAD_OK
        logger.info(
            "Tracker loaded tasks=%d finished=%d", len(self.store), stats.total_finished
        )

    def start(self) -> DailyPassReport:
        """Load persisted state and bring it up to date for today."""
        self.load()
        report = self.run_daily_pass()
        today = self.clock.today()
        if self.last_check != today:
            self.last_check = today
            self._save_last_check(today)
        return report

    def run_daily_pass(self) -> DailyPassReport:
        report = run_daily_pass(self.store, self.stats_tracker, self.clock)
        if report.changed:
            self._save_tasks()
        if report.expired:
            self._save_stats()
        return report

    def check_day_change(self) -> bool:
        """Run the daily pass if the calendar day changed since the last check."""
        today = self.clock.today()
        if self.last_check == today:
            return False
        logger.info("Day changed %s -> %s", self.last_check, today)
        self.last_check = today
        self._save_last_check(today)
        self.run_daily_pass()
        return True

    # ---- reads ----

    @property
    def tasks(self) -> list[Task]:
        return self.store.list_tasks()

    @property
    def stats(self) -> Stats:
        return self.stats_tracker.stats

    @property
    def completion_score(self) -> int:
        return self.stats_tracker.score

    def find(self, task_id: int) -> Task | None:
        return self.store.find(task_id)

    def projection(self) -> EdfProjection:
        return build_projection(self.store.list_tasks(), self.clock.today())

    # ---- commands ----

    def create_task(
        self,
        *,
        title: str,
        description: str = "",
        task_type: TaskType | str = TaskType.FIXED,
        deadline: date | None = None,
        recurrence_interval: RecurrenceInterval | str | None = None,
    ) -> Task:
        task = self.store.create(
            title=title,
            description=description,
            task_type=task_type,
            deadline=deadline,
            recurrence_interval=recurrence_interval,
        )
        self._save_tasks()
        return task

    def update_task(self, task_id: int, **fields) -> Task:
        """Partial edit: pass only the fields to replace (title, description, deadline, recurrence_interval)."""
        task = self.store.update(task_id, **fields)
        self._save_tasks()
        return task

    def delete_task(self, task_id: int) -> Task:
        task = delete_task(self.store, self.stats_tracker, task_id)
        self._save_tasks()
        self._save_stats()
        return task

    def complete_task(self, task_id: int) -> CompletionResult:
        result = complete_task(self.store, self.stats_tracker, task_id, self.clock)
        self._save_tasks()
        self._save_stats()
        return result

    def reset_stats(self) -> None:
        self.stats_tracker.reset()
        self._save_stats()

    # ---- export / import ----

    def export_document(self) -> str:
        doc = build_export_document(self.store.list_tasks(), self.stats, self.clock.now())
        return dumps_document(doc)

    def write_export(self, directory: str | Path) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / export_filename(self.clock.today())
        tmp = path.with_suffix(".tmp")
        tmp.write_text(self.export_document(), "utf-8")
        os.replace(tmp, path)
        logger.info("Exported %d task(s) to %s", len(self.store), path)
        return path

    def import_document(self, text: str, confirm: ConfirmImport | None = None) -> bool:
        """
        Replace tasks and stats wholesale with a backup document.

        Parses first (ImportFormatError leaves state untouched), then asks
        confirm(task_count). Returns False if the user declined.
        """
        imported = parse_import_document(text)
        if confirm is not None and not confirm(len(imported.tasks)):
            logger.info("Import declined (%d task(s))", len(imported.tasks))
            return False

        self.store.replace_all(imported.tasks)
        self.stats_tracker.replace(imported.stats)
        self._save_tasks()
        self._save_stats()
        logger.info("Imported %d task(s)", len(imported.tasks))
        return True

    def read_import(self, path: str | Path, confirm: ConfirmImport | None = None) -> bool:
        try:
            text = Path(path).read_text("utf-8")
        except UnicodeDecodeError as e:
            raise ImportFormatError(f"Import failed: {e}") from e
        return self.import_document(text, confirm)
