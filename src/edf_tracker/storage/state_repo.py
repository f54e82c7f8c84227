# src/edf_tracker/storage/state_repo.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from ..core.errors import PersistenceError
from ..tasks.task_models import Stats, Task, task_from_dict, task_to_dict

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "edf-scheduler-app-"
TASKS_KEY = STORAGE_PREFIX + "tasks-v4"
STATS_KEY = STORAGE_PREFIX + "stats-v4"
LAST_CHECK_KEY = "lastMidnightCheck"


@dataclass(slots=True, frozen=True)
class LegacyKey:
    key: str
    schema_version: int


# Tried in order when the primary key is empty; first non-empty match wins.
LEGACY_TASK_KEYS: tuple[LegacyKey, ...] = (
    LegacyKey("edf-tasks-v3", 3),
    LegacyKey("edf-tasks-v2", 2),
    LegacyKey("edf-tasks", 1),
)
LEGACY_STATS_KEYS: tuple[LegacyKey, ...] = (
    LegacyKey("edf-stats-v3", 3),
    LegacyKey("edf-stats-v2", 2),
    LegacyKey("edf-stats", 1),
)


class SqliteStateRepo:
    """
    SQLite key/value state store.

    Each logical record (task collection, stats, last-check marker) is one JSON
    document under a versioned key, so schema bumps are new keys plus a fallback
    entry in LEGACY_*_KEYS.

    Thread-safety:
    - each method opens its own SQLite connection

    Every failure surfaces as PersistenceError.
    """

    def __init__(self, db_path: str | Path = "state.sqlite3") -> None:
        self._db_path = Path(db_path)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Cannot open state db {self._db_path}: {e}") from e
        logger.info("SqliteStateRepo ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get_raw(self, key: str) -> str | None:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read {key}: {e}") from e
        if row is None:
            return None
        value = row["value"]
        return value if value else None

    def set_raw(self, key: str, value: str) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                   updated_at = excluded.updated_at
                    """,
                    (key, value, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to write {key}: {e}") from e

    def _load_with_migration(
        self, primary: str, fallbacks: tuple[LegacyKey, ...]
    ) -> tuple[str | None, LegacyKey | None]:
        raw = self.get_raw(primary)
        if raw is not None:
            return raw, None
        for legacy in fallbacks:
            raw = self.get_raw(legacy.key)
            if raw is not None:
                logger.info(
                    "Migrating %s (schema v%s) to %s", legacy.key, legacy.schema_version, primary
                )
                return raw, legacy
        return None, None

    @staticmethod
    def _decode(raw: str, key: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Stored {key} is not valid JSON: {e}") from e

    # ---- public API ----

    def load_tasks(self) -> list[Task]:
        raw, migrated_from = self._load_with_migration(TASKS_KEY, LEGACY_TASK_KEYS)
        if raw is None:
            logger.info("No tasks found in storage")
            return []

        data = self._decode(raw, TASKS_KEY)
        if not isinstance(data, list):
            raise PersistenceError(f"Stored tasks must be a list, got {type(data).__name__}")
        try:
            tasks = [task_from_dict(item) for item in data]
        except ValueError as e:
            raise PersistenceError(f"Stored task record is invalid: {e}") from e

        if migrated_from is not None:
            # Adopt under the current key so the next load skips migration.
            try:
                self.save_tasks(tasks)
            except PersistenceError:
                logger.exception("Failed to persist migrated tasks under %s", TASKS_KEY)
        logger.info(
            "Loaded %d task(s)%s",
            len(tasks),
            f" from legacy key {migrated_from.key}" if migrated_from else "",
        )
        return tasks

    def save_tasks(self, tasks: list[Task]) -> None:
        self.set_raw(TASKS_KEY, json.dumps([task_to_dict(t) for t in tasks], ensure_ascii=False))

    def load_stats(self) -> Stats:
        raw, migrated_from = self._load_with_migration(STATS_KEY, LEGACY_STATS_KEYS)
        if raw is None:
            return Stats()
        try:
            stats = Stats.from_dict(self._decode(raw, STATS_KEY))
        except ValueError as e:
            raise PersistenceError(str(e)) from e
        if migrated_from is not None:
            try:
                self.save_stats(stats)
            except PersistenceError:
                logger.exception("Failed to persist migrated stats under %s", STATS_KEY)
        return stats

    def save_stats(self, stats: Stats) -> None:
        self.set_raw(STATS_KEY, json.dumps(stats.to_dict()))

    def load_last_check(self) -> date | None:
        raw = self.get_raw(LAST_CHECK_KEY)
        if raw is None:
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            logger.warning("Ignoring malformed %s=%r", LAST_CHECK_KEY, raw)
            return None

    def save_last_check(self, day: date) -> None:
        self.set_raw(LAST_CHECK_KEY, day.isoformat())
