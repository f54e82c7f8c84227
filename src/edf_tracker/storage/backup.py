# src/edf_tracker/storage/backup.py

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from ..core.errors import ImportFormatError
from ..tasks.task_models import Stats, Task, task_from_dict, task_to_dict

BACKUP_VERSION = "v4"


@dataclass(slots=True, frozen=True)
class ImportedState:
    tasks: list[Task]
    stats: Stats


def build_export_document(tasks: list[Task], stats: Stats, now: datetime) -> dict[str, Any]:
    return {
        "tasks": [task_to_dict(t) for t in tasks],
        "stats": stats.to_dict(),
        "exportDate": now.isoformat(),
        "version": BACKUP_VERSION,
    }


def dumps_document(doc: dict[str, Any]) -> str:
    return json.dumps(doc, ensure_ascii=False, indent=2)


def export_filename(today: date) -> str:
    return f"edf-scheduler-backup-{today.isoformat()}.json"


def parse_import_document(text: str) -> ImportedState:
    """
    Decode a backup document.

    Only "tasks" is mandatory; a document without "stats" imports with zeroed
    counters. Anything malformed raises ImportFormatError before state is touched.
    """
    try:
        doc = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise ImportFormatError(f"Import failed: {e}") from e

    if not isinstance(doc, dict) or "tasks" not in doc:
        raise ImportFormatError("Invalid backup file format")

    raw_tasks = doc.get("tasks")
    if not isinstance(raw_tasks, list):
        raise ImportFormatError("Invalid backup file format: tasks must be a list")

    try:
        tasks = [task_from_dict(item) for item in raw_tasks]
        raw_stats = doc.get("stats")
        stats = Stats.from_dict(raw_stats) if raw_stats else Stats()
    except ValueError as e:
        raise ImportFormatError(f"Import failed: {e}") from e

    ids = [t.id for t in tasks]
    if len(ids) != len(set(ids)):
        raise ImportFormatError("Import failed: duplicate task ids")

    return ImportedState(tasks=tasks, stats=stats)
