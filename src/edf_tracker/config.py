# src/edf_tracker/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time: every field has a local default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "EDF"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector / background flags ----
    console_enabled: bool
    day_watcher_enabled: bool
    day_check_interval_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    state_db_path: Path
    export_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "edf-tracker") or "edf-tracker"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        day_watcher_enabled = _env_bool(_k("DAY_WATCHER_ENABLED"), True)
        # Once a minute is plenty: rollover only has day granularity.
        day_check_interval_seconds = max(1.0, _env_float(_k("DAY_CHECK_INTERVAL_SECONDS"), 60.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/edf"))
        state_db_path = _env_path(_k("STATE_DB_PATH"), data_dir / "state.sqlite3")
        export_dir = _env_path(_k("EXPORT_DIR"), data_dir / "backups")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            day_watcher_enabled=day_watcher_enabled,
            day_check_interval_seconds=day_check_interval_seconds,
            data_dir=data_dir,
            state_db_path=state_db_path,
            export_dir=export_dir,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
