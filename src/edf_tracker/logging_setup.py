# src/edf_tracker/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

PACKAGE_LOGGER = "edf_tracker"
LOG_FILE_NAME = "edf.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that write while the user is typing at the prompt. Background output
# interleaves with input(), so the console only shows their problems.
BACKGROUND_LOGGERS: Mapping[str, int] = {
    "edf_tracker.tasks.day_watcher": logging.WARNING,
}


def console_threshold(name: str) -> int:
    """Minimum level a record from logger `name` needs to reach the console."""
    if name in BACKGROUND_LOGGERS:
        return BACKGROUND_LOGGERS[name]
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.NOTSET
    # py.warnings and third-party libraries.
    return logging.ERROR


class _PromptFriendlyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/edf",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route logs to stderr (filtered for the REPL) and to `<log_dir>/edf.log` (everything).

    Call once at startup. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_PromptFriendlyFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
