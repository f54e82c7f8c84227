# src/edf_tracker/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, runs the start-up daily pass, then starts:
- the day watcher in a background thread (optional),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.day_watcher import DayWatcherRunner, start_day_watcher_in_background

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    tracker = state.tracker
    if tracker.repo is None:
        return
    try:
        with state.lock:
            tracker.repo.save_tasks(tracker.tasks)
            tracker.repo.save_stats(tracker.stats)
    except Exception:
        logger.exception("Final save failed.")


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (log file %s)...", settings.app_name, log_file)

    state = create_initial_state(settings=settings)
    with state.lock:
        report = state.tracker.start()
    if report.expired:
        logger.info("%d fixed task(s) expired while the app was closed.", len(report.expired))

    watcher: DayWatcherRunner | None = None
    if settings.day_watcher_enabled:
        watcher = start_day_watcher_in_background(
            state.tracker,
            interval_seconds=settings.day_check_interval_seconds,
            lock=state.lock,
        )

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        # The console REPL handles Ctrl+C itself (KeyboardInterrupt from input()).
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError, AttributeError):
        # Some platforms may not support SIGTERM, etc.
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running the day watcher only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if watcher is not None:
            watcher.stop()
            watcher.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
