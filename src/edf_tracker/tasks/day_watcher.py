# src/edf_tracker/tasks/day_watcher.py

from __future__ import annotations

"""
Day watcher.

A low-frequency polling loop that asks the tracker whether the calendar day has
changed and, if so, lets it run the daily pass. This is coalescing, not a precise
midnight trigger: drift is bounded by interval_seconds.

The console REPL blocks on input(), so the CLI runs this loop on a background
thread with its own event loop (see start_day_watcher_in_background).
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class DayChangeTarget(Protocol):
    def check_day_change(self) -> bool: ...


async def run_day_watcher(
        tracker: DayChangeTarget,
        *,
        interval_seconds: float = 60.0,
        stop_event: asyncio.Event | None = None,
        lock: Any | None = None,
        on_rollover: Callable[[], None] | None = None,
) -> None:
    """
    Every interval_seconds:
    - call tracker.check_day_change() (under lock, if given)
    - call on_rollover() when a new day was detected

    Stops when stop_event is set, or when the coroutine/task is cancelled.
    Errors in a tick are logged and the loop keeps going.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        try:
            if lock is not None:
                with lock:
                    changed = tracker.check_day_change()
            else:
                changed = tracker.check_day_change()
        except Exception:
            logger.exception("check_day_change failed")
            changed = False

        if changed and on_rollover is not None:
            try:
                on_rollover()
            except Exception:
                logger.exception("on_rollover callback failed")

        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue

        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)

    logger.info("Day watcher stopped.")


@dataclass(slots=True)
class DayWatcherRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal day watcher stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_day_watcher_in_background(
        tracker: DayChangeTarget,
        *,
        interval_seconds: float = 60.0,
        lock: Any | None = None,
        on_rollover: Callable[[], None] | None = None,
) -> DayWatcherRunner | None:
    """Start run_day_watcher on a daemon thread with its own event loop."""
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_day_watcher(
                    tracker,
                    interval_seconds=interval_seconds,
                    stop_event=stop_event,
                    lock=lock,
                    on_rollover=on_rollover,
                )
            )
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="day-watcher", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Day watcher thread did not initialize properly.")
        return None

    logger.info("Day watcher started (interval=%ss).", interval_seconds)
    return DayWatcherRunner(thread=t, loop=loop, stop_event=stop_event)
