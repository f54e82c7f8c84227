# src/edf_tracker/tasks/stats.py

from __future__ import annotations

import logging

from .task_models import Stats

logger = logging.getLogger(__name__)


def completion_score(stats: Stats) -> int:
    """On-time percentage, rounded half-up; 0 when nothing has finished yet."""
    total = stats.total_finished
    if total <= 0:
        return 0
    return (200 * stats.completed_on_time + total) // (2 * total)


class StatsTracker:
    """
    Process-wide completion counters.

    Only the lifecycle engine (expiry / completion / deletion) and explicit user
    actions (reset, import) mutate it.
    """

    def __init__(self, stats: Stats | None = None) -> None:
        self._stats = stats if stats is not None else Stats()

    @property
    def stats(self) -> Stats:
        return Stats(
            completed_on_time=self._stats.completed_on_time,
            deleted_or_expired=self._stats.deleted_or_expired,
            total_finished=self._stats.total_finished,
        )

    @property
    def score(self) -> int:
        return completion_score(self._stats)

    def record_on_time(self) -> None:
        self._stats.completed_on_time += 1
        self._stats.total_finished += 1

    def record_miss(self, count: int = 1) -> None:
        """Late completion, deletion or expiry."""
        if count <= 0:
            return
        self._stats.deleted_or_expired += count
        self._stats.total_finished += count

    def record(self, *, on_time: bool) -> None:
        if on_time:
            self.record_on_time()
        else:
            self.record_miss()

    def replace(self, stats: Stats) -> None:
        self._stats = Stats(
            completed_on_time=stats.completed_on_time,
            deleted_or_expired=stats.deleted_or_expired,
            total_finished=stats.total_finished,
        )

    def reset(self) -> None:
        self._stats = Stats()
        logger.info("Completion statistics reset")
