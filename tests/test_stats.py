# tests/test_stats.py

from __future__ import annotations

from edf_tracker.tasks.stats import StatsTracker, completion_score
from edf_tracker.tasks.task_models import Stats


def test_completion_score_edges() -> None:
    assert completion_score(Stats()) == 0
    assert completion_score(Stats(completed_on_time=3, deleted_or_expired=1, total_finished=4)) == 75
    assert completion_score(Stats(completed_on_time=2, deleted_or_expired=0, total_finished=2)) == 100
    # Half rounds up like a percentage display, not to even.
    assert completion_score(Stats(completed_on_time=1, deleted_or_expired=7, total_finished=8)) == 13


def test_tracker_counters_and_reset() -> None:
    tracker = StatsTracker()
    tracker.record(on_time=True)
    tracker.record(on_time=False)
    tracker.record_miss(2)
    tracker.record_miss(0)

    assert tracker.stats == Stats(completed_on_time=1, deleted_or_expired=3, total_finished=4)
    assert tracker.score == 25

    tracker.reset()
    assert tracker.stats == Stats()
    assert tracker.score == 0


def test_stats_snapshot_is_a_copy() -> None:
    tracker = StatsTracker()
    snap = tracker.stats
    snap.completed_on_time = 99
    assert tracker.stats.completed_on_time == 0
