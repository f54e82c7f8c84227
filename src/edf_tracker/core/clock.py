# src/edf_tracker/core/clock.py

from __future__ import annotations

from datetime import date, datetime, timedelta

from ..tasks.task_models import RecurrenceInterval


class SystemClock:
    """Local wall clock. Tests inject their own clock with the same two methods."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    def today(self) -> date:
        return self.now().date()


def add_months(day: date, months: int) -> date:
    """
    Same day-of-month N months later. Days past the end of a shorter month spill
    into the following one (Jan 31 + 1 month -> Mar 2 or Mar 3).
    """
    idx = day.month - 1 + months
    year = day.year + idx // 12
    month = idx % 12 + 1
    return date(year, month, 1) + timedelta(days=day.day - 1)


def next_recurrence_date(interval: RecurrenceInterval, now: datetime | date) -> date:
    """
    Deadline of the next cycle, always counted from "now" (never from an old deadline):
    - daily   -> tomorrow
    - weekly  -> +7 days
    - monthly -> same day next month
    """
    base = now.date() if isinstance(now, datetime) else now

    if interval == RecurrenceInterval.DAILY:
        return base + timedelta(days=1)
    if interval == RecurrenceInterval.WEEKLY:
        return base + timedelta(days=7)
    if interval == RecurrenceInterval.MONTHLY:
        return add_months(base, 1)
    raise ValueError(f"Unknown recurrence interval: {interval!r}")


def days_until(deadline: date, today: date) -> int:
    return (deadline - today).days
