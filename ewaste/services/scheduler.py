from __future__ import annotations

from datetime import datetime, timedelta

FRIDAY = 4


def next_collection_slot(from_: datetime, weekday: int = FRIDAY) -> datetime:
    """Return the next collection run after ``from_``.

    Runs happen weekly on ``weekday`` (Monday=0). A submission made on the run
    day itself misses that run and lands exactly one week later. The time of
    day of ``from_`` is kept.
    """
    if not 0 <= weekday <= 6:
        raise ValueError("weekday must be between 0 (Monday) and 6 (Sunday)")
    days_ahead = (weekday - from_.weekday()) % 7 or 7
    return from_ + timedelta(days=days_ahead)
