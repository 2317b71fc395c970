from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

ONE_TICK = timedelta(microseconds=1)


def parse_iso(ts: str | None, tz: str = "UTC") -> datetime | None:
    """Parse an ISO-8601 timestamp string.
    If naive, attach the provided tz. Returns None if ts is falsy.
    """
    if not ts:
        return None
    dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz))
    return dt


def to_iso(dt: datetime) -> str:
    """Render as fixed-width UTC text (``...T10:00:00.000000Z``).

    The fixed width keeps lexical order equal to chronological order, which the
    ledger relies on for sorting.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def strictly_after(candidate: datetime, previous: datetime | None) -> datetime:
    """Return ``candidate`` or, if it does not sort after ``previous``, one tick later."""
    if previous is None or candidate > previous:
        return candidate
    return previous + ONE_TICK
