"""Ledger helpers. The ledger is append-only: there is no update or delete here."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.item import HistoryEvent


def append_history(
    db: Session,
    *,
    item_id: str,
    timestamp: str,
    status: str,
    actor: str,
    note: str | None = None,
) -> HistoryEvent:
    event = HistoryEvent(item_id=item_id, timestamp=timestamp, status=status, actor=actor, note=note)
    db.add(event)
    db.flush()
    return event


def get_history(db: Session, item_id: str) -> list[HistoryEvent]:
    """Return an item's events oldest first."""

    stmt = (
        select(HistoryEvent)
        .where(HistoryEvent.item_id == item_id)
        .order_by(HistoryEvent.timestamp, HistoryEvent.id)
    )
    return db.execute(stmt).scalars().all()
