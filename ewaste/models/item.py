"""SQLAlchemy models for passport items and their history ledger."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Item(Base):
    """One physical device moving through the custody chain."""

    __tablename__ = "items"

    id = Column(Text, primary_key=True)
    owner_id = Column(Text, nullable=False, index=True)
    device_type = Column(Text, nullable=False)
    model = Column(Text, nullable=False)
    age_years = Column(Float, nullable=True)
    condition = Column(Text, nullable=False)
    power_status = Column(Boolean, nullable=False, default=False)
    battery_status = Column(Text, nullable=False)
    image_ref = Column(Text, nullable=True)

    status = Column(Text, nullable=False)
    classification = Column(Text, nullable=False)
    estimated_value = Column(Float, nullable=False, default=0.0)
    collection_date = Column(Text, nullable=False)

    winning_bidder = Column(Text, nullable=True)
    final_bid_amount = Column(Float, nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    history = relationship(
        "HistoryEvent",
        back_populates="item",
        order_by=lambda: [HistoryEvent.timestamp, HistoryEvent.id],
        lazy="selectin",
    )


class HistoryEvent(Base):
    """An append-only ledger row recording one lifecycle transition.

    Rows are only ever inserted; nothing updates or deletes them.
    """

    __tablename__ = "history"
    __table_args__ = (Index("ix_history_item_timestamp", "item_id", "timestamp"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Text, ForeignKey("items.id"), nullable=False, index=True)
    timestamp = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    actor = Column(Text, nullable=False)
    note = Column(Text, nullable=True)

    item = relationship("Item", back_populates="history")


__all__ = ["HistoryEvent", "Item"]
