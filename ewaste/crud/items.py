"""Item row helpers.

These functions only ``flush``; committing is the caller's job so an item
write and its ledger append land in the same transaction.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from ..models.item import Item

# Descriptive attributes are fixed at submission and never updated.
IMMUTABLE_FIELDS = frozenset(
    {
        "id",
        "owner_id",
        "device_type",
        "model",
        "age_years",
        "condition",
        "power_status",
        "battery_status",
        "image_ref",
        "collection_date",
        "created_at",
        "version",
    }
)


def get_item(db: Session, item_id: str) -> Item | None:
    stmt = select(Item).options(selectinload(Item.history)).where(Item.id == item_id)
    return db.execute(stmt.execution_options(populate_existing=True)).scalars().first()


def item_exists(db: Session, item_id: str) -> bool:
    return db.execute(select(Item.id).where(Item.id == item_id)).first() is not None


def list_items_by_owner(db: Session, owner_id: str) -> list[Item]:
    stmt = (
        select(Item)
        .options(selectinload(Item.history))
        .where(Item.owner_id == owner_id)
        .order_by(Item.created_at, Item.id)
    )
    return db.execute(stmt.execution_options(populate_existing=True)).scalars().all()


def list_all_items(db: Session) -> list[Item]:
    stmt = select(Item).options(selectinload(Item.history)).order_by(Item.created_at, Item.id)
    return db.execute(stmt.execution_options(populate_existing=True)).scalars().all()


def insert_item(db: Session, values: dict) -> Item:
    item = Item(**values)
    db.add(item)
    db.flush()
    return item


def update_item(db: Session, item_id: str, fields: dict, expected_version: int | None = None) -> int:
    """Apply ``fields`` to one item and bump its version.

    With ``expected_version`` the update only lands if the stored version still
    matches. Returns the number of rows changed (0 means missing or stale).
    """

    illegal = IMMUTABLE_FIELDS & set(fields)
    if illegal:
        raise ValueError(f"immutable item fields cannot be updated: {', '.join(sorted(illegal))}")
    stmt = update(Item).where(Item.id == item_id)
    if expected_version is not None:
        stmt = stmt.where(Item.version == expected_version)
    stmt = stmt.values(**fields, version=Item.version + 1).execution_options(synchronize_session=False)
    result = db.execute(stmt)
    return result.rowcount
