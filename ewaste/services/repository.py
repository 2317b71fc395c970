"""Persistence boundary used by the lifecycle engine.

The engine only talks to :class:`ItemRepository`. ``transaction()`` hands out an
:class:`ItemStore` whose writes are committed together when the block exits
cleanly and rolled back together otherwise, so an item update can never land
without its ledger entry (or the reverse).

Reads return :class:`PassportOut` snapshots (item joined with its ordered
history) rather than live ORM rows, so callers never hold session state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, ContextManager, Iterator, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.errors import DuplicateResourceIdError, PersistenceError
from ..crud import history as history_crud
from ..crud import items as items_crud
from ..schemas.item import HistoryEntry, HistoryEventOut, ItemRecord, PassportOut

logger = logging.getLogger("ewaste.repository")


class ItemStore(Protocol):
    def insert_item(self, item: ItemRecord) -> None: ...

    def update_item(self, item_id: str, fields: dict[str, Any], expected_version: int | None = None) -> bool: ...

    def get_item(self, item_id: str) -> PassportOut | None: ...

    def list_items_by_owner(self, owner_id: str) -> list[PassportOut]: ...

    def list_all_items(self) -> list[PassportOut]: ...

    def append_history(self, item_id: str, event: HistoryEntry) -> HistoryEventOut: ...

    def get_history(self, item_id: str) -> list[HistoryEventOut]: ...

    def item_exists(self, item_id: str) -> bool: ...


class ItemRepository(Protocol):
    def transaction(self) -> ContextManager[ItemStore]: ...


def to_passport(item) -> PassportOut:
    return PassportOut.model_validate(item, from_attributes=True)


class SqlItemStore:
    """:class:`ItemStore` bound to one SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def insert_item(self, item: ItemRecord) -> None:
        values = item.model_dump(mode="json", include=set(ItemRecord.model_fields))
        try:
            items_crud.insert_item(self._db, values)
        except IntegrityError as exc:
            # A failed flush leaves the session unusable until it is rolled back.
            self._db.rollback()
            if items_crud.item_exists(self._db, item.id):
                raise DuplicateResourceIdError(
                    f"Resource id {item.id} is already taken",
                    details={"item_id": item.id},
                ) from exc
            raise PersistenceError(
                "The store could not insert the item",
                details={"item_id": item.id, "error": str(exc.orig)},
            ) from exc

    def update_item(self, item_id: str, fields: dict[str, Any], expected_version: int | None = None) -> bool:
        values = {key: getattr(value, "value", value) for key, value in fields.items()}
        changed = items_crud.update_item(self._db, item_id, values, expected_version=expected_version)
        # The bulk UPDATE bypasses the identity map; reload on next access.
        self._db.expire_all()
        return changed == 1

    def get_item(self, item_id: str) -> PassportOut | None:
        item = items_crud.get_item(self._db, item_id)
        return to_passport(item) if item else None

    def item_exists(self, item_id: str) -> bool:
        return items_crud.item_exists(self._db, item_id)

    def list_items_by_owner(self, owner_id: str) -> list[PassportOut]:
        return [to_passport(item) for item in items_crud.list_items_by_owner(self._db, owner_id)]

    def list_all_items(self) -> list[PassportOut]:
        return [to_passport(item) for item in items_crud.list_all_items(self._db)]

    def append_history(self, item_id: str, event: HistoryEntry) -> HistoryEventOut:
        row = history_crud.append_history(
            self._db,
            item_id=item_id,
            timestamp=event.timestamp,
            status=event.status.value,
            actor=event.actor,
            note=event.note,
        )
        return HistoryEventOut.model_validate(row, from_attributes=True)

    def get_history(self, item_id: str) -> list[HistoryEventOut]:
        return [
            HistoryEventOut.model_validate(row, from_attributes=True)
            for row in history_crud.get_history(self._db, item_id)
        ]


class SqlItemRepository:
    """Relational :class:`ItemRepository` backed by a session factory."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def transaction(self) -> Iterator[SqlItemStore]:
        db: Session = self._session_factory()
        try:
            yield SqlItemStore(db)
            db.commit()
        except PersistenceError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "repository.transaction_failed",
                exc_info=True,
                extra={"extra_data": {"error": exc.__class__.__name__}},
            )
            raise PersistenceError("The store could not apply the change", details={"error": str(exc)}) from exc
        except BaseException:
            db.rollback()
            raise
        finally:
            db.close()


__all__ = [
    "ItemRepository",
    "ItemStore",
    "SqlItemRepository",
    "SqlItemStore",
    "to_passport",
]
