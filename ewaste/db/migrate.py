"""Small additive migrations for SQLite stores created by earlier releases."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger("ewaste.db.migrate")

# Only ADD columns and indexes. Ledger rows are never rewritten.
ITEM_COLUMNS: dict[str, str] = {
    "image_ref": "TEXT",
    "winning_bidder": "TEXT",
    "final_bid_amount": "REAL",
    "version": "INTEGER DEFAULT 1 NOT NULL",
    "created_at": "TEXT",
    "updated_at": "TEXT",
}


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite schema up to what the models expect."""

    if engine.dialect.name != "sqlite":
        return

    item_cols = _column_names(engine, "items")
    if not item_cols:
        # Fresh database; create_all builds the current schema.
        return

    for name, dtype in ITEM_COLUMNS.items():
        if name not in item_cols:
            logger.info("migrate.add_column", extra={"extra_data": {"table": "items", "column": name}})
            _add_column_sqlite(engine, "items", f"{name} {dtype}")

    # Backfill bookkeeping timestamps from the ledger for rows that predate them.
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                UPDATE items SET
                    created_at = COALESCE(
                        created_at,
                        (SELECT MIN(timestamp) FROM history WHERE history.item_id = items.id),
                        collection_date
                    ),
                    updated_at = COALESCE(
                        updated_at,
                        (SELECT MAX(timestamp) FROM history WHERE history.item_id = items.id),
                        collection_date
                    )
                WHERE created_at IS NULL OR updated_at IS NULL
                """
            )
        )

    _create_index_if_not_exists(engine, "items", "ix_items_owner_id", ["owner_id"])
    if _column_names(engine, "history"):
        _create_index_if_not_exists(engine, "history", "ix_history_item_timestamp", ["item_id", "timestamp"])
