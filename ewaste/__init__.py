"""Digital Product Passports for e-waste devices.

The package tracks each submitted device through its custody chain (citizen
submission, municipal verification, recycler auction and handover) and keeps
an append-only ledger of every step. The pieces, leaf first:

* ``services.valuation``: the deterministic refurbish/recycle rule and value table.
* ``services.scheduler``: which Friday collection run an item joins.
* ``models`` / ``crud``: SQLAlchemy tables for items, the history ledger and profiles.
* ``services.repository``: the transactional boundary around item + ledger writes.
* ``services.lifecycle``: the state machine callers drive.

``main.bootstrap()`` wires them together.
"""

from __future__ import annotations

from .core.enums import BatteryStatus, Classification, Condition, DeviceType, ItemStatus, UserRole
from .core.errors import (
    ConcurrentModificationError,
    InvalidTransitionError,
    LifecycleError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .services.lifecycle import LifecycleEngine
from .services.repository import ItemRepository, SqlItemRepository

__all__ = [
    "BatteryStatus",
    "Classification",
    "ConcurrentModificationError",
    "Condition",
    "DeviceType",
    "InvalidTransitionError",
    "ItemRepository",
    "ItemStatus",
    "LifecycleEngine",
    "LifecycleError",
    "NotFoundError",
    "PersistenceError",
    "SqlItemRepository",
    "UserRole",
    "ValidationError",
]
