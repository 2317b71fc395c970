"""Error taxonomy raised by the lifecycle engine.

Every failure a caller can observe derives from :class:`LifecycleError`. The
errors are plain exceptions so that the (excluded) presentation layer can map
them however it likes; ``as_envelope`` renders the same ``code``/``message``/
``details`` shape the HTTP error envelopes used.
"""

from __future__ import annotations

from typing import Any


class LifecycleError(Exception):
    code = "lifecycle_error"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def as_envelope(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(LifecycleError):
    """Malformed or out-of-policy input. Raised before anything is written."""

    code = "validation_error"


class NotFoundError(LifecycleError):
    code = "not_found"

    def __init__(self, item_id: str, kind: str = "Item") -> None:
        super().__init__(f"{kind} {item_id} not found", details={"id": item_id, "kind": kind})
        self.item_id = item_id
        self.kind = kind


class InvalidTransitionError(LifecycleError):
    code = "invalid_transition"

    def __init__(self, item_id: str, current: str, operation: str, target: str) -> None:
        super().__init__(
            f"Cannot {operation} item {item_id}: status {current} cannot move to {target}",
            details={"item_id": item_id, "current": current, "operation": operation, "target": target},
        )
        self.item_id = item_id
        self.current = current
        self.operation = operation
        self.target = target


class PersistenceError(LifecycleError):
    """The store failed to durably apply a write; nothing was applied."""

    code = "persistence_error"


class DuplicateResourceIdError(PersistenceError):
    code = "duplicate_resource_id"


class ConcurrentModificationError(PersistenceError):
    code = "concurrent_modification"


__all__ = [
    "ConcurrentModificationError",
    "DuplicateResourceIdError",
    "InvalidTransitionError",
    "LifecycleError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
