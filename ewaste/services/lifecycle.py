"""Item lifecycle state machine.

Every operation runs as one unit of work against the repository: read the item
with its ledger, check the transition, compute the next state, then write the
item and append exactly one ledger entry inside the same transaction.

Custody chain::

    SUBMITTED -> SCHEDULED -> COLLECTED_BY_CITIZEN -> VERIFIED
              -> ASSIGNED_TO_RECYCLER -> HANDED_OVER (terminal)

``PRIORITY_COLLECTION`` sits beside ``SCHEDULED`` and is entered through the
expedite signal.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import datetime
from typing import Any, Callable, NamedTuple
from zoneinfo import ZoneInfo

from pydantic import ValidationError as PydanticValidationError

from ..core.enums import (
    STATUS_RANK,
    TERMINAL_STATUSES,
    Classification,
    ItemStatus,
    parse_choice,
)
from ..core.errors import (
    ConcurrentModificationError,
    DuplicateResourceIdError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..core.identifiers import generate_resource_id, normalize_resource_id
from ..core.logging import operation_context
from ..core.settings import AppSettings, get_settings
from ..schemas.item import HistoryEntry, ItemRecord, ItemSubmission, PassportOut
from .repository import ItemRepository, ItemStore
from .scheduler import next_collection_slot
from .timecalc import parse_iso, strictly_after, to_iso, utcnow
from .valuation import classify, estimate_value

logger = logging.getLogger("ewaste.lifecycle")

NOTE_PASSPORT_CREATED = "Digital Product Passport Created"
NOTE_CITIZEN_HANDOVER = "Citizen confirmed handover"
NOTE_VERIFIED = "Physically Verified"
NOTE_PICKUP = "Physical pickup confirmed"
NOTE_EXPEDITED = "Collection expedited"


class Transition(NamedTuple):
    target: ItemStatus
    allowed_from: frozenset[ItemStatus]


TRANSITIONS: dict[str, Transition] = {
    "expedite_collection": Transition(
        ItemStatus.PRIORITY_COLLECTION,
        frozenset({ItemStatus.SCHEDULED}),
    ),
    "mark_given_by_citizen": Transition(
        ItemStatus.COLLECTED_BY_CITIZEN,
        frozenset({ItemStatus.SCHEDULED, ItemStatus.PRIORITY_COLLECTION, ItemStatus.COLLECTED_BY_CITIZEN}),
    ),
    "verify_collection": Transition(
        ItemStatus.VERIFIED,
        frozenset(
            {
                ItemStatus.SCHEDULED,
                ItemStatus.PRIORITY_COLLECTION,
                ItemStatus.COLLECTED_BY_CITIZEN,
                ItemStatus.VERIFIED,
            }
        ),
    ),
    "place_binding_bid": Transition(
        ItemStatus.ASSIGNED_TO_RECYCLER,
        frozenset({ItemStatus.VERIFIED}),
    ),
    "confirm_pickup": Transition(
        ItemStatus.HANDED_OVER,
        frozenset({ItemStatus.ASSIGNED_TO_RECYCLER}),
    ),
}

# plan(current) -> (extra item fields, ledger note, ledger actor)
Plan = Callable[[PassportOut], "tuple[dict[str, Any], str | None, str]"]


def _require_text(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={"field": field})
    return value.strip()


def _format_amount(amount: float) -> str:
    text = repr(float(amount))
    return text[:-2] if text.endswith(".0") else text


class LifecycleEngine:
    """Validates and executes item lifecycle transitions."""

    def __init__(
        self,
        repository: ItemRepository,
        *,
        settings: AppSettings | None = None,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._repository = repository
        self.settings = settings or get_settings()
        self._clock = clock or utcnow
        self._rng = rng

    # ---------- valuation helpers ----------

    def _estimate(self, device_type, classification) -> float:
        return estimate_value(
            device_type,
            classification,
            rates=self.settings.MARKET_RATES,
            multiplier=self.settings.REFURBISH_MULTIPLIER,
            min_base_rate=self.settings.MIN_BASE_RATE,
        )

    def _now(self) -> datetime:
        return self._clock()

    # ---------- creation ----------

    def submit(
        self,
        owner_id: str,
        device_type: str,
        model: str,
        age_years: float | None,
        condition: str,
        power_status: bool,
        battery_status: str,
        image_ref: str | None = None,
        *,
        actor_name: str,
    ) -> PassportOut:
        """Create a passport for a newly submitted device.

        The item is stored as ``SCHEDULED`` with two ledger entries: the
        citizen's ``SUBMITTED`` event and the system's ``SCHEDULED`` event.
        """

        actor = _require_text(actor_name, "actor_name")
        try:
            submission = ItemSubmission(
                owner_id=owner_id,
                device_type=device_type,
                model=model,
                age_years=age_years,
                condition=condition,
                power_status=power_status,
                battery_status=battery_status,
                image_ref=image_ref,
            )
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid item submission",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        classification = classify(submission.power_status, submission.condition, submission.age_years)
        value = self._estimate(submission.device_type, classification)

        submitted_at = self._now()
        local_now = submitted_at.astimezone(ZoneInfo(self.settings.TZ))
        collection_date = next_collection_slot(local_now, self.settings.COLLECTION_WEEKDAY)
        scheduled_at = strictly_after(self._now(), submitted_at)

        record = ItemRecord(
            id="",
            **submission.model_dump(),
            status=ItemStatus.SCHEDULED,
            classification=classification,
            estimated_value=value,
            collection_date=collection_date.isoformat(),
            created_at=to_iso(submitted_at),
            updated_at=to_iso(scheduled_at),
        )
        entries = [
            HistoryEntry(
                timestamp=to_iso(submitted_at),
                status=ItemStatus.SUBMITTED,
                actor=actor,
                note=NOTE_PASSPORT_CREATED,
            ),
            HistoryEntry(
                timestamp=to_iso(scheduled_at),
                status=ItemStatus.SCHEDULED,
                actor=self.settings.SYSTEM_ACTOR,
                note=f"Auto-scheduled. Class: {classification.value}",
            ),
        ]

        with operation_context(actor):
            passport = self._insert_with_fresh_id(record, entries)
            logger.info(
                "item.submitted",
                extra={
                    "extra_data": {
                        "item_id": passport.id,
                        "owner_id": passport.owner_id,
                        "classification": passport.classification.value,
                        "estimated_value": passport.estimated_value,
                        "collection_date": passport.collection_date,
                    }
                },
            )
        return passport

    def _insert_with_fresh_id(self, record: ItemRecord, entries: list[HistoryEntry]) -> PassportOut:
        attempts = self.settings.RESOURCE_ID_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            item_id = generate_resource_id(self.settings.RESOURCE_ID_PREFIX, self._rng)
            try:
                with self._repository.transaction() as store:
                    if store.item_exists(item_id):
                        raise DuplicateResourceIdError(
                            f"Resource id {item_id} is already taken",
                            details={"item_id": item_id},
                        )
                    store.insert_item(record.model_copy(update={"id": item_id}))
                    for entry in entries:
                        store.append_history(item_id, entry)
                    passport = store.get_item(item_id)
            except DuplicateResourceIdError:
                logger.warning(
                    "item.id_collision",
                    extra={"extra_data": {"item_id": item_id, "attempt": attempt}},
                )
                continue
            return passport
        raise PersistenceError(
            f"Could not allocate a unique resource id after {attempts} attempts",
            details={"attempts": attempts},
        )

    # ---------- transitions ----------

    def expedite_collection(self, item_id: str, actor_name: str, reason: str | None = None) -> PassportOut:
        """Apply the external expedite signal to a scheduled item."""

        actor = _require_text(actor_name, "actor_name")
        note = f"{NOTE_EXPEDITED}: {reason.strip()}" if reason and reason.strip() else NOTE_EXPEDITED
        return self._apply(item_id, "expedite_collection", actor, lambda current: ({}, note, actor))

    def mark_given_by_citizen(self, item_id: str, actor_name: str) -> PassportOut:
        actor = _require_text(actor_name, "actor_name")
        return self._apply(
            item_id,
            "mark_given_by_citizen",
            actor,
            lambda current: ({}, NOTE_CITIZEN_HANDOVER, actor),
        )

    def verify_collection(
        self,
        item_id: str,
        actor_name: str,
        classification_override: Classification | str | None = None,
    ) -> PassportOut:
        """Record municipal verification, optionally overriding the classification.

        The estimated value is only recomputed when the final classification
        differs from the stored one.
        """

        actor = _require_text(actor_name, "actor_name")
        override = None
        if classification_override is not None:
            override = parse_choice(Classification, classification_override, "classification_override")

        def plan(current: PassportOut):
            final_class = override or current.classification
            fields: dict[str, Any] = {"classification": final_class}
            if final_class != current.classification:
                fields["estimated_value"] = self._estimate(current.device_type, final_class)
            note = f"Verified with override: {override.value}" if override else NOTE_VERIFIED
            return fields, note, actor

        return self._apply(item_id, "verify_collection", actor, plan)

    def place_binding_bid(self, item_id: str, bidder_name: str, bid_amount: float) -> PassportOut:
        """Assign the item to the first bidder offering more than its estimate.

        There is no auction window or competing-bid comparison: the first
        sufficient bid wins and later bids find the item already assigned.
        """

        bidder = _require_text(bidder_name, "bidder_name")
        if isinstance(bid_amount, bool) or not isinstance(bid_amount, (int, float)) or not math.isfinite(bid_amount):
            raise ValidationError("bid_amount must be a finite number", details={"bid_amount": bid_amount})
        amount = float(bid_amount)

        def plan(current: PassportOut):
            if amount <= current.estimated_value:
                raise ValidationError(
                    f"Bid {_format_amount(amount)} must exceed the estimated value {_format_amount(current.estimated_value)}",
                    details={"item_id": current.id, "bid_amount": amount, "estimated_value": current.estimated_value},
                )
            note = f"Winning Bid: {self.settings.CURRENCY_SYMBOL}{_format_amount(amount)} by {bidder}"
            fields = {"winning_bidder": bidder, "final_bid_amount": amount}
            return fields, note, self.settings.MARKETPLACE_ACTOR

        return self._apply(item_id, "place_binding_bid", bidder, plan)

    def confirm_pickup(self, item_id: str, actor_name: str) -> PassportOut:
        actor = _require_text(actor_name, "actor_name")
        return self._apply(item_id, "confirm_pickup", actor, lambda current: ({}, NOTE_PICKUP, actor))

    def _check_transition(self, current: PassportOut, operation: str) -> Transition:
        transition = TRANSITIONS[operation]
        status = current.status
        backwards = STATUS_RANK[transition.target] < STATUS_RANK[status]
        disallowed = self.settings.STRICT_TRANSITIONS and status not in transition.allowed_from
        if status in TERMINAL_STATUSES or backwards or disallowed:
            raise InvalidTransitionError(current.id, status.value, operation, transition.target.value)
        return transition

    def _apply(self, item_id: str, operation: str, actor: str, plan: Plan) -> PassportOut:
        item_id = normalize_resource_id(_require_text(item_id, "item_id"))
        retries = self.settings.TRANSITION_MAX_RETRIES
        with operation_context(actor):
            for attempt in range(1, retries + 1):
                with self._repository.transaction() as store:
                    outcome = self._apply_once(store, item_id, operation, plan)
                if outcome is not None:
                    previous, passport = outcome
                    logger.info(
                        "item.transition",
                        extra={
                            "extra_data": {
                                "item_id": item_id,
                                "operation": operation,
                                "from": previous.value,
                                "to": passport.status.value,
                            }
                        },
                    )
                    return passport
                logger.warning(
                    "item.concurrent_modification",
                    extra={"extra_data": {"item_id": item_id, "operation": operation, "attempt": attempt}},
                )
        raise ConcurrentModificationError(
            f"Item {item_id} kept changing while applying {operation}",
            details={"item_id": item_id, "operation": operation, "attempts": retries},
        )

    def _apply_once(
        self, store: ItemStore, item_id: str, operation: str, plan: Plan
    ) -> tuple[ItemStatus, PassportOut] | None:
        current = store.get_item(item_id)
        if current is None:
            raise NotFoundError(item_id)
        transition = self._check_transition(current, operation)
        fields, note, ledger_actor = plan(current)

        last = current.latest_event
        at = strictly_after(self._now(), parse_iso(last.timestamp) if last else None)
        fields = {**fields, "status": transition.target, "updated_at": to_iso(at)}
        expected = current.version if self.settings.OPTIMISTIC_LOCKING else None
        if not store.update_item(item_id, fields, expected_version=expected):
            return None
        store.append_history(
            item_id,
            HistoryEntry(timestamp=to_iso(at), status=transition.target, actor=ledger_actor, note=note),
        )
        return current.status, store.get_item(item_id)

    # ---------- queries ----------

    def query(self, item_id: str) -> PassportOut:
        item_id = normalize_resource_id(_require_text(item_id, "item_id"))
        with self._repository.transaction() as store:
            passport = store.get_item(item_id)
        if passport is None:
            raise NotFoundError(item_id)
        return passport

    def query_by_owner(self, owner_id: str) -> list[PassportOut]:
        owner = _require_text(owner_id, "owner_id")
        with self._repository.transaction() as store:
            return store.list_items_by_owner(owner)

    def query_all(self) -> list[PassportOut]:
        with self._repository.transaction() as store:
            return store.list_all_items()

    def replay(self, item_id: str) -> list[ItemStatus]:
        """Rebuild the item's status sequence from its ledger alone."""

        passport = self.query(item_id)
        return [event.status for event in passport.history]


__all__ = ["LifecycleEngine", "TRANSITIONS", "Transition"]
