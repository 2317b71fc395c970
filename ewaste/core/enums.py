"""Closed vocabularies shared by the models, schemas and lifecycle engine."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from .errors import ValidationError


class ItemStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    SCHEDULED = "SCHEDULED"
    PRIORITY_COLLECTION = "PRIORITY_COLLECTION"
    COLLECTED_BY_CITIZEN = "COLLECTED_BY_CITIZEN"
    VERIFIED = "VERIFIED"
    ASSIGNED_TO_RECYCLER = "ASSIGNED_TO_RECYCLER"
    HANDED_OVER = "HANDED_OVER"


class Classification(str, Enum):
    RECYCLE = "RECYCLE"
    REFURBISH = "REFURBISH"
    PENDING = "PENDING"


class DeviceType(str, Enum):
    SMARTPHONE = "Smartphone"
    LAPTOP = "Laptop"
    TABLET = "Tablet"
    APPLIANCE = "Appliance"
    ACCESSORY = "Accessory"


class Condition(str, Enum):
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    BROKEN = "Broken"


class BatteryStatus(str, Enum):
    NORMAL = "Normal"
    SWOLLEN = "Swollen"
    MISSING = "Missing"
    UNKNOWN = "Unknown"


class UserRole(str, Enum):
    CITIZEN = "CITIZEN"
    MUNICIPALITY = "MUNICIPALITY"
    RECYCLER = "RECYCLER"


# Position along the custody chain. Transitions may stay level or move forward,
# never back.
STATUS_RANK: dict[ItemStatus, int] = {
    ItemStatus.SUBMITTED: 0,
    ItemStatus.SCHEDULED: 1,
    ItemStatus.PRIORITY_COLLECTION: 1,
    ItemStatus.COLLECTED_BY_CITIZEN: 2,
    ItemStatus.VERIFIED: 3,
    ItemStatus.ASSIGNED_TO_RECYCLER: 4,
    ItemStatus.HANDED_OVER: 5,
}

TERMINAL_STATUSES = frozenset({ItemStatus.HANDED_OVER})

E = TypeVar("E", bound=Enum)


def parse_choice(enum_cls: type[E], value: object, field: str) -> E:
    """Return the ``enum_cls`` member matching ``value`` (case-insensitive).

    Unknown values raise :class:`ValidationError` instead of leaking into
    storage.
    """

    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = " ".join(value.split()).casefold()
        for member in enum_cls:
            if member.value.casefold() == wanted or member.name.casefold() == wanted:
                return member
    choices = ", ".join(member.value for member in enum_cls)
    raise ValidationError(
        f"{field} must be one of: {choices}",
        details={"field": field, "value": value},
    )


__all__ = [
    "BatteryStatus",
    "Classification",
    "Condition",
    "DeviceType",
    "ItemStatus",
    "STATUS_RANK",
    "TERMINAL_STATUSES",
    "UserRole",
    "parse_choice",
]
