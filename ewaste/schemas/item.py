"""Pydantic schemas describing submissions and passport snapshots."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.enums import (
    BatteryStatus,
    Classification,
    Condition,
    DeviceType,
    ItemStatus,
    parse_choice,
)
from ..core.errors import ValidationError as LifecycleValidationError


def _choice(enum_cls, value, field):
    try:
        return parse_choice(enum_cls, value, field)
    except LifecycleValidationError as exc:
        # pydantic collects ValueErrors into its own error list.
        raise ValueError(exc.message) from exc


class ItemSubmission(BaseModel):
    owner_id: str = Field(min_length=1)
    device_type: DeviceType
    model: str = Field(min_length=1)
    age_years: Optional[float] = Field(default=None, ge=0)
    condition: Condition
    power_status: bool
    battery_status: BatteryStatus
    image_ref: Optional[str] = None

    @field_validator("owner_id", "model", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("image_ref", mode="before")
    @classmethod
    def blank_image_is_none(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("device_type", mode="before")
    @classmethod
    def parse_device_type(cls, value):
        return _choice(DeviceType, value, "device_type")

    @field_validator("condition", mode="before")
    @classmethod
    def parse_condition(cls, value):
        return _choice(Condition, value, "condition")

    @field_validator("battery_status", mode="before")
    @classmethod
    def parse_battery_status(cls, value):
        return _choice(BatteryStatus, value, "battery_status")


class HistoryEntry(BaseModel):
    """A ledger row about to be appended."""

    timestamp: str
    status: ItemStatus
    actor: str = Field(min_length=1)
    note: Optional[str] = None


class HistoryEventOut(HistoryEntry):
    id: int
    item_id: str

    class Config:
        from_attributes = True


class ItemRecord(BaseModel):
    """Column values for a freshly created item."""

    id: str
    owner_id: str
    device_type: DeviceType
    model: str
    age_years: Optional[float] = None
    condition: Condition
    power_status: bool
    battery_status: BatteryStatus
    image_ref: Optional[str] = None
    status: ItemStatus
    classification: Classification
    estimated_value: float = Field(ge=0)
    collection_date: str
    winning_bidder: Optional[str] = None
    final_bid_amount: Optional[float] = None
    version: int = 1
    created_at: str
    updated_at: str


class PassportOut(ItemRecord):
    """The Digital Product Passport: an item joined with its full history."""

    history: list[HistoryEventOut] = Field(default_factory=list)

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def order_history(self) -> "PassportOut":
        self.history = sorted(self.history, key=lambda event: (event.timestamp, event.id))
        return self

    @property
    def latest_event(self) -> HistoryEventOut | None:
        return self.history[-1] if self.history else None
