"""Deterministic device assessment and valuation rules.

The "AI assessment" shown to citizens is this rule, not a learned model:
devices that power on, look Like New or Good and are under four years old go
to refurbishment; everything else is recycled.
"""

from __future__ import annotations

from typing import Mapping

from ..core.enums import Classification, Condition, DeviceType

# Base value per device type in the local currency.
MARKET_RATES: dict[DeviceType, float] = {
    DeviceType.SMARTPHONE: 15.0,
    DeviceType.LAPTOP: 40.0,
    DeviceType.TABLET: 25.0,
    DeviceType.APPLIANCE: 10.0,
    DeviceType.ACCESSORY: 2.0,
}
REFURBISH_MULTIPLIER = 2.5
MIN_BASE_RATE = 5.0

REFURBISHABLE_CONDITIONS = frozenset({Condition.LIKE_NEW, Condition.GOOD})
REFURBISH_MAX_AGE_YEARS = 4
UNKNOWN_AGE_YEARS = 10


def classify(power_status: bool, condition: Condition | str | None, age_years: float | None) -> Classification:
    if age_years is None:
        age_years = UNKNOWN_AGE_YEARS
    condition_value = getattr(condition, "value", condition)
    refurbishable = {c.value for c in REFURBISHABLE_CONDITIONS}
    if power_status and condition_value in refurbishable and age_years < REFURBISH_MAX_AGE_YEARS:
        return Classification.REFURBISH
    return Classification.RECYCLE


def base_rate(
    device_type: DeviceType | str | None,
    rates: Mapping[str, float] | None = None,
    min_base_rate: float = MIN_BASE_RATE,
) -> float:
    """Look up the base rate, preferring configured overrides.

    Unknown types fall back to ``min_base_rate`` instead of failing.
    """

    key = getattr(device_type, "value", device_type)
    if rates and key in rates:
        return float(rates[key])
    for known, amount in MARKET_RATES.items():
        if known.value == key:
            return amount
    return float(min_base_rate)


def estimate_value(
    device_type: DeviceType | str | None,
    classification: Classification | str,
    *,
    rates: Mapping[str, float] | None = None,
    multiplier: float = REFURBISH_MULTIPLIER,
    min_base_rate: float = MIN_BASE_RATE,
) -> float:
    base = base_rate(device_type, rates, min_base_rate)
    if getattr(classification, "value", classification) == Classification.REFURBISH.value:
        base = base * multiplier
    return max(base, 0.0)


__all__ = [
    "MARKET_RATES",
    "MIN_BASE_RATE",
    "REFURBISH_MULTIPLIER",
    "base_rate",
    "classify",
    "estimate_value",
]
