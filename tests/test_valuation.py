import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from ewaste.core.enums import Classification, DeviceType
from ewaste.services.valuation import (
    MARKET_RATES,
    MIN_BASE_RATE,
    REFURBISH_MULTIPLIER,
    base_rate,
    classify,
    estimate_value,
)


@pytest.mark.parametrize(
    ("power", "condition", "age", "expected"),
    [
        (True, "Good", 2, Classification.REFURBISH),
        (True, "Like New", 3.9, Classification.REFURBISH),
        (True, "Fair", 1, Classification.RECYCLE),
        (False, "Like New", 0, Classification.RECYCLE),
        (True, "Good", 4, Classification.RECYCLE),
        (True, "Broken", 0, Classification.RECYCLE),
    ],
)
def test_classify_refurbish_rule(power, condition, age, expected):
    assert classify(power, condition, age) is expected


def test_classify_missing_age_counts_as_old():
    assert classify(True, "Like New", None) is Classification.RECYCLE


def test_estimate_value_applies_refurbish_multiplier():
    laptop = MARKET_RATES[DeviceType.LAPTOP]
    assert estimate_value(DeviceType.LAPTOP, Classification.REFURBISH) == pytest.approx(laptop * REFURBISH_MULTIPLIER)
    assert estimate_value(DeviceType.LAPTOP, Classification.RECYCLE) == pytest.approx(laptop)
    assert estimate_value("Laptop", "REFURBISH") == pytest.approx(100.0)
    assert laptop > MARKET_RATES[DeviceType.ACCESSORY]


def test_pending_classification_uses_base_rate():
    assert estimate_value(DeviceType.TABLET, Classification.PENDING) == pytest.approx(25.0)


def test_unknown_type_falls_back_to_minimum_rate():
    assert base_rate("Toaster Oven") == pytest.approx(MIN_BASE_RATE)
    assert estimate_value(None, Classification.REFURBISH) == pytest.approx(MIN_BASE_RATE * REFURBISH_MULTIPLIER)


def test_estimate_value_is_never_negative():
    device_types = [*DeviceType, "Unknown", None]
    for device_type in device_types:
        for classification in Classification:
            assert estimate_value(device_type, classification) >= 0
    assert estimate_value("Laptop", "REFURBISH", multiplier=-3) == 0.0


def test_configured_rates_override_defaults():
    rates = {"Laptop": 60.0}
    assert estimate_value("Laptop", Classification.RECYCLE, rates=rates) == pytest.approx(60.0)
    assert estimate_value("Tablet", Classification.RECYCLE, rates=rates) == pytest.approx(25.0)
