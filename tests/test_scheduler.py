import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from ewaste.services.scheduler import FRIDAY, next_collection_slot
from ewaste.services.timecalc import parse_iso, strictly_after, to_iso


def test_friday_submission_waits_a_full_week():
    friday = datetime(2024, 5, 10, 0, 0, tzinfo=timezone.utc)
    slot = next_collection_slot(friday)
    assert slot == friday + timedelta(days=7)
    assert slot != friday


@pytest.mark.parametrize(
    ("day", "expected_day"),
    [
        (6, 10),  # Monday
        (9, 10),  # Thursday
        (11, 17),  # Saturday
        (12, 17),  # Sunday
    ],
)
def test_next_friday_keeps_time_of_day(day, expected_day):
    start = datetime(2024, 5, day, 15, 45, tzinfo=timezone.utc)
    slot = next_collection_slot(start)
    assert slot.weekday() == FRIDAY
    assert slot.day == expected_day
    assert (slot.hour, slot.minute) == (15, 45)
    assert slot > start


def test_weekday_is_evaluated_in_the_given_zone():
    # Thursday 20:00 UTC is already Friday morning in Kolkata.
    utc = datetime(2024, 5, 9, 20, 0, tzinfo=timezone.utc)
    local = utc.astimezone(ZoneInfo("Asia/Kolkata"))
    assert next_collection_slot(utc).date().isoformat() == "2024-05-10"
    assert next_collection_slot(local).date().isoformat() == "2024-05-17"


def test_custom_weekday_and_bounds():
    monday = datetime(2024, 5, 6, 9, 0)
    assert next_collection_slot(monday, weekday=2).day == 8
    with pytest.raises(ValueError):
        next_collection_slot(monday, weekday=7)


def test_iso_helpers_sort_chronologically():
    earlier = datetime(2024, 5, 6, 9, 0, tzinfo=timezone.utc)
    later = earlier + timedelta(microseconds=5)
    assert to_iso(earlier) < to_iso(later)
    assert parse_iso(to_iso(later)) == later
    assert strictly_after(earlier, later) == later + timedelta(microseconds=1)
    assert strictly_after(later, earlier) == later
