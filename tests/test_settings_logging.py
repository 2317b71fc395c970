import json
import logging
import os
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from ewaste.core.errors import InvalidTransitionError, NotFoundError
from ewaste.core.identifiers import generate_resource_id, is_resource_id, normalize_resource_id
from ewaste.core.logging import JsonLogFormatter, operation_context
from ewaste.core.settings import AppSettings
from ewaste import main as main_module


def test_settings_parse_market_rates_from_env(monkeypatch):
    monkeypatch.setenv("MARKET_RATES", '{"Laptop": 55, "Server": 80}')
    monkeypatch.setenv("STRICT_TRANSITIONS", "false")
    settings = AppSettings(_env_file=None)
    assert settings.MARKET_RATES == {"Laptop": 55.0, "Server": 80.0}
    assert settings.STRICT_TRANSITIONS is False


def test_settings_reject_bad_values():
    with pytest.raises(PydanticValidationError):
        AppSettings(_env_file=None, MARKET_RATES={"Laptop": -1})
    with pytest.raises(PydanticValidationError):
        AppSettings(_env_file=None, COLLECTION_WEEKDAY=9)
    with pytest.raises(PydanticValidationError):
        AppSettings(_env_file=None, RESOURCE_ID_PREFIX="R-S")


def test_database_url_alias(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/other.db")
    assert AppSettings(_env_file=None).DB_URL == "sqlite:///tmp/other.db"


def test_json_formatter_includes_context_and_extra():
    formatter = JsonLogFormatter()
    record = logging.LogRecord("ewaste.lifecycle", logging.INFO, __file__, 1, "item.transition", None, None)
    record.extra_data = {"item_id": "RES-1234-AB", "to": "VERIFIED"}
    with operation_context("City Admin", operation_id="op-1"):
        payload = json.loads(formatter.format(record))
    assert payload["message"] == "item.transition"
    assert payload["operation_id"] == "op-1"
    assert payload["actor"] == "City Admin"
    assert payload["item_id"] == "RES-1234-AB"

    outside = json.loads(formatter.format(record))
    assert "operation_id" not in outside


def test_resource_id_helpers():
    value = generate_resource_id("RES")
    assert is_resource_id(value)
    assert not is_resource_id("RES-0123-AB")
    assert not is_resource_id("RES-1234-A1")
    assert normalize_resource_id(" res 1234 ab ") == "RES-1234-AB"
    assert normalize_resource_id("   ") is None


def test_error_envelopes():
    missing = NotFoundError("RES-1234-AB")
    assert missing.as_envelope() == {
        "code": "not_found",
        "message": "Item RES-1234-AB not found",
        "details": {"id": "RES-1234-AB", "kind": "Item"},
    }
    blocked = InvalidTransitionError("RES-1234-AB", "HANDED_OVER", "confirm_pickup", "HANDED_OVER")
    assert blocked.as_envelope()["details"]["current"] == "HANDED_OVER"


def test_bootstrap_returns_working_engine(caplog, monkeypatch):
    calls = []
    monkeypatch.setattr(main_module, "configure_logging", lambda level, json_output: calls.append((level, json_output)))
    bind = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    settings = AppSettings(_env_file=None, LOG_JSON=False, TZ="UTC")
    engine = main_module.bootstrap(settings, bind=bind)
    assert calls == [("INFO", False)]

    with caplog.at_level(logging.INFO, logger="ewaste.lifecycle"):
        item = engine.submit(
            "u_cit_001", "Appliance", "Microwave", 8, "Poor", False, "Unknown", actor_name="Alex Citizen"
        )
    assert item.estimated_value == pytest.approx(10.0)
    assert any(record.getMessage() == "item.submitted" for record in caplog.records)
    assert [p.id for p in engine.query_all()] == [item.id]
