from backend.lib.price_plan_core.exceptions import ConfigurationError
from backend.lib.price_plan_core.models import PricePlan
from backend.lib.price_plan_core.settings import Settings, load_settings
from decimal import Decimal
import json
import pytest


def test_defaults():
    settings = load_settings({})
    assert settings.timezone is None
    assert settings.seed_readings is True
    assert settings.seed_readings_per_meter == 20
    assert settings.use_dynamodb is False
    assert settings.catalog().names() == ["price-plan-0", "price-plan-1", "price-plan-2"]
    assert settings.catalog().get("price-plan-0").unit_rate == Decimal("10")


def test_environment_overrides():
    settings = load_settings({
        "READINGS_TIMEZONE": "UTC",
        "SEED_READINGS": "False",
        "SEED_READINGS_PER_METER": "5",
        "USE_DYNAMODB": "true",
        "DYNAMODB_TABLE_NAME": "Readings",
        "LOG_LEVEL": "debug",
    })
    assert settings.timezone.key == "UTC"
    assert settings.seed_readings is False
    assert settings.seed_readings_per_meter == 5
    assert settings.use_dynamodb is True
    assert settings.dynamodb_table_name == "Readings"
    assert settings.log_level == "DEBUG"


def test_invalid_values():
    with pytest.raises(ConfigurationError):
        load_settings({"READINGS_TIMEZONE": "Mars/Olympus_Mons"})
    with pytest.raises(ConfigurationError):
        load_settings({"SEED_READINGS_PER_METER": "many"})


def test_price_plans_file(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps([
        {"name": "flat", "unit_rate": 0.25, "supplier": "Acme"},
        {"name": "night", "unit_rate": "0.12"},
    ]))
    catalog = load_settings({"PRICE_PLANS_FILE": str(path)}).catalog()
    assert catalog.get("flat") == PricePlan("flat", Decimal("0.25"), "Acme")
    assert catalog.get("night").unit_rate == Decimal("0.12")


def test_bad_price_plans_file(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps([{"name": "flat", "unit_rate": "cheap"}]))
    with pytest.raises(ConfigurationError):
        load_settings({"PRICE_PLANS_FILE": str(path)})
    with pytest.raises(ConfigurationError):
        load_settings({"PRICE_PLANS_FILE": str(tmp_path / "missing.json")})


def test_duplicate_plan_names_rejected():
    settings = Settings(price_plans=[PricePlan("a", Decimal("1")), PricePlan("a", Decimal("2"))])
    with pytest.raises(ConfigurationError):
        settings.catalog()


def test_empty_price_plans_file(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text("[]")
    with pytest.raises(ConfigurationError):
        load_settings({"PRICE_PLANS_FILE": str(path)})
