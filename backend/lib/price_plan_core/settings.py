"""
Price Plan Comparator Settings

Everything is read from environment variables (a .env file is loaded by the
app before this runs). The price plan catalog and account mapping default to
the built-in demo data below.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import tzinfo
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigurationError, ReadingFormatError
from .io import parse_reading_value
from .models import PricePlan, PricePlanCatalog

DEFAULT_PRICE_PLANS = [
    PricePlan(name="price-plan-0", unit_rate=Decimal("10"), supplier="Dr Evil's Dark Energy"),
    PricePlan(name="price-plan-1", unit_rate=Decimal("2"), supplier="The Green Eco"),
    PricePlan(name="price-plan-2", unit_rate=Decimal("1"), supplier="Power for Everyone"),
]

DEFAULT_ACCOUNTS = {
    "smart-meter-0": "price-plan-0",
    "smart-meter-1": "price-plan-1",
    "smart-meter-2": "price-plan-0",
    "smart-meter-3": "price-plan-2",
    "smart-meter-4": "price-plan-1",
}


def _env_bool(environ: Mapping[str, str], name: str, default: str) -> bool:
    return environ.get(name, default).lower() == 'true'


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def load_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """None/empty means "use the process's local time zone"."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown time zone: {name!r}") from e


def load_price_plans(path: Path) -> List[PricePlan]:
    """
    Read a JSON list like [{"name": "...", "unit_rate": 0.2, "supplier": "..."}].
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read price plans from {path}: {e}") from e
    if not isinstance(data, list) or not data:
        raise ConfigurationError(f"{path} must contain a non-empty JSON list of price plans")

    plans = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("name") or "unit_rate" not in entry:
            raise ConfigurationError(f"Invalid price plan entry: {entry!r}")
        try:
            unit_rate = parse_reading_value(entry["unit_rate"])
        except ReadingFormatError as e:
            raise ConfigurationError(f"Invalid unit_rate for {entry['name']}: {entry['unit_rate']!r}") from e
        plans.append(PricePlan(name=entry["name"], unit_rate=unit_rate,
                               supplier=entry.get("supplier", "")))
    return plans


@dataclass
class Settings:
    timezone: Optional[tzinfo] = None
    seed_readings: bool = True
    seed_readings_per_meter: int = 20
    price_plans: List[PricePlan] = field(default_factory=lambda: list(DEFAULT_PRICE_PLANS))
    accounts: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ACCOUNTS))
    use_dynamodb: bool = False
    dynamodb_table_name: str = "MeterReadings"
    aws_region: str = "us-east-1"
    log_level: str = "INFO"

    def catalog(self) -> PricePlanCatalog:
        return PricePlanCatalog(self.price_plans)


def load_settings(environ: Mapping[str, str] = os.environ) -> Settings:
    plans_file = environ.get("PRICE_PLANS_FILE")
    return Settings(
        timezone=load_timezone(environ.get("READINGS_TIMEZONE")),
        seed_readings=_env_bool(environ, "SEED_READINGS", "true"),
        seed_readings_per_meter=_env_int(environ, "SEED_READINGS_PER_METER", 20),
        price_plans=load_price_plans(Path(plans_file)) if plans_file else list(DEFAULT_PRICE_PLANS),
        use_dynamodb=_env_bool(environ, "USE_DYNAMODB", "false"),
        dynamodb_table_name=environ.get("DYNAMODB_TABLE_NAME", "MeterReadings"),
        aws_region=environ.get("AWS_REGION", "us-east-1"),
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
    )
