from backend.lib.price_plan_core.models import Reading
from backend.lib.price_plan_core.store import AccountStore, MeterReadingStore
from backend.lib.price_plan_core.settings import DEFAULT_ACCOUNTS
from datetime import datetime, timezone
from decimal import Decimal

T0 = datetime(2025, 11, 3, tzinfo=timezone.utc)


def test_unknown_meter_is_none():
    assert MeterReadingStore().get_readings("smart-meter-0") is None


def test_store_appends_to_existing_readings():
    store = MeterReadingStore({"m": [Reading(T0, Decimal("1"))]})
    assert store.store_readings("m", [Reading(T0, Decimal("2"))]) == 1
    assert [r.value for r in store.get_readings("m")] == [Decimal("1"), Decimal("2")]
    assert store.meter_ids() == ["m"]


def test_returned_list_is_a_copy():
    store = MeterReadingStore({"m": [Reading(T0, Decimal("1"))]})
    store.get_readings("m").clear()
    assert len(store.get_readings("m")) == 1


def test_account_plans():
    accounts = AccountStore(DEFAULT_ACCOUNTS)
    assert accounts.plan_for_meter("smart-meter-3") == "price-plan-2"
    assert accounts.plan_for_meter("smart-meter-99") is None
    assert len(accounts.meter_ids()) == 5
