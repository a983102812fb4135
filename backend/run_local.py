# backend/run_local.py
import sys
from pathlib import Path

from backend.lib.price_plan_core.cost import CostAggregator
from backend.lib.price_plan_core.exceptions import CostCalculationError
from backend.lib.price_plan_core.generator import ReadingGenerator
from backend.lib.price_plan_core.io import parse_csv_string
from backend.lib.price_plan_core.settings import load_settings
from backend.lib.price_plan_core.store import MeterReadingStore


def build_store(csv_path, meter_ids, count):
    if csv_path:
        return MeterReadingStore(parse_csv_string(Path(csv_path).read_text()))
    return MeterReadingStore(ReadingGenerator().generate_for_meters(meter_ids, count))


def print_costs(aggregator, meter_id, per_day):
    if per_day:
        for plan, days in sorted(aggregator.get_cost_per_plan_per_day(meter_id).items()):
            line = ", ".join(f"{day.name[:3].title()} {cost:.4f}" for day, cost in days.items())
            print(f" - {plan}: {line}")
    else:
        for plan, cost in aggregator.recommend(meter_id):
            print(f" - {plan}: {cost:.4f}")


def main(csv_path=None, per_day=False):
    settings = load_settings()
    store = build_store(csv_path, settings.accounts, settings.seed_readings_per_meter)
    aggregator = CostAggregator(store, settings.catalog(), tz=settings.timezone)

    for meter_id in store.meter_ids():
        print(f"{meter_id} ({len(store.get_readings(meter_id))} readings):")
        try:
            print_costs(aggregator, meter_id, per_day)
        except CostCalculationError as e:
            print(f" ! cannot price: {e}")


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--per-day"]
    main(args[0] if args else None, per_day="--per-day" in sys.argv[1:])
