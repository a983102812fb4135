import logging
from datetime import timedelta, tzinfo
from decimal import ROUND_HALF_UP, Context, Decimal, localcontext
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from .exceptions import EmptyReadingSetError, UndefinedElapsedTimeError, require
from .models import PricePlanCatalog, Reading, Weekday

logger = logging.getLogger(__name__)

DECIMAL_PLACES = 10
_QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)
_SECONDS_PER_HOUR = Decimal(3600)
_TWO_SIGNIFICANT = Context(prec=2, rounding=ROUND_HALF_UP)


class ReadingSource(Protocol):
    def get_readings(self, meter_id: str) -> Optional[List[Reading]]: ...


def _divide(dividend: Decimal, divisor: Decimal) -> Decimal:
    # quantize() needs room for every integer digit plus DECIMAL_PLACES
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, dividend.adjusted() - divisor.adjusted() + DECIMAL_PLACES + 3)
        return (dividend / divisor).quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def average_reading(readings: Sequence[Reading]) -> Decimal:
    require(len(readings) > 0, "Cannot average an empty reading set", EmptyReadingSetError)
    total = sum((r.value for r in readings), Decimal(0))
    return _divide(total, Decimal(len(readings)))


def elapsed_hours(readings: Sequence[Reading]) -> Decimal:
    """
    Hours between the earliest and latest reading. Input order is not
    trusted; both ends are found by scanning.
    """
    require(len(readings) > 0, "Cannot measure elapsed time of an empty reading set",
            EmptyReadingSetError)
    earliest = min(r.timestamp for r in readings)
    latest = max(r.timestamp for r in readings)
    seconds = (latest - earliest) // timedelta(seconds=1)
    return Decimal(seconds) / _SECONDS_PER_HOUR


def weekday_totals(readings: Sequence[Reading], tz: Optional[tzinfo] = None) -> Dict[Weekday, Decimal]:
    """
    Sums reading values per weekday, all 7 days present.
    tz=None buckets by the process's local time zone, so the same readings
    can land on different days on hosts configured with different zones.
    """
    totals = {day: Decimal(0) for day in Weekday}
    for r in readings:
        day = Weekday(r.timestamp.astimezone(tz).weekday())
        totals[day] += r.value
    return totals


def averaged_rate(readings: Sequence[Reading]) -> Decimal:
    """
    Average reading per elapsed hour; a plan's cost is this times its
    unit rate. Raises for an empty set or when no time has elapsed.
    """
    average = average_reading(readings)
    hours = elapsed_hours(readings)
    require(hours != 0,
            f"Elapsed time is zero across {len(readings)} reading(s); cost is undefined",
            UndefinedElapsedTimeError)
    return _divide(average, hours)


def round_significant(value: Decimal) -> Decimal:
    return _TWO_SIGNIFICANT.plus(value)


class CostAggregator:
    def __init__(self, reading_source: ReadingSource, catalog: PricePlanCatalog,
                 tz: Optional[tzinfo] = None):
        self.reading_source = reading_source
        self.catalog = catalog
        self.tz = tz

    def get_cost_per_plan(self, meter_id: str) -> Optional[Dict[str, Decimal]]:
        readings = self.reading_source.get_readings(meter_id)
        if readings is None:
            return None
        # Raises for unusable readings even when the catalog is empty
        rate = averaged_rate(readings)
        costs = {plan.name: rate * plan.unit_rate for plan in self.catalog}
        logger.debug("Computed %d plan costs for %s over %d readings",
                     len(costs), meter_id, len(readings))
        return costs

    def get_cost_per_plan_per_day(self, meter_id: str) -> Optional[Dict[str, Dict[Weekday, Decimal]]]:
        readings = self.reading_source.get_readings(meter_id)
        if readings is None:
            return None
        rate = averaged_rate(readings)
        totals = weekday_totals(readings, self.tz)
        result = {}
        for plan in self.catalog:
            # NOTE: this multiplies the whole-period plan cost by the day's raw
            # reading sum. It is not that day's share of the cost and the units
            # do not line up, but clients depend on these numbers as they are.
            scalar = round_significant(rate * plan.unit_rate)
            result[plan.name] = {day: total * scalar for day, total in totals.items()}
        return result

    def recommend(self, meter_id: str, limit: Optional[int] = None) -> Optional[List[Tuple[str, Decimal]]]:
        """
        Plans ordered cheapest first (ties by name), optionally cut to `limit`.
        """
        if limit is not None and limit < 0:
            raise ValueError("limit must not be negative")
        costs = self.get_cost_per_plan(meter_id)
        if costs is None:
            return None
        ranked = sorted(costs.items(), key=lambda item: (item[1], item[0]))
        return ranked if limit is None else ranked[:limit]
