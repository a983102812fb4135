from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Optional

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class Reading:
    timestamp: datetime
    value: Decimal


@dataclass(frozen=True)
class PricePlan:
    name: str
    unit_rate: Decimal
    supplier: str = ""


class Weekday(IntEnum):
    # Same numbering as datetime.weekday()
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class PricePlanCatalog:
    """
    Read-only collection of price plans keyed by plan name.

    Built once at start-up and handed to whoever needs it; there is no
    module-level catalog.
    """

    def __init__(self, plans: Iterable[PricePlan]):
        by_name: Dict[str, PricePlan] = {}
        for plan in plans:
            if plan.name in by_name:
                raise ConfigurationError(f"Duplicate price plan name: {plan.name}")
            by_name[plan.name] = plan
        self._plans = by_name

    def __iter__(self) -> Iterator[PricePlan]:
        return iter(self._plans.values())

    def __len__(self) -> int:
        return len(self._plans)

    def get(self, name: str) -> Optional[PricePlan]:
        return self._plans.get(name)

    def names(self) -> List[str]:
        return list(self._plans)
