import logging
import threading
from typing import Dict, Iterable, List, Mapping, Optional

from .models import Reading

logger = logging.getLogger(__name__)


class MeterReadingStore:
    """
    In-memory readings keyed by smart meter id.

    get_readings() returns None for a meter that was never stored, and a
    copy of the list otherwise, so callers cannot mutate the store.
    """

    def __init__(self, initial: Optional[Mapping[str, Iterable[Reading]]] = None):
        self._lock = threading.Lock()
        self._readings: Dict[str, List[Reading]] = {}
        for meter_id, readings in (initial or {}).items():
            self._readings[meter_id] = list(readings)

    def get_readings(self, meter_id: str) -> Optional[List[Reading]]:
        with self._lock:
            readings = self._readings.get(meter_id)
            return None if readings is None else list(readings)

    def store_readings(self, meter_id: str, readings: Iterable[Reading]) -> int:
        new = list(readings)
        with self._lock:
            self._readings.setdefault(meter_id, []).extend(new)
        logger.info("Stored %d readings for %s", len(new), meter_id)
        return len(new)

    def meter_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._readings)


class AccountStore:
    """Which price plan each smart meter is currently on."""

    def __init__(self, plan_by_meter: Mapping[str, str]):
        self._plan_by_meter = dict(plan_by_meter)

    def plan_for_meter(self, meter_id: str) -> Optional[str]:
        return self._plan_by_meter.get(meter_id)

    def meter_ids(self) -> List[str]:
        return sorted(self._plan_by_meter)
