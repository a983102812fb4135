import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from .models import Reading


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReadingGenerator:
    def __init__(self, rng: Optional[random.Random] = None,
                 clock: Callable[[], datetime] = _utc_now):
        """
        rng: random source to draw from. When omitted every generate() call
             uses a fresh, unseeded random.Random, so output is not
             reproducible. Pass random.Random(seed) for fixed test vectors.
             An injected rng is not thread safe; use one generator per thread.
        clock: returns the anchor timestamp (newest reading)
        """
        self._rng = rng
        self._clock = clock

    def generate(self, count: int) -> List[Reading]:
        """
        Returns `count` hourly readings, newest first, starting at the clock's
        current time and stepping one hour into the past per reading.
        Values are (N(0,1) + 1) / 2: centred on 0.5 but NOT clamped to [0, 1].
        """
        if count <= 0:
            return []
        rng = self._rng or random.Random()
        anchor = self._clock()
        readings = []
        for i in range(count):
            value = (rng.gauss(0.0, 1.0) + 1) / 2
            readings.append(Reading(timestamp=anchor - timedelta(hours=i),
                                    value=Decimal(str(value))))
        return readings

    def generate_for_meters(self, meter_ids: Iterable[str], count: int) -> Dict[str, List[Reading]]:
        return {meter_id: self.generate(count) for meter_id in meter_ids}
