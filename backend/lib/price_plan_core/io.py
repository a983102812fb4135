import csv
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from io import StringIO
from typing import Dict, List

from .exceptions import ReadingFormatError
from .models import Reading


def parse_timestamp(text: str) -> datetime:
    """
    ISO8601, e.g. 2025-11-01T00:00:00Z. Naive timestamps are taken as UTC.
    """
    try:
        # Convert timestamp with Z to +00:00 for fromisoformat
        timestamp = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise ReadingFormatError(f"Invalid timestamp: {text!r}") from e
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def parse_reading_value(raw) -> Decimal:
    # str() first so floats from JSON keep their printed digits
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation as e:
        raise ReadingFormatError(f"Invalid reading value: {raw!r}") from e
    if not value.is_finite():
        raise ReadingFormatError(f"Reading value must be finite: {raw!r}")
    return value


def parse_csv_string(csv_text: str) -> Dict[str, List[Reading]]:
    """
    Parse CSV text with header: meter_id,timestamp,reading
    Returns readings grouped by meter id, in file order.
    """
    f = StringIO(csv_text.strip())
    reader = csv.DictReader(f)
    readings = defaultdict(list)
    for row in reader:
        if not row.get('meter_id') or not row.get('timestamp') or not row.get('reading'):
            raise ReadingFormatError(f"Missing field in row: {row}")
        readings[row['meter_id']].append(Reading(
            timestamp=parse_timestamp(row['timestamp']),
            value=parse_reading_value(row['reading']),
        ))
    return dict(readings)
