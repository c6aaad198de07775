"""Daily price feed parser.

Feed layout (Stooq daily CSV):
    Date,Open,High,Low,Close,Volume
    2024-01-12,476.1,478.6,474.0,476.7,81256000

Rows are noise-tolerant: anything malformed is dropped, never raised.
A row is kept only when
  1. it has at least 5 comma-separated fields,
  2. field 0 is a strict ``YYYY-MM-DD`` date,
  3. field 4 (close) is a finite, non-negative number.
Duplicate dates are merged (last row in feed order wins) and the result is
sorted ascending; fixed-width zero-padded dates sort correctly as strings.
"""

import math
import re
from typing import Dict, Optional

from quote_impact.core.logger import logger
from quote_impact.models.datatypes import PricePoint, PriceSeries

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_LINE_RE = re.compile(r"\r?\n")
_DATE_FIELD = 0
_CLOSE_FIELD = 4
_MIN_FIELDS = 5


def parse_daily_csv(raw_feed: str) -> PriceSeries:
    """Parse a raw daily CSV feed into a clean :class:`PriceSeries`.

    Args:
        raw_feed: Full feed text including the header line.

    Returns:
        PriceSeries: Possibly empty; minimum-length checks belong to the caller.
    """
    lines = _LINE_RE.split((raw_feed or "").strip())
    by_date: Dict[str, PricePoint] = {}
    dropped = 0

    for line in lines[1:]:
        point = _parse_row(line)
        if point is None:
            dropped += 1
            continue
        by_date[point.date] = point

    if dropped:
        logger.debug(f"parse_daily_csv: dropped {dropped} malformed row(s)")

    return PriceSeries(tuple(by_date[d] for d in sorted(by_date)))


def _parse_row(line: str) -> Optional[PricePoint]:
    parts = line.split(",")
    if len(parts) < _MIN_FIELDS:
        return None

    date = parts[_DATE_FIELD]
    if not _DATE_RE.fullmatch(date):
        return None

    close = _parse_close(parts[_CLOSE_FIELD])
    if close is None:
        return None
    return PricePoint(date=date, close=close)


def _parse_close(field: str) -> Optional[float]:
    # ASCII decimal notation only
    text = field.strip()
    if not _NUMBER_RE.fullmatch(text):
        return None
    value = float(text)
    if not math.isfinite(value) or value < 0:
        return None
    return value
