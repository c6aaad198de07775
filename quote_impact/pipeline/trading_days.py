"""Trading-day alignment.

Weekends and holidays are absent from the daily feed, so the trading day of
an event is simply the first series date on or after the event's calendar
date.
"""

from bisect import bisect_left
from typing import Optional

from quote_impact.models.datatypes import PricePoint, PriceSeries


def locate_on_or_after(series: PriceSeries, target_date: str) -> Optional[int]:
    """Return the index of the first point dated ``>= target_date``.

    Binary search, O(log n). A match at index 0 is reported as not found
    because the return calculation needs a preceding trading day.

    Args:
        series: Ascending series.
        target_date: ``YYYY-MM-DD``.

    Returns:
        Optional[int]: The index, or ``None`` when the event cannot be aligned.
    """
    index = bisect_left(series, target_date, key=_date_key)
    if index >= len(series) or index == 0:
        return None
    return index


def _date_key(point: PricePoint) -> str:
    return point.date
