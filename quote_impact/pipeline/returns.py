"""Percentage returns between adjacent trading days."""

import math
from typing import Optional


def pct_change(a: float, b: float) -> float:
    """Return ``(b - a) / a * 100``.

    A zero base follows IEEE semantics instead of raising: ``±inf`` when the
    prices differ, ``nan`` when both are zero.
    """
    diff = b - a
    if a == 0:
        if diff == 0 or math.isnan(diff):
            return math.nan
        return math.copysign(math.inf, diff) * math.copysign(1.0, a)
    return diff / a * 100


def finite_or_none(value: float) -> Optional[float]:
    """Map a non-finite return to ``None`` so it is reported as absent."""
    return value if math.isfinite(value) else None
