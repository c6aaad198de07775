"""Shared fixtures and feed builders for the quote-impact tests."""

from datetime import date, timedelta
from typing import List, Sequence, Tuple

import pytest

from quote_impact.core import retry
from quote_impact.models.datatypes import Article

FEED_HEADER = "Date,Open,High,Low,Close,Volume"


def business_days(start: str, count: int) -> List[str]:
    """Return ``count`` Mon–Fri dates starting at ``start`` (inclusive)."""
    cur = date.fromisoformat(start)
    out: List[str] = []
    while len(out) < count:
        if cur.weekday() < 5:
            out.append(cur.isoformat())
        cur += timedelta(days=1)
    return out


def make_feed(rows: Sequence[Tuple[str, float]], header: str = FEED_HEADER) -> str:
    """Render ``(date, close)`` rows as a Stooq-style daily CSV."""
    lines = [header]
    for day, close in rows:
        lines.append(f"{day},{close},{close},{close},{close},1000000")
    return "\n".join(lines) + "\n"


def mlk_week_rows() -> List[Tuple[str, float]]:
    """28 padding days in late 2023, then 2024-01-12 / 16 / 17 around the MLK holiday."""
    rows = [(day, 90.0) for day in business_days("2023-11-20", 28)]
    rows += [("2024-01-12", 100.0), ("2024-01-16", 105.0), ("2024-01-17", 103.0)]
    return rows


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: None)


@pytest.fixture
def mlk_feed() -> str:
    return make_feed(mlk_week_rows())


@pytest.fixture
def mlk_articles() -> List[Article]:
    return [
        Article(url="https://example.com/first", title="First mention", raw_date="20240115103000"),
        Article(url="https://example.com/second", title="Second mention", raw_date="20240116090000"),
    ]
