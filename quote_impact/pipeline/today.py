"""Today snapshot helpers: recent quote candidates and today's intraday bars."""

from typing import Any, Dict, List, Sequence

import pandas as pd

from quote_impact.models.datatypes import Article, IntradayBar, QuoteCandidate

MAX_QUOTE_TEXT = 180


def recent_quotes(
    articles: Sequence[Article],
    limit: int = 5,
    scan: int = 20,
    max_chars: int = MAX_QUOTE_TEXT,
) -> List[QuoteCandidate]:
    """Turn recent headlines into de-duplicated quote candidates.

    Only the first ``scan`` articles are considered. Titles are trimmed and
    cut to ``max_chars``; empty titles are dropped. Duplicate texts keep the
    position of their first occurrence and the data of the last one.

    Args:
        articles: Recent articles, newest first.
        limit: Maximum number of candidates returned.
        scan: Number of leading articles inspected.
        max_chars: Maximum candidate text length.

    Returns:
        List[QuoteCandidate]: At most ``limit`` candidates.
    """
    by_text: Dict[str, QuoteCandidate] = {}
    for article in articles[:scan]:
        text = (article.title or "").strip()[:max_chars]
        if not text:
            continue
        by_text[text] = QuoteCandidate(
            text=text,
            datetime=article.raw_date,
            url=article.url or None,
        )
    return list(by_text.values())[:limit]


def bars_for_day(
    values: Sequence[Dict[str, Any]],
    now: float,
    timezone: str = "America/New_York",
) -> List[IntradayBar]:
    """Keep the bars stamped with today's date in the exchange timezone.

    Args:
        values: Raw bars with exchange-local ``datetime`` and ``close`` fields.
        now: Current time as epoch seconds.
        timezone: Exchange timezone name.

    Returns:
        List[IntradayBar]: Today's bars with finite closes, oldest first.
    """
    today = pd.Timestamp(now, unit="s", tz="UTC").tz_convert(timezone).strftime("%Y-%m-%d")

    frame = pd.DataFrame(list(values), columns=["datetime", "close"])
    if frame.empty:
        return []

    frame["datetime"] = frame["datetime"].astype(str)
    frame["close"] = pd.to_numeric(frame["close"], errors="coerce")

    mask = (
        frame["datetime"].str.startswith(today)
        & frame["close"].notna()
        & ~frame["close"].isin([float("inf"), float("-inf")])
    )
    today_bars = frame.loc[mask].sort_values("datetime", kind="stable")
    return [
        IntradayBar(time=row.datetime, close=float(row.close))
        for row in today_bars.itertuples(index=False)
    ]
