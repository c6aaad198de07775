"""Alignment orchestrator — earliest article + daily feed → AlignmentResult.

Flow:
  1. require_articles   — empty list → NoArticlesFound
  2. parse_daily_csv    — raw CSV → ascending PriceSeries (>= min_points)
  3. reference          — first article of the pre-sorted list (no re-sort)
  4. normalize          — raw publish date → canonical UTC instant
  5. locate_on_or_after — first trading day on/after the event date
  6. pct_change         — prev → event and event → next returns
  7. PriceSeries.window — ±window_radius points, clipped to the series

Each step either succeeds or raises exactly one classified
:class:`AnalysisFailure`; nothing is returned half-populated. The function is
pure: identical inputs give identical results.
"""

from typing import Callable, Sequence

import pandas as pd

from quote_impact.core.dates import calendar_date, normalize
from quote_impact.core.errors import (
    AlignmentFailed,
    InsufficientSeriesData,
    NoArticlesFound,
    NormalizationError,
)
from quote_impact.core.logger import logger
from quote_impact.models.datatypes import (
    AlignmentResult,
    Article,
    EarliestMention,
    EventReaction,
)
from quote_impact.pipeline.returns import finite_or_none, pct_change
from quote_impact.pipeline.series import parse_daily_csv
from quote_impact.pipeline.trading_days import locate_on_or_after

MIN_SERIES_POINTS = 30
WINDOW_RADIUS = 10

ReferenceStrategy = Callable[[Sequence[Article]], Article]


# ── reference-date strategies ─────────────────────────────────────────────────

def first_article(articles: Sequence[Article]) -> Article:
    """Trust the upstream ascending sort and take the first hit."""
    return articles[0]


def earliest_article(articles: Sequence[Article]) -> Article:
    """Pick the article with the smallest normalizable instant.

    Instants are compared as timestamps, since compact and general inputs
    normalize to different string layouts. Ties keep the earlier position.
    Articles whose date cannot be normalized are skipped; if none can be, the
    first article is returned so the caller surfaces its normalization error.
    """
    dated = []
    for position, article in enumerate(articles):
        try:
            instant = pd.Timestamp(normalize(article.raw_date))
            dated.append((instant, position, article))
        except NormalizationError:
            continue
    if not dated:
        return articles[0]
    return min(dated, key=lambda item: (item[0], item[1]))[2]


def require_articles(articles: Sequence[Article]) -> None:
    """Raise :class:`NoArticlesFound` for an empty article list."""
    if not articles:
        raise NoArticlesFound(
            "No matching articles found for that phrase.",
            {"articleCount": 0},
        )


# ── orchestrator ──────────────────────────────────────────────────────────────

def analyze(
    articles: Sequence[Article],
    raw_feed: str,
    reference: ReferenceStrategy = first_article,
    min_points: int = MIN_SERIES_POINTS,
    window_radius: int = WINDOW_RADIUS,
) -> AlignmentResult:
    """Align the reference article with the daily feed and measure the reaction.

    Args:
        articles: Search hits, presumed ascending by publish time.
        raw_feed: Raw daily CSV text including its header line.
        reference: Strategy choosing the article that defines the event instant.
        min_points: Minimum usable series length.
        window_radius: Points kept on each side of the event day.

    Returns:
        AlignmentResult: Fully populated result.

    Raises:
        NoArticlesFound, MissingDate, UnparseableDate,
        InsufficientSeriesData, AlignmentFailed.
    """
    require_articles(articles)

    # feed length is checked before the article date, so a sparse feed
    # reports InsufficientSeriesData whatever the articles carry
    series = parse_daily_csv(raw_feed)
    if len(series) < min_points:
        raise InsufficientSeriesData(
            "Price feed returned too little data.",
            {"seriesLen": len(series), "minPoints": min_points},
        )

    article = reference(articles)
    try:
        earliest_iso = normalize(article.raw_date)
    except NormalizationError as exc:
        exc.context.setdefault("url", article.url)
        exc.context.setdefault("articleCount", len(articles))
        raise

    event_date = calendar_date(earliest_iso)
    event_idx = locate_on_or_after(series, event_date)
    if event_idx is None:
        raise AlignmentFailed(
            "Could not align event date to trading data.",
            {
                "earliestIso": earliest_iso,
                "eventDate": event_date,
                "firstDate": series[0].date,
                "lastDate": series[-1].date,
                "seriesLen": len(series),
            },
        )

    prev = series[event_idx - 1]
    evt = series[event_idx]
    nxt = series[event_idx + 1] if event_idx + 1 < len(series) else None

    reaction = EventReaction(
        event_trading_date=evt.date,
        prev_close=prev.close,
        event_close=evt.close,
        next_close=nxt.close if nxt is not None else None,
        ret_prev_to_event_pct=finite_or_none(pct_change(prev.close, evt.close)),
        ret_event_to_next_pct=(
            finite_or_none(pct_change(evt.close, nxt.close)) if nxt is not None else None
        ),
    )

    logger.info(
        f"analyze: event {earliest_iso} → trading day {evt.date} "
        f"(index {event_idx}/{len(series)})"
    )
    return AlignmentResult(
        earliest=EarliestMention(
            datetime=earliest_iso,
            title=article.title,
            url=article.url,
        ),
        spy=reaction,
        series=series.window(event_idx, window_radius),
    )
