"""Analysis engine — wires upstream providers around the alignment core.

Flow for ``analyze_quote(quote)``:
  1. Quote     — normalize_quote → build_query (flat exact-phrase query)
  2. Throttle  — RequestThrottle slot, else ThrottledRequest
  3. News      — GdeltProvider.search → articles (NoArticlesFound short-circuits)
  4. Prices    — StooqProvider.fetch_daily_csv → raw feed
  5. Core      — alignment.analyze → AlignmentResult
  6. Payload   — ``{ok: true, ...}`` or ``{ok: false, httpStatus, kind, error, debug}``

Every failure is a classified :class:`AnalysisFailure`; its transport status
is assigned here and nowhere else. Throttle and cache state are passed in by
the caller and never stored at module level.
"""

import math
import time
from typing import Any, Callable, Dict, List, Optional, Type

import requests

from quote_impact.core.cache import SnapshotCache
from quote_impact.core.config import DEFAULT_CONFIG, get_api_key, merge_config
from quote_impact.core.errors import (
    AlignmentFailed,
    AnalysisFailure,
    InsufficientSeriesData,
    InvalidQuery,
    MissingApiKey,
    NoArticlesFound,
    NormalizationError,
    ThrottledRequest,
    UpstreamBadResponse,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from quote_impact.core.logger import logger
from quote_impact.core.quote_utils import build_query, normalize_quote
from quote_impact.core.throttle import RequestThrottle
from quote_impact.models.datatypes import AlignmentResult
from quote_impact.pipeline.alignment import analyze, require_articles
from quote_impact.pipeline.today import bars_for_day, recent_quotes
from quote_impact.providers.base import (
    DailyPriceProvider,
    IntradayPriceProvider,
    NewsSearchProvider,
)
from quote_impact.providers.market import StooqProvider, TwelveDataProvider
from quote_impact.providers.news import GdeltProvider

# Most specific class first; lookup walks the failure's MRO.
HTTP_STATUS: Dict[Type[AnalysisFailure], int] = {
    InvalidQuery: 400,
    NoArticlesFound: 404,
    ThrottledRequest: 429,
    UpstreamRateLimited: 429,
    UpstreamBadResponse: 502,
    UpstreamUnavailable: 502,
    NormalizationError: 500,
    InsufficientSeriesData: 500,
    AlignmentFailed: 500,
    MissingApiKey: 500,
}

_TODAY_CACHE_KEY = "today"


def http_status_for(failure: AnalysisFailure) -> int:
    """Return the transport status a caller should use for ``failure``."""
    for cls in type(failure).__mro__:
        if cls in HTTP_STATUS:
            return HTTP_STATUS[cls]
    return 500


def failure_payload(failure: AnalysisFailure, debug: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Render a failure as a JSON-ready response payload."""
    merged = dict(debug or {})
    merged.update(failure.context)
    return {
        "ok": False,
        "httpStatus": http_status_for(failure),
        "kind": failure.kind,
        "error": failure.message,
        "debug": merged,
    }


class AnalysisEngine:
    """Runs one quote analysis or today snapshot per call.

    Args:
        config: Parsed config dict (layered over ``DEFAULT_CONFIG``).
        news: Article search provider (GDELT by default).
        prices: Daily price provider (Stooq by default).
        intraday: Intraday provider (Twelve Data by default).
        throttle: Caller-owned throttle state for the search upstream.
        snapshot_cache: Caller-owned cache for the today snapshot.
        clock: Returns the current time as epoch seconds.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        news: Optional[NewsSearchProvider] = None,
        prices: Optional[DailyPriceProvider] = None,
        intraday: Optional[IntradayPriceProvider] = None,
        throttle: Optional[RequestThrottle] = None,
        snapshot_cache: Optional[SnapshotCache] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = merge_config(DEFAULT_CONFIG, config or {})
        search_cfg = self.config["search"]
        prices_cfg = self.config["prices"]
        intraday_cfg = self.config["intraday"]
        self.clock = clock

        self.news = news or GdeltProvider(
            base_url=search_cfg["gdelt_url"],
            proxy_base=search_cfg.get("proxy_base"),
            max_records=search_cfg["max_records"],
            timeout=search_cfg["timeout_seconds"],
        )
        self.prices = prices or StooqProvider(
            symbol=prices_cfg["symbol"],
            base_url=prices_cfg["stooq_url"],
            timeout=prices_cfg["timeout_seconds"],
        )
        self.intraday = intraday or TwelveDataProvider(
            api_key=get_api_key("TWELVE_API_KEY"),
            symbol=intraday_cfg["symbol"],
            interval=intraday_cfg["interval"],
            output_size=intraday_cfg["output_size"],
            base_url=intraday_cfg["twelvedata_url"],
        )
        self.throttle = throttle or RequestThrottle(
            min_interval_seconds=search_cfg["min_interval_seconds"],
            clock=clock,
        )
        self.snapshot_cache = snapshot_cache or SnapshotCache(
            ttl_seconds=intraday_cfg["cache_seconds"],
            clock=clock,
        )
        # set by the last successful analyze_quote call
        self.last_result: Optional[AlignmentResult] = None

    # ── public ────────────────────────────────────────────────────────────────

    def analyze_quote(self, quote: str) -> Dict[str, Any]:
        """Analyse one quote end to end.

        Args:
            quote: Free-text quote as entered by the user.

        Returns:
            JSON-ready payload; ``ok`` tells success from failure.
        """
        self.last_result = None
        debug: Dict[str, Any] = {}
        try:
            payload = self._analyze_quote(quote, debug)
        except AnalysisFailure as failure:
            logger.warning(f"AnalysisEngine: {failure.kind} — {failure.message} {failure.context}")
            return failure_payload(failure, debug)
        except requests.RequestException as exc:
            failure = UpstreamUnavailable(f"Upstream request failed: {exc}")
            logger.error(f"AnalysisEngine: {failure.message}")
            return failure_payload(failure, debug)
        return payload

    def today(self, force: bool = False) -> Dict[str, Any]:
        """Build the today snapshot: recent quote candidates + today's intraday bars.

        Partial upstream failures leave the affected list empty and are
        reported under ``debug``; a missing API key fails the whole snapshot.
        Every outcome is cached for ``intraday.cache_seconds`` unless ``force``.
        """
        if not force:
            cached = self.snapshot_cache.get(_TODAY_CACHE_KEY)
            if cached is not None:
                return cached

        out = self._build_today()
        self.snapshot_cache.set(_TODAY_CACHE_KEY, out)
        return out

    # ── internal ──────────────────────────────────────────────────────────────

    def _analyze_quote(self, quote: str, debug: Dict[str, Any]) -> Dict[str, Any]:
        raw = (quote or "").strip()
        if not raw:
            raise InvalidQuery("Missing quote", {"input": quote})

        normalized = normalize_quote(raw)
        query = build_query(normalized, self.config["search"]["query_suffix"])
        debug["query"] = query

        wait = self.throttle.try_acquire()
        if wait > 0:
            raise ThrottledRequest(
                f"Rate limited to protect GDELT. Wait {math.ceil(wait)}s and try again.",
                {
                    "rule": f"min 1 request / {self.throttle.min_interval_seconds:g}s",
                    "waitMs": int(wait * 1000),
                },
            )

        search = self.news.search(query)
        debug["gdeltStatus"] = search.status
        debug["gdeltUrl"] = search.url
        require_articles(search.articles)

        raw_feed = self.prices.fetch_daily_csv()

        analysis_cfg = self.config["analysis"]
        result = analyze(
            search.articles,
            raw_feed,
            min_points=analysis_cfg["min_series_points"],
            window_radius=analysis_cfg["window_radius"],
        )
        self.last_result = result

        payload: Dict[str, Any] = {
            "ok": True,
            "input": raw,
            "normalized": normalized,
            "query": query,
        }
        payload.update(result.to_dict())
        payload["debug"] = debug
        logger.info(
            f"AnalysisEngine: {normalized[:60]!r} → {result.spy.event_trading_date} "
            f"({result.spy.ret_prev_to_event_pct})"
        )
        return payload

    def _build_today(self) -> Dict[str, Any]:
        intraday_cfg = self.config["intraday"]
        debug: Dict[str, Any] = {}

        try:
            values = self.intraday.fetch_bars()
            debug["intraday"] = {"valuesCount": len(values)}
        except MissingApiKey as failure:
            logger.error(f"AnalysisEngine: {failure.message}")
            out = failure_payload(failure)
            out.update({"quotes": [], "spy": []})
            return out
        except (AnalysisFailure, requests.RequestException) as exc:
            logger.warning(f"AnalysisEngine: intraday fetch failed: {exc}")
            debug["intraday"] = _failure_debug(exc)
            values = []

        quotes: List[Dict[str, Any]] = []
        try:
            recent = self.news.fetch_recent(
                self.config["search"]["recent_query"],
                limit=intraday_cfg["recent_articles"],
            )
            quotes = [q.to_dict() for q in recent_quotes(recent.articles)]
            debug["news"] = {"status": recent.status, "articlesCount": len(recent.articles)}
        except (AnalysisFailure, requests.RequestException) as exc:
            logger.warning(f"AnalysisEngine: recent news fetch failed: {exc}")
            debug["news"] = _failure_debug(exc)

        bars = bars_for_day(values, self.clock(), intraday_cfg["timezone"])
        return {
            "ok": True,
            "quotes": quotes,
            "spy": [bar.to_dict() for bar in bars],
            "debug": debug,
        }


def _failure_debug(exc: Exception) -> Dict[str, Any]:
    if isinstance(exc, AnalysisFailure):
        return exc.to_dict()
    return {"kind": UpstreamUnavailable.kind, "message": str(exc)}
