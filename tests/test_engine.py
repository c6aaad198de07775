"""Tests for the analysis engine: payloads, status mapping, throttle and today cache."""

import json

import requests

from quote_impact.core.cache import SnapshotCache
from quote_impact.core.errors import (
    AlignmentFailed,
    InsufficientSeriesData,
    MissingApiKey,
    MissingDate,
    NoArticlesFound,
    UpstreamBadResponse,
    UpstreamRateLimited,
)
from quote_impact.core.throttle import RequestThrottle
from quote_impact.models.datatypes import Article, SearchResponse
from quote_impact.pipeline.engine import AnalysisEngine, http_status_for
from quote_impact.providers.base import (
    DailyPriceProvider,
    IntradayPriceProvider,
    NewsSearchProvider,
)

from conftest import make_feed, mlk_week_rows


class FakeClock:
    def __init__(self, now=1705420800.0):  # 2024-01-16 16:00 UTC
        self.now = now

    def __call__(self):
        return self.now


class FakeNews(NewsSearchProvider):
    def __init__(self, articles=(), error=None, recent=()):
        self.articles = tuple(articles)
        self.recent = tuple(recent)
        self.error = error
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return SearchResponse(status=200, url="https://gdelt.test", articles=self.articles)

    def fetch_recent(self, query, limit):
        self.queries.append(query)
        if self.error:
            raise self.error
        return SearchResponse(status=200, url="https://gdelt.test", articles=self.recent)


class FakePrices(DailyPriceProvider):
    def __init__(self, feed="", error=None):
        self.feed = feed
        self.error = error
        self.calls = 0

    def fetch_daily_csv(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.feed


class FakeIntraday(IntradayPriceProvider):
    def __init__(self, values=(), error=None):
        self.values = list(values)
        self.error = error
        self.calls = 0

    def fetch_bars(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.values


def _engine(news=None, prices=None, intraday=None, clock=None, **kwargs):
    clock = clock or FakeClock()
    return AnalysisEngine(
        config={},
        news=news or FakeNews(),
        prices=prices or FakePrices(),
        intraday=intraday or FakeIntraday(),
        clock=clock,
        **kwargs,
    )


def _mlk_articles():
    return [Article(url="https://example.com/first", title="First mention", raw_date="20240115103000")]


# ── analyze_quote ─────────────────────────────────────────────────────────────

def test_successful_analysis_payload():
    news = FakeNews(_mlk_articles())
    engine = _engine(news=news, prices=FakePrices(make_feed(mlk_week_rows())))

    payload = engine.analyze_quote("  “Build the   wall”  ")

    assert payload["ok"] is True
    assert payload["input"] == "“Build the   wall”"
    assert payload["normalized"] == '"Build the wall"'
    assert payload["query"] == '"\\"Build the wall\\"" trump'
    assert news.queries == [payload["query"]]
    assert payload["earliest"]["datetime"] == "2024-01-15T10:30:00Z"
    assert payload["spy"]["eventTradingDate"] == "2024-01-16"
    assert payload["spy"]["retPrevToEventPct"] == 5.0
    assert payload["debug"]["gdeltStatus"] == 200
    assert engine.last_result is not None
    json.dumps(payload, allow_nan=False)


def test_empty_quote_is_invalid():
    news = FakeNews(_mlk_articles())
    payload = _engine(news=news).analyze_quote("   ")

    assert payload["ok"] is False
    assert payload["httpStatus"] == 400
    assert payload["kind"] == "InvalidQuery"
    assert news.queries == []


def test_no_articles_is_not_found_and_skips_price_fetch():
    prices = FakePrices(make_feed(mlk_week_rows()))
    payload = _engine(news=FakeNews([]), prices=prices).analyze_quote("nothing matches")

    assert payload["httpStatus"] == 404
    assert payload["kind"] == "NoArticlesFound"
    assert payload["debug"]["query"] == '"nothing matches" trump'
    assert prices.calls == 0


def test_insufficient_series_payload_carries_counts():
    prices = FakePrices(make_feed(mlk_week_rows()[:10]))
    payload = _engine(news=FakeNews(_mlk_articles()), prices=prices).analyze_quote("quote")

    assert payload["httpStatus"] == 500
    assert payload["kind"] == "InsufficientSeriesData"
    assert payload["debug"]["seriesLen"] == 10


def test_min_series_points_is_configurable():
    engine = AnalysisEngine(
        config={"analysis": {"min_series_points": 5}},
        news=FakeNews(_mlk_articles()),
        prices=FakePrices(make_feed(mlk_week_rows()[-6:])),
        intraday=FakeIntraday(),
        clock=FakeClock(),
    )
    payload = engine.analyze_quote("quote")
    assert payload["ok"] is True
    assert engine.config["analysis"]["window_radius"] == 10


def test_upstream_failures_map_to_gateway_statuses():
    limited = _engine(news=FakeNews(error=UpstreamRateLimited("slow down", {"gdeltStatus": 429})))
    assert limited.analyze_quote("q")["httpStatus"] == 429

    bad = _engine(
        news=FakeNews(_mlk_articles()),
        prices=FakePrices(error=UpstreamBadResponse("html", {"stooqStatus": 200})),
    )
    payload = bad.analyze_quote("q")
    assert payload["httpStatus"] == 502
    assert payload["debug"]["stooqStatus"] == 200

    down = _engine(news=FakeNews(error=requests.ConnectionError("refused")))
    payload = down.analyze_quote("q")
    assert payload["httpStatus"] == 502
    assert payload["kind"] == "UpstreamUnavailable"


def test_throttle_rejects_back_to_back_requests():
    clock = FakeClock()
    news = FakeNews(_mlk_articles())
    engine = _engine(news=news, prices=FakePrices(make_feed(mlk_week_rows())), clock=clock)

    assert engine.analyze_quote("q")["ok"] is True

    clock.now += 2.5
    payload = engine.analyze_quote("q")
    assert payload["httpStatus"] == 429
    assert payload["kind"] == "ThrottledRequest"
    assert payload["debug"]["waitMs"] == 3500
    assert "Wait 4s" in payload["error"]
    assert len(news.queries) == 1

    clock.now += 3.5
    assert engine.analyze_quote("q")["ok"] is True


def test_throttle_state_is_shared_only_when_passed_in():
    clock = FakeClock()
    shared = RequestThrottle(min_interval_seconds=6, clock=clock)
    feed = make_feed(mlk_week_rows())
    first = _engine(news=FakeNews(_mlk_articles()), prices=FakePrices(feed), clock=clock, throttle=shared)
    second = _engine(news=FakeNews(_mlk_articles()), prices=FakePrices(feed), clock=clock, throttle=shared)
    third = _engine(news=FakeNews(_mlk_articles()), prices=FakePrices(feed), clock=clock)

    assert first.analyze_quote("q")["ok"] is True
    assert second.analyze_quote("q")["kind"] == "ThrottledRequest"
    assert third.analyze_quote("q")["ok"] is True


def test_http_status_mapping():
    assert http_status_for(NoArticlesFound("x")) == 404
    assert http_status_for(MissingDate("x")) == 500
    assert http_status_for(InsufficientSeriesData("x")) == 500
    assert http_status_for(AlignmentFailed("x")) == 500
    assert http_status_for(UpstreamBadResponse("x")) == 502


# ── today ─────────────────────────────────────────────────────────────────────

def test_today_snapshot_and_cache():
    clock = FakeClock()  # 2024-01-16 11:00 in New York
    recent = [
        Article(url="https://a", title="Headline one", raw_date="20240116150000"),
        Article(url="https://b", title="Headline one", raw_date="20240116140000"),
        Article(url="https://c", title="Headline two", raw_date="20240116130000"),
    ]
    intraday = FakeIntraday([
        {"datetime": "2024-01-16 10:30:00", "close": "475.5"},
        {"datetime": "2024-01-16 09:30:00", "close": "474.0"},
        {"datetime": "2024-01-12 15:30:00", "close": "476.0"},
    ])
    engine = _engine(news=FakeNews(recent=recent), intraday=intraday, clock=clock)

    snapshot = engine.today()

    assert snapshot["ok"] is True
    assert [q["text"] for q in snapshot["quotes"]] == ["Headline one", "Headline two"]
    assert snapshot["quotes"][0]["url"] == "https://b"
    assert snapshot["spy"] == [
        {"time": "2024-01-16 09:30:00", "close": 474.0},
        {"time": "2024-01-16 10:30:00", "close": 475.5},
    ]

    clock.now += 60
    assert engine.today() == snapshot
    assert intraday.calls == 1

    clock.now += 61
    engine.today()
    assert intraday.calls == 2

    engine.today(force=True)
    assert intraday.calls == 3


def test_today_missing_key_fails_and_is_cached():
    intraday = FakeIntraday(error=MissingApiKey("Missing TWELVE_API_KEY environment variable.", {"haveKey": False}))
    engine = _engine(intraday=intraday, snapshot_cache=SnapshotCache(ttl_seconds=120, clock=FakeClock()))

    snapshot = engine.today()

    assert snapshot["ok"] is False
    assert snapshot["httpStatus"] == 500
    assert snapshot["debug"]["haveKey"] is False
    assert snapshot["quotes"] == [] and snapshot["spy"] == []
    engine.today()
    assert intraday.calls == 1


def test_today_partial_failures_are_reported_in_debug():
    intraday = FakeIntraday(error=UpstreamBadResponse("no values", {"tdMessage": "limit reached"}))
    news = FakeNews(error=requests.Timeout("slow"))
    snapshot = _engine(news=news, intraday=intraday).today()

    assert snapshot["ok"] is True
    assert snapshot["quotes"] == [] and snapshot["spy"] == []
    assert snapshot["debug"]["intraday"]["diagnosticContext"]["tdMessage"] == "limit reached"
    assert snapshot["debug"]["news"]["kind"] == "UpstreamUnavailable"
