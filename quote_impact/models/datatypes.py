"""Data structures for the quote-impact alignment pipeline."""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union, overload

import pandas as pd

# Priority order of the synonymous publish-date keys emitted by search feeds.
DATE_KEYS = ("seendate", "seenDate", "datetime", "date")


@dataclass(frozen=True)
class Article:
    """
    A news-search hit. Only ``raw_date`` matters to the alignment core.
    """
    url: str
    title: str
    raw_date: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Article":
        """Build an Article from a raw provider record, picking the best date field."""
        raw_date = None
        for key in DATE_KEYS:
            value = payload.get(key)
            if value:
                raw_date = str(value)
                break
        return cls(
            url=str(payload.get("url") or ""),
            title=str(payload.get("title") or ""),
            raw_date=raw_date,
        )


@dataclass(frozen=True)
class PricePoint:
    """One daily close. ``date`` is ``YYYY-MM-DD``."""
    date: str
    close: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "close": self.close}


class PriceSeries:
    """
    Immutable, ascending, date-unique sequence of :class:`PricePoint`.

    Windows and slices are new ``PriceSeries`` objects; the underlying tuple
    is never mutated.
    """

    __slots__ = ("_points",)

    def __init__(self, points: Tuple[PricePoint, ...] = ()) -> None:
        self._points = tuple(points)

    @property
    def points(self) -> Tuple[PricePoint, ...]:
        return self._points

    def __len__(self) -> int:
        return len(self._points)

    @overload
    def __getitem__(self, index: int) -> PricePoint: ...

    @overload
    def __getitem__(self, index: slice) -> "PriceSeries": ...

    def __getitem__(self, index: Union[int, slice]) -> Union[PricePoint, "PriceSeries"]:
        if isinstance(index, slice):
            return PriceSeries(self._points[index])
        return self._points[index]

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PriceSeries):
            return NotImplemented
        return self._points == other._points

    def __hash__(self) -> int:
        return hash(self._points)

    def __repr__(self) -> str:
        if not self._points:
            return "PriceSeries([])"
        return f"PriceSeries({len(self)} points, {self._points[0].date}..{self._points[-1].date})"

    def window(self, index: int, radius: int) -> "PriceSeries":
        """Return points ``index - radius`` through ``index + radius``, clipped to bounds."""
        start = max(0, index - radius)
        end = min(len(self._points), index + radius + 1)
        return PriceSeries(self._points[start:end])

    def to_list(self) -> List[Dict[str, Any]]:
        return [point.to_dict() for point in self._points]

    def to_frame(self) -> pd.DataFrame:
        """Return the series as a DataFrame with ``Date`` and ``Close`` columns."""
        return pd.DataFrame(
            {
                "Date": [p.date for p in self._points],
                "Close": [p.close for p in self._points],
            },
            columns=["Date", "Close"],
        )


@dataclass(frozen=True)
class EarliestMention:
    """Metadata of the article the event instant was taken from."""
    datetime: str
    title: str
    url: str


@dataclass(frozen=True)
class EventReaction:
    """
    Index reaction around the event trading day.

    Returns are percentages; ``None`` means the return could not be reported
    (no next trading day, or a zero base close).
    """
    event_trading_date: str
    prev_close: float
    event_close: float
    next_close: Optional[float] = None
    ret_prev_to_event_pct: Optional[float] = None
    ret_event_to_next_pct: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "eventTradingDate": self.event_trading_date,
            "prevClose": self.prev_close,
            "eventClose": self.event_close,
        }
        optional = {
            "nextClose": self.next_close,
            "retPrevToEventPct": self.ret_prev_to_event_pct,
            "retEventToNextPct": self.ret_event_to_next_pct,
        }
        out.update({key: value for key, value in optional.items() if value is not None})
        return out


@dataclass(frozen=True)
class AlignmentResult:
    """Successful analysis: earliest mention, index reaction and display window."""
    earliest: EarliestMention
    spy: EventReaction
    series: PriceSeries

    def to_dict(self) -> Dict[str, Any]:
        return {
            "earliest": {
                "datetime": self.earliest.datetime,
                "title": self.earliest.title,
                "url": self.earliest.url,
            },
            "spy": self.spy.to_dict(),
            "series": self.series.to_list(),
        }


@dataclass(frozen=True)
class SearchResponse:
    """Articles returned by a news-search provider plus transport diagnostics."""
    status: int
    url: str
    articles: Tuple[Article, ...] = ()


@dataclass(frozen=True)
class IntradayBar:
    """One intraday bar: exchange-local ``time`` string and close."""
    time: str
    close: float

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "close": self.close}


@dataclass(frozen=True)
class QuoteCandidate:
    """A recent headline offered as a quote to analyse."""
    text: str
    datetime: Optional[str]
    url: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "datetime": self.datetime, "url": self.url}
