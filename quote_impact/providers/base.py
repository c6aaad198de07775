"""Abstract base classes for upstream data providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from quote_impact.models.datatypes import SearchResponse


class NewsSearchProvider(ABC):
    """Abstract interface for searching news articles by phrase."""

    @abstractmethod
    def search(self, query: str) -> SearchResponse:
        """
        Search articles matching ``query``, oldest first.

        Args:
            query (str): Provider query string.

        Returns:
            SearchResponse: Status, request URL and the ranked articles.
        """
        pass

    @abstractmethod
    def fetch_recent(self, query: str, limit: int) -> SearchResponse:
        """
        Fetch the most recent articles matching ``query``, newest first.

        Args:
            query (str): Provider query string.
            limit (int): Maximum number of articles.

        Returns:
            SearchResponse: Status, request URL and the articles.
        """
        pass


class DailyPriceProvider(ABC):
    """Abstract interface for fetching a raw daily price feed."""

    @abstractmethod
    def fetch_daily_csv(self) -> str:
        """
        Fetch the full daily history as raw CSV text (header line first).

        Returns:
            str: Raw feed text, parsed later by ``parse_daily_csv``.
        """
        pass


class IntradayPriceProvider(ABC):
    """Abstract interface for fetching recent intraday bars."""

    @abstractmethod
    def fetch_bars(self) -> List[Dict[str, Any]]:
        """
        Fetch recent intraday bars as raw dicts with ``datetime`` and ``close``.

        Returns:
            List[Dict[str, Any]]: Bars in provider order.
        """
        pass
