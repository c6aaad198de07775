"""Market data integration: Stooq daily CSV and Twelve Data intraday bars."""

import json
from typing import Any, Dict, List, Optional

import requests

from quote_impact.core.errors import MissingApiKey, UpstreamBadResponse
from quote_impact.core.logger import logger
from quote_impact.core.retry import with_retries
from quote_impact.providers.base import DailyPriceProvider, IntradayPriceProvider

_STOOQ_URL = "https://stooq.com/q/d/l/"
_TWELVEDATA_URL = "https://api.twelvedata.com/time_series"
_PREVIEW_CHARS = 200


class StooqProvider(DailyPriceProvider):
    """Stooq daily history download (``?s=<symbol>&i=d``)."""

    def __init__(self, symbol: str = "spy.us", base_url: str = _STOOQ_URL, timeout: float = 15) -> None:
        self.symbol = symbol
        self.base_url = base_url
        self.timeout = timeout

    def fetch_daily_csv(self) -> str:
        """
        Fetch the full daily history for ``self.symbol``.

        Returns:
            str: Raw CSV text (header ``Date,Open,High,Low,Close,Volume``).

        Raises:
            UpstreamBadResponse: Stooq answered with an HTML page instead of CSV.
        """
        logger.info(f"StooqProvider: fetching daily history for {self.symbol}")
        resp = self._get()
        text = resp.text or ""

        # Stooq serves an HTML error page (with HTTP 200) when throttling or on bad symbols
        if text.strip().startswith("<"):
            raise UpstreamBadResponse(
                f"Stooq returned non-CSV (status {resp.status_code}).",
                {"stooqStatus": resp.status_code, "preview": text[:_PREVIEW_CHARS]},
            )
        return text

    @with_retries(max_retries=2, initial_delay=1)
    def _get(self) -> requests.Response:
        return requests.get(
            self.base_url,
            params={"s": self.symbol, "i": "d"},
            timeout=self.timeout,
        )


class TwelveDataProvider(IntradayPriceProvider):
    """Twelve Data ``time_series`` provider for recent intraday bars.

    Values come back newest first with exchange-local ``datetime`` strings
    (``YYYY-MM-DD HH:MM:SS``).
    """

    def __init__(
        self,
        api_key: Optional[str],
        symbol: str = "SPY",
        interval: str = "1h",
        output_size: int = 120,
        base_url: str = _TWELVEDATA_URL,
        timeout: float = 15,
    ) -> None:
        self.api_key = api_key
        self.symbol = symbol
        self.interval = interval
        self.output_size = output_size
        self.base_url = base_url
        self.timeout = timeout

    def fetch_bars(self) -> List[Dict[str, Any]]:
        """
        Fetch recent bars.

        Returns:
            List[Dict[str, Any]]: Raw ``values`` entries.

        Raises:
            MissingApiKey: No API key configured.
            UpstreamBadResponse: Non-JSON body or a ``status: error`` payload.
        """
        if not self.api_key:
            raise MissingApiKey(
                "Missing TWELVE_API_KEY environment variable.",
                {"haveKey": False},
            )

        logger.info(f"TwelveDataProvider: fetching {self.interval} bars for {self.symbol}")
        resp = self._get()
        text = resp.text or ""
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise UpstreamBadResponse(
                f"Twelve Data returned non-JSON (status {resp.status_code}).",
                {"tdStatus": resp.status_code, "preview": text[:_PREVIEW_CHARS]},
            ) from exc

        values = payload.get("values") if isinstance(payload, dict) else None
        if not isinstance(values, list):
            # {"status": "error", "message": ...} on bad key or rate limit
            raise UpstreamBadResponse(
                "Twelve Data returned no values.",
                {
                    "tdStatus": resp.status_code,
                    "tdStatusField": payload.get("status") if isinstance(payload, dict) else None,
                    "tdMessage": payload.get("message") if isinstance(payload, dict) else None,
                },
            )
        logger.info(f"TwelveDataProvider: {len(values)} bars")
        return [value for value in values if isinstance(value, dict)]

    @with_retries(max_retries=2, initial_delay=1)
    def _get(self) -> requests.Response:
        return requests.get(
            self.base_url,
            params={
                "symbol": self.symbol,
                "interval": self.interval,
                "outputsize": self.output_size,
                "apikey": self.api_key,
            },
            timeout=self.timeout,
        )
