"""GDELT DOC 2.0 article search provider.

Two request shapes share one fetch path:
  - ``search``       — ``sort=dateasc``, earliest mention first (analysis)
  - ``fetch_recent`` — ``sort=datedesc``, latest headlines (today snapshot)

Optionally routed through a caching proxy (``<proxy_base>/?url=<gdelt>&cache=1``).
Transport errors are retried; classified failures are raised immediately:
  HTTP 429       → UpstreamRateLimited
  non-JSON body  → UpstreamBadResponse
"""

import json
import urllib.parse
from typing import Any, Optional, Tuple

import requests

from quote_impact.core.errors import UpstreamBadResponse, UpstreamRateLimited
from quote_impact.core.logger import logger
from quote_impact.core.retry import with_retries
from quote_impact.models.datatypes import Article, SearchResponse
from quote_impact.providers.base import NewsSearchProvider

_GDELT_URL = "https://api.gdeltproject.org/api/v2/doc/doc"
_PREVIEW_CHARS = 200


class GdeltProvider(NewsSearchProvider):
    """GDELT ``mode=artlist`` JSON provider.

    Args:
        base_url: DOC API endpoint.
        proxy_base: Optional proxy prefix; ``None`` calls GDELT directly.
        max_records: ``maxrecords`` for :meth:`search`.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = _GDELT_URL,
        proxy_base: Optional[str] = None,
        max_records: int = 20,
        timeout: float = 15,
    ) -> None:
        self.base_url = base_url
        self.proxy_base = proxy_base.rstrip("/") if proxy_base else None
        self.max_records = max_records
        self.timeout = timeout

    # ── public API ──────────────────────────────────────────────────────────

    def search(self, query: str) -> SearchResponse:
        """Return articles for ``query``, oldest first."""
        return self._fetch(self.build_url(query, sort="dateasc", limit=self.max_records))

    def fetch_recent(self, query: str, limit: int = 50) -> SearchResponse:
        """Return the newest ``limit`` articles for ``query``."""
        return self._fetch(self.build_url(query, sort="datedesc", limit=limit))

    def build_url(self, query: str, sort: str, limit: int) -> str:
        """Build the DOC API URL, wrapped in the proxy URL when one is set."""
        params = urllib.parse.urlencode(
            {
                "query": query,
                "mode": "artlist",
                "format": "json",
                "sort": sort,
                "maxrecords": limit,
            },
            quote_via=urllib.parse.quote,
        )
        url = f"{self.base_url}?{params}"
        if not self.proxy_base:
            return url
        return f"{self.proxy_base}/?url={urllib.parse.quote(url, safe='')}&cache=1"

    # ── internal ─────────────────────────────────────────────────────────────

    @with_retries(max_retries=2, initial_delay=1)
    def _get(self, url: str) -> requests.Response:
        return requests.get(url, timeout=self.timeout)

    def _fetch(self, url: str) -> SearchResponse:
        logger.info(f"GdeltProvider: fetching {url}")
        resp = self._get(url)
        status = resp.status_code
        text = resp.text or ""

        if status == 429:
            raise UpstreamRateLimited(
                "GDELT rate limited this request. Try again in ~5-10 seconds.",
                {"gdeltStatus": status, "url": url, "preview": text[:_PREVIEW_CHARS]},
            )

        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise UpstreamBadResponse(
                f"GDELT returned non-JSON (status {status}).",
                {"gdeltStatus": status, "url": url, "preview": text[:_PREVIEW_CHARS]},
            ) from exc

        articles = _parse_articles(payload)
        logger.info(f"GdeltProvider: {len(articles)} articles (HTTP {status})")
        return SearchResponse(status=status, url=url, articles=articles)


def _parse_articles(payload: Any) -> Tuple[Article, ...]:
    """Extract ``articles`` from a DOC API payload; anything else means none."""
    raw = payload.get("articles") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        return ()
    return tuple(Article.from_dict(item) for item in raw if isinstance(item, dict))
