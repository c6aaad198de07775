"""Date normalization for news-search feeds.

Raw article dates arrive either as compact ``YYYYMMDDhhmmss`` digit strings
(GDELT ``seendate``), as RFC 2822 dates (RSS ``pubDate``), or as any string a
general date parser understands.
All are rendered back as a UTC ISO-8601 instant ending in ``Z`` whose first
10 characters are the calendar date.
"""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import pandas as pd

from quote_impact.core.errors import MissingDate, UnparseableDate

_COMPACT_RE = re.compile(r"[0-9]{14}")
_COMPACT_FMT = "%Y-%m-%dT%H:%M:%SZ"
_RFC2822_RE = re.compile(r"(?:[A-Za-z]{3},\s*)?[0-9]{1,2}\s+[A-Za-z]{3}\s+[0-9]{2,4}\s+[0-9]{1,2}:[0-9]{2}.*")

# Relative keywords pandas resolves against the wall clock.
_RELATIVE_WORDS = frozenset({"now", "today", "tomorrow", "yesterday"})


def normalize(raw: Optional[str]) -> str:
    """Convert a raw article date into a canonical UTC instant string.

    Args:
        raw: Raw date string, or ``None``.

    Returns:
        str: ``YYYY-MM-DDThh:mm:ssZ`` for compact input, otherwise
        ``YYYY-MM-DDThh:mm:ss.mmmZ``.

    Raises:
        MissingDate: ``raw`` is ``None`` or blank.
        UnparseableDate: ``raw`` is not a recognisable instant.
    """
    if raw is None or not str(raw).strip():
        raise MissingDate("Article carries no publish date.", {"raw": raw})

    text = str(raw).strip()
    if _COMPACT_RE.fullmatch(text):
        return _normalize_compact(text)
    return _normalize_general(text)


def calendar_date(instant: str) -> str:
    """Return the ``YYYY-MM-DD`` part of a canonical instant."""
    return instant[:10]


def _normalize_compact(text: str) -> str:
    """Positional parse of ``YYYYMMDDhhmmss``; no timezone inference."""
    try:
        parsed = datetime(
            int(text[0:4]), int(text[4:6]), int(text[6:8]),
            int(text[8:10]), int(text[10:12]), int(text[12:14]),
            tzinfo=timezone.utc,
        )
    except ValueError as exc:
        raise UnparseableDate(
            f"Compact timestamp {text!r} is not a valid calendar instant.",
            {"raw": text, "reason": str(exc)},
        ) from exc
    return parsed.strftime(_COMPACT_FMT)


def _normalize_general(text: str) -> str:
    """Parse with pandas; naive values are taken as UTC."""
    if text.lower() in _RELATIVE_WORDS:
        raise UnparseableDate(f"Relative date {text!r} has no fixed instant.", {"raw": text})
    if _RFC2822_RE.fullmatch(text):
        return _normalize_rfc2822(text)

    try:
        stamp = pd.to_datetime(text, utc=True)
    except (ValueError, TypeError, OverflowError) as exc:
        raise UnparseableDate(
            f"Could not parse publish datetime {text!r}.",
            {"raw": text, "reason": str(exc)},
        ) from exc

    if pd.isna(stamp):
        raise UnparseableDate(f"Could not parse publish datetime {text!r}.", {"raw": text})

    millis = stamp.microsecond // 1000
    return f"{stamp.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:03d}Z"


def _normalize_rfc2822(text: str) -> str:
    """Parse RSS/email style dates, including US zone names like ``EST``."""
    try:
        parsed = parsedate_to_datetime(text)
    except (ValueError, TypeError) as exc:
        raise UnparseableDate(
            f"Could not parse publish datetime {text!r}.",
            {"raw": text, "reason": str(exc)},
        ) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    stamp = parsed.astimezone(timezone.utc)
    return f"{stamp.strftime('%Y-%m-%dT%H:%M:%S')}.{stamp.microsecond // 1000:03d}Z"
