"""Utility helpers for turning a free-text quote into a news-search query."""

import re

MAX_QUOTE_CHARS = 240

# Typographic quotes pasted from articles → plain ASCII equivalents.
_DOUBLE_QUOTES = re.compile(r"[“”]")
_SINGLE_QUOTES = re.compile(r"[‘’]")
_WHITESPACE = re.compile(r"\s+")


def normalize_quote(text: str, max_chars: int = MAX_QUOTE_CHARS) -> str:
    """Canonicalise a pasted quote before it is embedded in a search query.

    Examples:
        ``"“Build the  wall”"`` → ``'"Build the wall"'``

    Args:
        text (str): Raw quote as typed or pasted by the user.
        max_chars (int): Hard cap on the returned length.

    Returns:
        str: Quote with straight quotes, single spaces and no outer whitespace.
    """
    cleaned = _DOUBLE_QUOTES.sub('"', text or "")
    cleaned = _SINGLE_QUOTES.sub("'", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:max_chars]


def build_query(normalized: str, suffix: str = "") -> str:
    """Build the flat exact-phrase query: ``"<quote>" <suffix>``.

    Embedded double quotes are backslash-escaped so the phrase stays a single
    exact-match term.
    """
    escaped = normalized.replace('"', '\\"')
    query = f'"{escaped}"'
    suffix = (suffix or "").strip()
    return f"{query} {suffix}" if suffix else query
