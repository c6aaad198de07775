"""Classified failures raised by the alignment core and the upstream providers.

Every failure carries a ``kind`` (stable identifier), a human-readable
``message`` and a ``context`` dict holding the raw values and intermediate
counts needed to debug without re-running the request. Transport status
codes are assigned by the service engine, not here.
"""

from typing import Any, Dict, Optional


class AnalysisFailure(Exception):
    """Base class for every classified analysis failure."""

    kind = "AnalysisFailure"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "diagnosticContext": dict(self.context),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


# ── core kinds ────────────────────────────────────────────────────────────────

class NormalizationError(AnalysisFailure):
    """A raw article date could not be turned into a canonical instant."""

    kind = "NormalizationError"


class MissingDate(NormalizationError):
    kind = "MissingDate"


class UnparseableDate(NormalizationError):
    kind = "UnparseableDate"


class NoArticlesFound(AnalysisFailure):
    kind = "NoArticlesFound"


class InsufficientSeriesData(AnalysisFailure):
    kind = "InsufficientSeriesData"


class AlignmentFailed(AnalysisFailure):
    kind = "AlignmentFailed"


# ── service kinds ─────────────────────────────────────────────────────────────

class InvalidQuery(AnalysisFailure):
    kind = "InvalidQuery"


class ThrottledRequest(AnalysisFailure):
    """Rejected locally before contacting the search provider."""

    kind = "ThrottledRequest"


class UpstreamRateLimited(AnalysisFailure):
    kind = "UpstreamRateLimited"


class UpstreamBadResponse(AnalysisFailure):
    """The upstream answered, but not in the expected format."""

    kind = "UpstreamBadResponse"


class UpstreamUnavailable(AnalysisFailure):
    kind = "UpstreamUnavailable"


class MissingApiKey(AnalysisFailure):
    kind = "MissingApiKey"
