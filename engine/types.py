from __future__ import annotations

import re
from dataclasses import dataclass, field

from engine.context import SearchContext

_ISO_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)

STRATEGY_PRIMARY_ONLY = "primary-only"
STRATEGY_FALLBACK_ENHANCED = "fallback-enhanced"

OUTCOME_OK = "ok"
OUTCOME_EMPTY = "empty"
OUTCOME_ERROR = "error"


def parse_iso8601_duration(value) -> int | None:
    """Convert a YouTube ``PT#H#M#S`` duration into whole seconds."""
    if not value or not isinstance(value, str):
        return None
    match = _ISO_DURATION_RE.match(value.strip().upper())
    if not match:
        return None
    parts = match.groupdict()
    total = (
        int(parts["days"] or 0) * 86400
        + int(parts["hours"] or 0) * 3600
        + int(parts["minutes"] or 0) * 60
        + float(parts["seconds"] or 0)
    )
    return int(total)


@dataclass(frozen=True)
class CandidateItem:
    id: str
    title: str = ""
    description: str = ""
    channel_title: str = ""
    published_at: str | None = None
    duration_seconds: int | None = None
    view_count: int | None = None
    channel_id: str | None = None
    thumbnail_url: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "id", str(self.id or "").strip())
        for name in ("title", "description", "channel_title"):
            object.__setattr__(self, name, str(getattr(self, name) or ""))

    @property
    def duration_minutes(self) -> float:
        if not self.duration_seconds:
            return 0.0
        return max(0, int(self.duration_seconds)) / 60.0


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: CandidateItem
    confidence: int
    educational_indicators: tuple[str, ...]
    filter_reasons: tuple[str, ...]
    query_term: str

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def is_accepted(self) -> bool:
        return not self.filter_reasons

    def to_dict(self) -> dict:
        item = self.candidate
        return {
            "id": item.id,
            "title": item.title,
            "description": item.description,
            "channel_title": item.channel_title,
            "channel_id": item.channel_id,
            "published_at": item.published_at,
            "duration_seconds": item.duration_seconds,
            "view_count": item.view_count,
            "thumbnail_url": item.thumbnail_url,
            "confidence": self.confidence,
            "educational_indicators": list(self.educational_indicators),
            "filter_reasons": list(self.filter_reasons),
            "query_term": self.query_term,
        }


@dataclass(frozen=True)
class Thresholds:
    min_confidence: int
    min_result_count: int
    fallback_confidence_threshold: int

    def to_dict(self) -> dict:
        return {
            "min_confidence": self.min_confidence,
            "min_result_count": self.min_result_count,
            "fallback_confidence_threshold": self.fallback_confidence_threshold,
        }


@dataclass(frozen=True)
class SearchFilters:
    safe_mode: bool = True
    preferred_duration_band: str | None = "medium"

    @classmethod
    def for_context(cls, context: SearchContext) -> "SearchFilters":
        duration = context.target_duration_minutes
        if duration is not None and duration < 4:
            return cls(safe_mode=True, preferred_duration_band="short")
        return cls(safe_mode=True, preferred_duration_band="medium")


@dataclass(frozen=True)
class ProviderOutcome:
    query: str
    status: str
    items: tuple[CandidateItem, ...] = ()
    error: BaseException | None = None
    elapsed_ms: int = 0

    @classmethod
    def from_items(cls, query, items, *, elapsed_ms=0) -> "ProviderOutcome":
        items = tuple(items or ())
        return cls(query=query, status=OUTCOME_OK if items else OUTCOME_EMPTY, items=items, elapsed_ms=elapsed_ms)

    @classmethod
    def failed(cls, query, error, *, elapsed_ms=0) -> "ProviderOutcome":
        return cls(query=query, status=OUTCOME_ERROR, error=error, elapsed_ms=elapsed_ms)

    @property
    def ok(self) -> bool:
        return self.status != OUTCOME_ERROR


@dataclass(frozen=True)
class SearchFeedback:
    primary_search_results: int = 0
    fallback_search_results: int = 0
    filtered_out_count: int = 0
    reasons_filtered: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "primary_search_results": self.primary_search_results,
            "fallback_search_results": self.fallback_search_results,
            "filtered_out_count": self.filtered_out_count,
            "reasons_filtered": list(self.reasons_filtered),
        }


@dataclass(frozen=True)
class SearchResult:
    results: tuple[ScoredCandidate, ...]
    search_terms_used: tuple[str, ...]
    average_confidence: float
    total_results_found: int
    fallback_triggered: bool
    search_strategy: str
    feedback: SearchFeedback
    fallback_reason: str | None = None
    thresholds: Thresholds | None = None
    improvement_suggestions: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "results": [item.to_dict() for item in self.results],
            "search_terms_used": list(self.search_terms_used),
            "average_confidence": self.average_confidence,
            "total_results_found": self.total_results_found,
            "fallback_triggered": self.fallback_triggered,
            "search_strategy": self.search_strategy,
            "feedback": self.feedback.to_dict(),
            "fallback_reason": self.fallback_reason,
            "thresholds": self.thresholds.to_dict() if self.thresholds else None,
            "improvement_suggestions": list(self.improvement_suggestions),
        }
