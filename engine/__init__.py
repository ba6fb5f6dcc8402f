from .context import GradeBand, SearchContext, SearchPreferences, Subject, context_key
from .errors import (
    AlternateFetchFailed,
    CacheCorruption,
    ProviderAuthError,
    ProviderError,
    ProviderTransportError,
    ProviderUnavailable,
    SearchEngineError,
)
from .pattern_cache import PatternCache
from .search_engine import ContextualSearchService
from .types import CandidateItem, ScoredCandidate, SearchFilters, SearchResult, Thresholds

__all__ = [
    "AlternateFetchFailed",
    "CacheCorruption",
    "CandidateItem",
    "ContextualSearchService",
    "GradeBand",
    "PatternCache",
    "ProviderAuthError",
    "ProviderError",
    "ProviderTransportError",
    "ProviderUnavailable",
    "ScoredCandidate",
    "SearchContext",
    "SearchEngineError",
    "SearchFilters",
    "SearchPreferences",
    "SearchResult",
    "Subject",
    "Thresholds",
    "context_key",
]
