class SearchEngineError(Exception):
    """Base class for contextual search failures."""


class ProviderError(SearchEngineError):
    """Unrecoverable failure reported by a content provider."""


class ProviderAuthError(ProviderError):
    """Provider credentials are missing or were rejected."""


class ProviderTransportError(ProviderError):
    """Provider request failed or timed out."""


class ProviderUnavailable(SearchEngineError):
    """The primary search could not be completed; no result is produced."""

    def __init__(self, query, cause=None):
        self.query = query
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Content provider unavailable for query {query!r}{detail}")


class AlternateFetchFailed(SearchEngineError):
    """A single fallback query failed; recorded and skipped, never raised out of a search."""

    def __init__(self, query, cause=None):
        self.query = query
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Alternate search failed for query {query!r}{detail}")


class CacheCorruption(SearchEngineError):
    """A pattern cache entry was malformed and has been discarded."""

    def __init__(self, key, reason):
        self.key = key
        self.reason = reason
        super().__init__(f"Discarded malformed pattern cache entry {key!r}: {reason}")
