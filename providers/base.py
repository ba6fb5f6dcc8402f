from engine.types import CandidateItem, SearchFilters


class ContentProvider:
    """Boundary to an external video source.

    ``search`` must be safe to retry, return an empty list when nothing matches,
    and raise ``ProviderAuthError``/``ProviderTransportError`` only for
    unrecoverable failures.
    """

    source = ""

    def search(self, query: str, max_results: int, filters: SearchFilters | None = None) -> list[CandidateItem]:
        raise NotImplementedError

    def close(self) -> None:
        return None
