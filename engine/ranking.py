from __future__ import annotations

from typing import Iterable, Sequence

from engine.types import ScoredCandidate

SearchPass = tuple[str, Sequence[ScoredCandidate]]


def _flatten(passes: Iterable[SearchPass]):
    for _query_term, scored in passes or ():
        for item in scored or ():
            yield item


def combine_and_rank(passes: Iterable[SearchPass], max_results: int = 15) -> list[ScoredCandidate]:
    """Merge scored passes into one ranked list.

    Disqualified candidates are dropped, the first occurrence of an id wins
    (primary pass before fallback passes) and the stable sort keeps pass and
    provider order for equal confidence.
    """
    seen = set()
    unique = []
    for item in _flatten(passes):
        if not item.is_accepted or not item.id or item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    ranked = sorted(unique, key=lambda item: -item.confidence)
    return ranked[: max(0, int(max_results))]


def disqualified_candidates(passes: Iterable[SearchPass]) -> list[ScoredCandidate]:
    """Distinct candidates that were filtered out and never accepted in any pass."""
    passes = list(passes or ())
    accepted_ids = {item.id for item in _flatten(passes) if item.is_accepted}
    seen = set()
    rejected = []
    for item in _flatten(passes):
        if item.is_accepted or item.id in accepted_ids or item.id in seen:
            continue
        seen.add(item.id)
        rejected.append(item)
    return rejected


def aggregate_filter_reasons(scored: Iterable[ScoredCandidate]) -> list[str]:
    reasons = []
    for item in scored or ():
        for reason in item.filter_reasons:
            if reason not in reasons:
                reasons.append(reason)
    return reasons
