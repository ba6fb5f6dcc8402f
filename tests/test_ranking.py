from __future__ import annotations

from engine.ranking import aggregate_filter_reasons, combine_and_rank, disqualified_candidates
from engine.types import CandidateItem, ScoredCandidate


def _scored(video_id, confidence, query_term, reasons=()):
    return ScoredCandidate(
        candidate=CandidateItem(id=video_id, title=f"Video {video_id}"),
        confidence=confidence,
        educational_indicators=(),
        filter_reasons=tuple(reasons),
        query_term=query_term,
    )


def test_first_pass_wins_for_duplicate_ids() -> None:
    passes = [
        ("primary", [_scored("a", 60, "primary"), _scored("b", 90, "primary")]),
        ("alt", [_scored("a", 95, "alt"), _scored("c", 70, "alt")]),
    ]
    ranked = combine_and_rank(passes)
    assert [item.id for item in ranked] == ["b", "c", "a"]
    assert ranked[2].query_term == "primary"
    assert ranked[2].confidence == 60


def test_ties_keep_pass_order_and_results_are_truncated() -> None:
    passes = [
        ("primary", [_scored("a", 80, "primary"), _scored("b", 80, "primary")]),
        ("alt", [_scored("c", 80, "alt"), _scored("d", 85, "alt")]),
    ]
    assert [item.id for item in combine_and_rank(passes, max_results=3)] == ["d", "a", "b"]


def test_disqualified_and_idless_candidates_are_dropped() -> None:
    passes = [
        ("primary", [_scored("a", 0, "primary", ["Contains inappropriate content: graphic"]), _scored("", 90, "primary")]),
        ("alt", [_scored("b", 40, "alt")]),
    ]
    assert [item.id for item in combine_and_rank(passes)] == ["b"]


def test_disqualified_candidates_are_distinct_and_never_accepted_elsewhere() -> None:
    passes = [
        ("primary", [_scored("a", 0, "primary", ["Contains inappropriate content: scary"]), _scored("b", 10, "primary", ["Low educational relevance score"])]),
        ("alt", [_scored("a", 0, "alt", ["Contains inappropriate content: scary"]), _scored("b", 50, "alt")]),
    ]
    rejected = disqualified_candidates(passes)
    assert [item.id for item in rejected] == ["a"]
    assert aggregate_filter_reasons(rejected) == ["Contains inappropriate content: scary"]


def test_aggregate_filter_reasons_keeps_first_seen_order() -> None:
    items = [
        _scored("a", 10, "t", ["Low educational relevance score"]),
        _scored("b", 0, "t", ["Contains inappropriate content: horror"]),
        _scored("c", 12, "t", ["Low educational relevance score", "Video too long for classroom use"]),
    ]
    assert aggregate_filter_reasons(items) == [
        "Low educational relevance score",
        "Contains inappropriate content: horror",
        "Video too long for classroom use",
    ]
