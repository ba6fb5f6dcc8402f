from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SUCCESS_CONFIDENCE = 80
_BROAD_SEARCH_CONFIDENCE = 50


@dataclass(frozen=True)
class LearningOutcome:
    successful_terms: tuple[str, ...]
    improvement_suggestions: tuple[str, ...]


def learn_from_search(results, success_confidence: int = DEFAULT_SUCCESS_CONFIDENCE) -> LearningOutcome:
    """Pick out the query terms worth remembering and suggest how to search better."""
    results = list(results or ())
    successful = []
    for item in results:
        if item.confidence >= success_confidence and item.query_term and item.query_term not in successful:
            successful.append(item.query_term)

    suggestions = []
    if not results:
        suggestions.extend(["Try more specific search terms", "Include subject name in search"])
    elif all(item.confidence < _BROAD_SEARCH_CONFIDENCE for item in results):
        suggestions.extend(["Search terms may be too broad", "Try including grade level in search"])
    return LearningOutcome(tuple(successful), tuple(suggestions))
