from __future__ import annotations

from dataclasses import dataclass

from engine.types import ScoredCandidate, Thresholds

REASON_ACCEPTABLE = "Results quality acceptable"
REASON_NO_RESULTS = "No results returned"


@dataclass(frozen=True)
class FallbackDecision:
    should_fallback: bool
    reason: str

    def __iter__(self):
        # Allows ``should, reason = should_trigger_fallback(...)``.
        yield self.should_fallback
        yield self.reason


def mean_confidence(scored_results) -> float:
    results = list(scored_results or ())
    if not results:
        return 0.0
    return sum(item.confidence for item in results) / len(results)


def should_trigger_fallback(scored_results: list[ScoredCandidate], thresholds: Thresholds) -> FallbackDecision:
    results = list(scored_results or ())
    if not results:
        return FallbackDecision(True, REASON_NO_RESULTS)

    strong = [item for item in results if item.confidence >= thresholds.fallback_confidence_threshold]
    if len(strong) < thresholds.min_result_count:
        return FallbackDecision(
            True,
            f"Only {len(strong)} results with confidence ≥ {thresholds.fallback_confidence_threshold}% "
            f"(need {thresholds.min_result_count})",
        )

    average = mean_confidence(results)
    if average < thresholds.min_confidence:
        return FallbackDecision(
            True,
            f"Average confidence {average:.1f}% below threshold {thresholds.min_confidence}%",
        )
    return FallbackDecision(False, REASON_ACCEPTABLE)
