from __future__ import annotations

from config.search_policy import SearchPolicy, default_search_policy
from engine.context import SearchContext
from engine.types import Thresholds

_FIELDS = ("min_confidence", "min_result_count", "fallback_confidence_threshold")
_PERCENT_FIELDS = ("min_confidence", "fallback_confidence_threshold")


def _apply(values, adjustment):
    for field in _FIELDS:
        values[field] += int((adjustment or {}).get(field, 0))


def adaptive_thresholds(context: SearchContext, policy: SearchPolicy | None = None) -> Thresholds:
    """Thresholds for ``context``; depends only on its subject and grade level."""
    policy = policy or default_search_policy()
    values = {field: int(policy.threshold_base[field]) for field in _FIELDS}

    _apply(values, policy.subject_threshold_adjustments.get(context.subject_kind.value))
    # Advanced material is scarce; early-grade material is plentiful.
    if context.is_terminal_grade:
        _apply(values, policy.grade_threshold_adjustments.get("advanced"))
    elif context.is_early_grade:
        _apply(values, policy.grade_threshold_adjustments.get("early"))

    for field in _FIELDS:
        values[field] = max(int(policy.threshold_floors[field]), values[field])
    for field in _PERCENT_FIELDS:
        values[field] = min(100, values[field])
    return Thresholds(**values)
