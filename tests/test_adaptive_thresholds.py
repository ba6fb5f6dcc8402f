from __future__ import annotations

import json

import pytest

from config.search_policy import load_search_policy
from engine.context import SearchContext
from engine.thresholds import adaptive_thresholds
from engine.types import Thresholds


def _thresholds(subject, grade_level, policy=None):
    return adaptive_thresholds(SearchContext(subject=subject, grade_level=grade_level, topic="Topic"), policy)


@pytest.mark.parametrize(
    ("subject", "grade_level", "expected"),
    [
        ("Social Studies", "6th Grade", Thresholds(60, 3, 70)),
        ("Math", "4th Grade", Thresholds(65, 3, 75)),
        ("Math", "1st Grade", Thresholds(70, 3, 80)),
        ("English Language Arts", "Kindergarten", Thresholds(60, 3, 70)),
        ("Art", "12th Grade", Thresholds(40, 1, 50)),
        ("Music", "AP Music Theory", Thresholds(40, 1, 50)),
        ("Science", "AP Biology", Thresholds(55, 2, 65)),
    ],
)
def test_subject_and_grade_adjustments(subject, grade_level, expected) -> None:
    assert _thresholds(subject, grade_level) == expected


def test_thresholds_ignore_topic_and_duration() -> None:
    first = adaptive_thresholds(SearchContext(subject="Science", grade_level="5th Grade", topic="Cells"))
    second = adaptive_thresholds(
        SearchContext(subject="Science", grade_level="5th Grade", topic="Volcanoes", target_duration_minutes=5)
    )
    assert first == second


def test_floors_are_enforced(tmp_path) -> None:
    path = tmp_path / "policy.json"
    path.write_text(
        json.dumps(
            {"threshold_base": {"min_confidence": 35, "min_result_count": 1, "fallback_confidence_threshold": 45}}
        ),
        encoding="utf-8",
    )
    policy = load_search_policy(str(path))
    assert _thresholds("Art", "AP Art History", policy) == Thresholds(30, 1, 40)
