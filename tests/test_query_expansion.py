from __future__ import annotations

from engine.context import SearchContext
from engine.query_expansion import generate_alternate_terms


def test_math_fraction_alternates_follow_subject_band_generic_order() -> None:
    context = SearchContext(subject="Math", grade_level="4th Grade", topic="Fractions")
    terms = generate_alternate_terms("fractions", context)

    assert terms[:4] == ["fractions explained", "fraction math", "parts of fractions", "fraction tutorial"]
    assert terms[4:7] == ["fractions upper elementary", "fractions middle grades", "fractions intermediate"]
    assert terms[-1] == "4th Grade fractions"
    assert "fractions lesson" in terms
    assert "fractions math" in terms


def test_alternates_are_unique_and_exclude_primary() -> None:
    context = SearchContext(subject="Math", grade_level="4th Grade", topic="Fractions")
    terms = generate_alternate_terms("Fractions Explained", context)
    lowered = [term.lower() for term in terms]

    assert "fractions explained" not in lowered
    assert len(lowered) == len(set(lowered))


def test_unknown_subject_uses_generic_templates_only() -> None:
    context = SearchContext(subject="Robotics", grade_level="", topic="Robots")
    terms = generate_alternate_terms("robots", context)

    assert terms == [
        "robots lesson",
        "robots tutorial",
        "robots explained",
        "robots for kids",
        "robots education",
        "learn robots",
        "robots robotics",
    ]


def test_blank_term_has_no_alternates() -> None:
    context = SearchContext(subject="Science", grade_level="5th Grade", topic="Cells")
    assert generate_alternate_terms("   ", context) == []
