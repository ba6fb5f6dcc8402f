"""Deterministic alternate-query builders for fallback search passes."""

from __future__ import annotations

from config.search_policy import SearchPolicy, default_search_policy
from engine.context import SearchContext, normalize_label


def _render(template: str, *, term: str, context: SearchContext) -> str:
    text = template.replace("{term}", term)
    text = text.replace("{subject}", context.subject.lower())
    text = text.replace("{grade_level}", context.grade_level)
    return " ".join(text.split())


def subject_specific_terms(primary_term: str, context: SearchContext, policy: SearchPolicy) -> list[str]:
    term_lower = normalize_label(primary_term)
    for rule in policy.subject_expansions.get(context.subject_kind.value, ()):
        if str(rule.get("keyword") or "").lower() in term_lower:
            return list(rule.get("terms") or [])
    return []


def grade_band_terms(primary_term: str, context: SearchContext, policy: SearchPolicy) -> list[str]:
    templates = policy.grade_band_expansions.get(context.grade_band.value, ())
    return [_render(template, term=primary_term, context=context) for template in templates]


def generate_alternate_terms(primary_term, context: SearchContext, policy: SearchPolicy | None = None) -> list[str]:
    """Build alternate queries for ``primary_term``.

    Order is subject rewordings, then grade-band rewordings, then the generic
    pedagogical templates. Duplicates (case-insensitive) and the primary term
    itself are dropped; the first spelling of a term wins.

    Example, Math / 4th Grade / "fractions":
    ``["fractions explained", "fraction math", ..., "fractions upper elementary", ..., "fractions lesson", ...]``
    """
    policy = policy or default_search_policy()
    term = " ".join(str(primary_term or "").split())
    if not term:
        return []

    candidates: list[str] = []
    candidates.extend(subject_specific_terms(term, context, policy))
    candidates.extend(grade_band_terms(term, context, policy))
    candidates.extend(_render(template, term=term, context=context) for template in policy.generic_expansions)

    seen = {normalize_label(term)}
    alternates = []
    for candidate in candidates:
        text = " ".join(candidate.split())
        key = normalize_label(text)
        if not key or key in seen:
            continue
        seen.add(key)
        alternates.append(text)
    return alternates
