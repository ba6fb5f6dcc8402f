"""Search policy data: lexicons, allowlists and threshold constants.

Everything the scorer, the query expander and the threshold provider treat as
tunable lives here so it can be replaced by a JSON file without code changes.
Subject keys match ``engine.context.Subject`` values and band keys match
``engine.context.GradeBand`` values.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any

_THRESHOLD_FIELDS = ("min_confidence", "min_result_count", "fallback_confidence_threshold")
# Floors may be raised by a policy file but never lowered below these.
_MINIMUM_FLOORS = {"min_confidence": 30, "min_result_count": 1, "fallback_confidence_threshold": 40}

DEFAULT_SEARCH_POLICY: dict[str, Any] = {
    "threshold_base": {
        "min_confidence": 60,
        "min_result_count": 3,
        "fallback_confidence_threshold": 70,
    },
    "threshold_floors": {
        "min_confidence": 30,
        "min_result_count": 1,
        "fallback_confidence_threshold": 40,
    },
    # Terminology-dense subjects ask for more, creative subjects for less.
    "subject_threshold_adjustments": {
        "math": {"min_confidence": 5, "fallback_confidence_threshold": 5},
        "science": {"min_confidence": 5, "fallback_confidence_threshold": 5},
        "english_language_arts": {"min_confidence": -5, "fallback_confidence_threshold": -5},
        "art": {"min_confidence": -10, "min_result_count": -1, "fallback_confidence_threshold": -10},
        "music": {"min_confidence": -10, "min_result_count": -1, "fallback_confidence_threshold": -10},
    },
    "grade_threshold_adjustments": {
        "advanced": {"min_confidence": -10, "min_result_count": -1, "fallback_confidence_threshold": -10},
        "early": {"min_confidence": 5, "fallback_confidence_threshold": 5},
    },
    "educational_indicators": {
        "math": [
            "lesson", "tutorial", "explained", "learn", "solve", "practice", "step by step",
            "education", "teaching", "classroom", "khan academy", "professor", "instructor",
        ],
        "english_language_arts": [
            "grammar", "writing", "reading", "literature", "lesson", "tutorial", "explained",
            "education", "teaching", "classroom", "english", "language arts",
        ],
        "science": [
            "experiment", "lab", "demonstration", "explanation", "lesson", "tutorial",
            "education", "biology", "chemistry", "physics", "scientific", "research",
        ],
        "social_studies": [
            "history", "geography", "civics", "lesson", "documentary", "historical",
            "education", "teaching", "civilization", "culture", "government",
        ],
        "art": [
            "technique", "tutorial", "lesson", "demonstration", "art education",
            "drawing", "painting", "creative", "artistic", "step by step",
        ],
        "music": [
            "lesson", "tutorial", "theory", "instrument", "practice", "education",
            "musical", "composition", "performance", "technique",
        ],
        "physical_education": [
            "exercise", "fitness", "sports", "technique", "training", "health",
            "physical education", "workout", "movement", "athletics",
        ],
        "general": [
            "lesson", "tutorial", "explained", "learn", "education", "teaching", "classroom",
        ],
    },
    "trusted_channels": [
        "Khan Academy", "Crash Course", "TED-Ed", "National Geographic Kids",
        "SciShow Kids", "Scholastic", "BrainPOP", "Mystery Science",
        "Professor Dave Explains", "Amoeba Sisters", "MinutePhysics",
        "Veritasium", "SmarterEveryDay", "Bill Nye", "Science Max",
    ],
    "disallowed_terms": [
        "explicit", "mature", "adult", "violence", "inappropriate", "nsfw",
        "dangerous", "harmful", "scary", "horror", "graphic", "disturbing",
    ],
    "subject_expansions": {
        "math": [
            {"keyword": "fraction", "terms": ["fractions explained", "fraction math", "parts of fractions", "fraction tutorial"]},
            {"keyword": "algebra", "terms": ["algebra basics", "algebra equations", "solving algebra", "algebra tutorial"]},
            {"keyword": "geometry", "terms": ["geometry shapes", "geometry formulas", "geometry basics", "geometric concepts"]},
        ],
        "english_language_arts": [
            {"keyword": "contraction", "terms": ["grammar contractions", "apostrophes contractions", "shortened words", "contractions lesson"]},
            {"keyword": "grammar", "terms": ["english grammar", "grammar rules", "grammar lesson", "grammar basics"]},
            {"keyword": "writing", "terms": ["writing skills", "creative writing", "essay writing", "writing techniques"]},
        ],
        "science": [
            {"keyword": "cell", "terms": ["plant cells biology", "animal cells science", "cell parts diagram", "cell structure"]},
            {"keyword": "photosynthesis", "terms": ["photosynthesis process", "plant photosynthesis", "photosynthesis explained", "how plants make food"]},
            {"keyword": "ecosystem", "terms": ["ecosystem science", "food chain", "habitat science", "ecosystem balance"]},
        ],
        "social_studies": [
            {"keyword": "civil war", "terms": ["american civil war", "civil war history", "civil war causes", "civil war documentary"]},
            {"keyword": "government", "terms": ["government civics", "how government works", "branches of government", "democracy explained"]},
        ],
    },
    "grade_band_expansions": {
        "early_childhood": ["{term} for kindergarten", "{term} preschool", "{term} early learning"],
        "elementary": ["{term} elementary", "{term} primary school", "{term} for young learners"],
        "upper_elementary": ["{term} upper elementary", "{term} middle grades", "{term} intermediate"],
        "middle": ["{term} middle school", "{term} junior high", "{term} teens"],
        "high": ["{term} high school", "{term} advanced", "{term} secondary"],
        "advanced": ["{term} advanced placement", "{term} college level", "{term} AP curriculum"],
    },
    "generic_expansions": [
        "{term} lesson",
        "{term} tutorial",
        "{term} explained",
        "{term} for kids",
        "{term} education",
        "learn {term}",
        "{term} {subject}",
        "{grade_level} {term}",
    ],
    "grade_band_vocabulary": {
        "early_childhood": {"terms": ["kids", "children", "elementary"], "points": 12},
        "elementary": {"terms": ["kids", "children", "elementary"], "points": 12},
        "upper_elementary": {"terms": ["middle school", "intermediate"], "points": 12},
        "middle": {"terms": ["middle school", "intermediate"], "points": 12},
        "high": {"terms": ["high school", "secondary"], "points": 12},
        "advanced": {"terms": ["advanced", "college", "ap"], "points": 15},
    },
    "scoring": {
        "indicator_points": 10,
        "trusted_channel_points": 25,
        "subject_match_points": 15,
        "topic_match_points": 20,
        "query_in_title_points": 15,
        "grade_level_literal_points": 15,
        "grade_base_points": 5,
        "duration_ok_points": 10,
        "duration_long_penalty": 5,
        "duration_ok_min_minutes": 3,
        "duration_ok_max_minutes": 20,
        "duration_too_long_minutes": 30,
        "low_relevance_threshold": 20,
    },
}


@dataclass(frozen=True)
class SearchPolicy:
    threshold_base: dict[str, int]
    threshold_floors: dict[str, int]
    subject_threshold_adjustments: dict[str, dict[str, int]]
    grade_threshold_adjustments: dict[str, dict[str, int]]
    educational_indicators: dict[str, tuple[str, ...]]
    trusted_channels: tuple[str, ...]
    disallowed_terms: tuple[str, ...]
    subject_expansions: dict[str, tuple[dict[str, Any], ...]]
    grade_band_expansions: dict[str, tuple[str, ...]]
    generic_expansions: tuple[str, ...]
    grade_band_vocabulary: dict[str, dict[str, Any]]
    scoring: dict[str, float]

    @classmethod
    def from_mapping(cls, payload: dict[str, Any]) -> "SearchPolicy":
        errors = validate_search_policy(payload)
        if errors:
            raise ValueError("invalid search policy: " + "; ".join(errors))
        return cls(
            threshold_base=dict(payload["threshold_base"]),
            threshold_floors=dict(payload["threshold_floors"]),
            subject_threshold_adjustments={
                key: dict(value) for key, value in payload["subject_threshold_adjustments"].items()
            },
            grade_threshold_adjustments={
                key: dict(value) for key, value in payload["grade_threshold_adjustments"].items()
            },
            educational_indicators={
                key: tuple(value) for key, value in payload["educational_indicators"].items()
            },
            trusted_channels=tuple(payload["trusted_channels"]),
            disallowed_terms=tuple(payload["disallowed_terms"]),
            subject_expansions={
                key: tuple(dict(rule) for rule in rules) for key, rules in payload["subject_expansions"].items()
            },
            grade_band_expansions={
                key: tuple(value) for key, value in payload["grade_band_expansions"].items()
            },
            generic_expansions=tuple(payload["generic_expansions"]),
            grade_band_vocabulary={
                key: {"terms": tuple(value.get("terms") or ()), "points": int(value.get("points") or 0)}
                for key, value in payload["grade_band_vocabulary"].items()
            },
            scoring=dict(payload["scoring"]),
        )

    def indicators_for(self, subject_key: str) -> tuple[str, ...]:
        return self.educational_indicators.get(subject_key) or self.educational_indicators.get("general") or ()


def _is_str_list(value) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


def _validate_threshold_block(errors, name, block, *, allow_partial):
    if not isinstance(block, dict):
        errors.append(f"{name} must be an object")
        return
    for field in _THRESHOLD_FIELDS:
        if field not in block:
            if not allow_partial:
                errors.append(f"{name}.{field} is required")
            continue
        value = block[field]
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{name}.{field} must be an integer")
    for field in block:
        if field not in _THRESHOLD_FIELDS:
            errors.append(f"{name}.{field} is not a threshold field")


def _validate_minimum_floors(errors, block):
    if not isinstance(block, dict):
        return
    for field, minimum in _MINIMUM_FLOORS.items():
        value = block.get(field)
        if isinstance(value, bool) or not isinstance(value, int):
            continue
        if value < minimum:
            errors.append(f"threshold_floors.{field} must be at least {minimum}")


def validate_search_policy(policy) -> list[str]:
    errors: list[str] = []
    if not isinstance(policy, dict):
        return ["search policy must be a JSON object"]

    missing = [key for key in DEFAULT_SEARCH_POLICY if key not in policy]
    for key in missing:
        errors.append(f"{key} is required")

    if "threshold_base" in policy:
        _validate_threshold_block(errors, "threshold_base", policy["threshold_base"], allow_partial=False)
    if "threshold_floors" in policy:
        _validate_threshold_block(errors, "threshold_floors", policy["threshold_floors"], allow_partial=False)
        _validate_minimum_floors(errors, policy["threshold_floors"])
    for group in ("subject_threshold_adjustments", "grade_threshold_adjustments"):
        value = policy.get(group)
        if value is None:
            continue
        if not isinstance(value, dict):
            errors.append(f"{group} must be an object")
            continue
        for key, block in value.items():
            _validate_threshold_block(errors, f"{group}.{key}", block, allow_partial=True)

    for key in ("trusted_channels", "disallowed_terms", "generic_expansions"):
        if key in policy and not _is_str_list(policy[key]):
            errors.append(f"{key} must be a list of strings")

    for key in ("educational_indicators", "grade_band_expansions"):
        value = policy.get(key)
        if value is None:
            continue
        if not isinstance(value, dict):
            errors.append(f"{key} must be an object")
            continue
        for entry_key, entry in value.items():
            if not _is_str_list(entry):
                errors.append(f"{key}.{entry_key} must be a list of strings")

    expansions = policy.get("subject_expansions")
    if expansions is not None:
        if not isinstance(expansions, dict):
            errors.append("subject_expansions must be an object")
        else:
            for subject, rules in expansions.items():
                if not isinstance(rules, list):
                    errors.append(f"subject_expansions.{subject} must be a list")
                    continue
                for idx, rule in enumerate(rules):
                    if not isinstance(rule, dict):
                        errors.append(f"subject_expansions.{subject}[{idx}] must be an object")
                        continue
                    if not isinstance(rule.get("keyword"), str) or not rule.get("keyword"):
                        errors.append(f"subject_expansions.{subject}[{idx}].keyword is required")
                    if not _is_str_list(rule.get("terms")):
                        errors.append(f"subject_expansions.{subject}[{idx}].terms must be a list of strings")

    vocabulary = policy.get("grade_band_vocabulary")
    if vocabulary is not None:
        if not isinstance(vocabulary, dict):
            errors.append("grade_band_vocabulary must be an object")
        else:
            for band, entry in vocabulary.items():
                if not isinstance(entry, dict) or not _is_str_list(entry.get("terms")):
                    errors.append(f"grade_band_vocabulary.{band}.terms must be a list of strings")
                    continue
                points = entry.get("points")
                if isinstance(points, bool) or not isinstance(points, int) or not 0 <= points <= 15:
                    errors.append(f"grade_band_vocabulary.{band}.points must be an integer between 0 and 15")

    scoring = policy.get("scoring")
    if scoring is not None:
        if not isinstance(scoring, dict):
            errors.append("scoring must be an object")
        else:
            for key in DEFAULT_SEARCH_POLICY["scoring"]:
                value = scoring.get(key)
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    errors.append(f"scoring.{key} must be a number")
    return errors


def _merge_policy(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        # Object sections merge one level deep; lists replace the default outright.
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            section = dict(merged[key])
            section.update(value)
            merged[key] = section
        else:
            merged[key] = value
    return merged


def load_search_policy(path: str | None = None) -> SearchPolicy:
    if not path:
        return SearchPolicy.from_mapping(DEFAULT_SEARCH_POLICY)
    with open(path, "r", encoding="utf-8") as f:
        override = json.load(f)
    if not isinstance(override, dict):
        raise ValueError("search policy file must contain a JSON object")
    merged = _merge_policy(DEFAULT_SEARCH_POLICY, override)
    policy = SearchPolicy.from_mapping(merged)
    logging.info("Loaded search policy overrides from %s (%s sections)", path, len(override))
    return policy


_DEFAULT_POLICY: SearchPolicy | None = None


def default_search_policy() -> SearchPolicy:
    global _DEFAULT_POLICY
    if _DEFAULT_POLICY is None:
        _DEFAULT_POLICY = SearchPolicy.from_mapping(DEFAULT_SEARCH_POLICY)
    return _DEFAULT_POLICY
