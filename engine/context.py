"""Search context and the one place subject/grade strings get classified.

Downstream components branch on ``Subject`` and ``GradeBand`` instead of
re-parsing the free-text fields the caller supplied.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

_WS_RE = re.compile(r"\s+")
_ADVANCED_RE = re.compile(r"\b(ap|advanced placement|college|university|undergraduate)\b")
_EARLY_RE = re.compile(r"\b(pre-?k|pre-?school|preschool|kindergarten|tk|k)\b")
_GRADE_NUMBER_RE = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)?\b")
_ORDINAL_WORDS = {
    "first": 1,
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
    "sixth": 6,
    "seventh": 7,
    "eighth": 8,
    "ninth": 9,
    "tenth": 10,
    "eleventh": 11,
    "twelfth": 12,
}
_ORDINAL_RE = re.compile(r"\b(" + "|".join(_ORDINAL_WORDS) + r")\b")


class Subject(str, Enum):
    MATH = "math"
    ENGLISH_LANGUAGE_ARTS = "english_language_arts"
    SCIENCE = "science"
    SOCIAL_STUDIES = "social_studies"
    ART = "art"
    MUSIC = "music"
    PHYSICAL_EDUCATION = "physical_education"
    GENERAL = "general"


class GradeBand(str, Enum):
    EARLY_CHILDHOOD = "early_childhood"
    ELEMENTARY = "elementary"
    UPPER_ELEMENTARY = "upper_elementary"
    MIDDLE = "middle"
    HIGH = "high"
    ADVANCED = "advanced"
    UNSPECIFIED = "unspecified"


_SUBJECT_ALIASES = {
    Subject.MATH: ("math", "maths", "mathematics", "algebra", "geometry", "calculus", "arithmetic"),
    Subject.ENGLISH_LANGUAGE_ARTS: (
        "english language arts", "english", "ela", "language arts", "reading", "writing", "literature",
    ),
    Subject.SCIENCE: ("science", "biology", "chemistry", "physics", "earth science", "life science"),
    Subject.SOCIAL_STUDIES: ("social studies", "history", "geography", "civics", "government", "economics"),
    Subject.ART: ("art", "arts", "visual arts", "visual art", "fine arts"),
    Subject.MUSIC: ("music", "music theory"),
    Subject.PHYSICAL_EDUCATION: (
        "physical education", "pe", "p e", "gym", "health and physical education", "physical fitness",
    ),
}
_SUBJECT_LOOKUP = {alias: subject for subject, aliases in _SUBJECT_ALIASES.items() for alias in aliases}


def normalize_label(value) -> str:
    text = str(value or "").strip().lower()
    return _WS_RE.sub(" ", text)


def classify_subject(value) -> Subject:
    label = normalize_label(value).replace("&", "and").replace(".", " ")
    label = _WS_RE.sub(" ", label).strip()
    return _SUBJECT_LOOKUP.get(label, Subject.GENERAL)


def parse_grade_number(value) -> int | None:
    text = normalize_label(value)
    if not text:
        return None
    match = _GRADE_NUMBER_RE.search(text)
    if match:
        number = int(match.group(1))
        return number if 1 <= number <= 12 else None
    match = _ORDINAL_RE.search(text)
    if match:
        return _ORDINAL_WORDS[match.group(1)]
    return None


def classify_grade_band(value) -> GradeBand:
    text = normalize_label(value)
    if not text:
        return GradeBand.UNSPECIFIED
    if _ADVANCED_RE.search(text):
        return GradeBand.ADVANCED
    if _EARLY_RE.search(text):
        return GradeBand.EARLY_CHILDHOOD
    number = parse_grade_number(text)
    if number is not None:
        if number <= 3:
            return GradeBand.ELEMENTARY
        if number <= 6:
            return GradeBand.UPPER_ELEMENTARY
        if number <= 8:
            return GradeBand.MIDDLE
        return GradeBand.HIGH
    if "middle school" in text or "junior high" in text:
        return GradeBand.MIDDLE
    if "high school" in text or "secondary" in text:
        return GradeBand.HIGH
    if "elementary" in text or "primary" in text:
        return GradeBand.ELEMENTARY
    return GradeBand.UNSPECIFIED


def _as_str_tuple(values) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    out = []
    for value in values:
        text = str(value or "").strip()
        if text:
            out.append(text)
    return tuple(out)


@dataclass(frozen=True)
class SearchPreferences:
    min_confidence_threshold: int | None = None
    preferred_channels: tuple[str, ...] = ()
    excluded_channels: tuple[str, ...] = ()

    def __post_init__(self):
        threshold = self.min_confidence_threshold
        if threshold is not None:
            threshold = max(0, min(100, int(threshold)))
        object.__setattr__(self, "min_confidence_threshold", threshold)
        object.__setattr__(self, "preferred_channels", _as_str_tuple(self.preferred_channels))
        object.__setattr__(self, "excluded_channels", _as_str_tuple(self.excluded_channels))


@dataclass(frozen=True)
class SearchContext:
    subject: str
    grade_level: str
    topic: str
    target_duration_minutes: float | None = None
    previous_successful_terms: tuple[str, ...] = ()
    preferences: SearchPreferences = field(default_factory=SearchPreferences)
    subject_kind: Subject = field(init=False)
    grade_band: GradeBand = field(init=False)
    grade_number: int | None = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "subject", str(self.subject or "").strip())
        object.__setattr__(self, "grade_level", str(self.grade_level or "").strip())
        object.__setattr__(self, "topic", str(self.topic or "").strip())
        duration = self.target_duration_minutes
        if duration is not None:
            duration = float(duration)
            if duration <= 0:
                duration = None
        object.__setattr__(self, "target_duration_minutes", duration)
        object.__setattr__(self, "previous_successful_terms", _as_str_tuple(self.previous_successful_terms))
        if self.preferences is None:
            object.__setattr__(self, "preferences", SearchPreferences())
        object.__setattr__(self, "subject_kind", classify_subject(self.subject))
        object.__setattr__(self, "grade_band", classify_grade_band(self.grade_level))
        object.__setattr__(self, "grade_number", parse_grade_number(self.grade_level))

    @property
    def is_duration_aware(self) -> bool:
        return self.target_duration_minutes is not None

    @property
    def is_early_grade(self) -> bool:
        return self.grade_band is GradeBand.EARLY_CHILDHOOD or self.grade_number in (1, 2)

    @property
    def is_terminal_grade(self) -> bool:
        return self.grade_band is GradeBand.ADVANCED or self.grade_number == 12


def context_key(context: SearchContext) -> tuple[str, str]:
    return (normalize_label(context.subject), normalize_label(context.grade_level))
