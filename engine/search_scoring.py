import re
from functools import lru_cache

from config.search_policy import default_search_policy
from engine.context import SearchContext
from engine.types import CandidateItem, ScoredCandidate

REASON_LOW_RELEVANCE = "Low educational relevance score"
REASON_TOO_LONG = "Video too long for classroom use"


@lru_cache(maxsize=256)
def _word_pattern(term):
    return re.compile(r"\b" + re.escape(term) + r"\b")


def _in_text(needle, *haystacks):
    if not needle:
        return False
    return any(needle in haystack for haystack in haystacks)


def _source_points(channel_lower, context, policy):
    points = policy.scoring["trusted_channel_points"]
    for trusted in tuple(policy.trusted_channels) + context.preferences.preferred_channels:
        if _in_text(trusted.lower(), channel_lower):
            return points, f"Trusted channel: {trusted}"
    return 0, None


def _rejection_reason(title, description, channel_lower, context, policy):
    for term in policy.disallowed_terms:
        if _in_text(term.lower(), title, description):
            return f"Contains inappropriate content: {term}"
    for excluded in context.preferences.excluded_channels:
        if _in_text(excluded.lower(), channel_lower):
            return f"Excluded channel: {excluded}"
    return None


def grade_appropriateness_points(title, description, context, policy=None):
    """Bonus in [0, 15] for how well the text fits the context's grade band."""
    policy = policy or default_search_policy()
    weights = policy.scoring
    content = f"{title} {description}".lower()
    grade_lower = context.grade_level.lower()
    if grade_lower and _word_pattern(grade_lower).search(content):
        return weights["grade_level_literal_points"]
    vocabulary = policy.grade_band_vocabulary.get(context.grade_band.value)
    if vocabulary:
        for term in vocabulary["terms"]:
            if _word_pattern(term.lower()).search(content):
                return vocabulary["points"]
    return weights["grade_base_points"]


def score_candidate(candidate: CandidateItem, context: SearchContext, query_term: str, policy=None) -> ScoredCandidate:
    policy = policy or default_search_policy()
    weights = policy.scoring
    title = candidate.title.lower()
    description = candidate.description.lower()
    channel = candidate.channel_title.lower()
    indicators = []
    reasons = []

    content_score = 0
    for indicator in policy.indicators_for(context.subject_kind.value):
        if _in_text(indicator.lower(), title, description):
            content_score += weights["indicator_points"]
            indicators.append(indicator)

    source_score, trusted_indicator = _source_points(channel, context, policy)
    if trusted_indicator:
        indicators.append(trusted_indicator)

    # Disallowed content short-circuits everything gathered so far.
    rejection = _rejection_reason(title, description, channel, context, policy)
    if rejection:
        return ScoredCandidate(
            candidate=candidate,
            confidence=0,
            educational_indicators=tuple(indicators),
            filter_reasons=(rejection,),
            query_term=query_term,
        )

    context_score = 0
    subject_lower = context.subject.lower()
    if _in_text(subject_lower, title, description):
        context_score += weights["subject_match_points"]
        indicators.append(f"Subject match: {context.subject}")

    topic_lower = context.topic.lower()
    if _in_text(topic_lower, title, description):
        context_score += weights["topic_match_points"]
        indicators.append(f"Topic match: {context.topic}")

    query_lower = str(query_term or "").strip().lower()
    if _in_text(query_lower, title):
        context_score += weights["query_in_title_points"]
        indicators.append("Title contains search term")

    grade_points = grade_appropriateness_points(title, description, context, policy)
    if grade_points > 0:
        context_score += grade_points
        indicators.append("Grade-appropriate content")

    if context.is_duration_aware:
        minutes = candidate.duration_minutes
        if weights["duration_ok_min_minutes"] <= minutes <= weights["duration_ok_max_minutes"]:
            context_score += weights["duration_ok_points"]
            indicators.append("Appropriate duration")
        elif minutes > weights["duration_too_long_minutes"]:
            context_score -= weights["duration_long_penalty"]
            reasons.append(REASON_TOO_LONG)

    confidence = int(max(0, min(100, content_score + source_score + context_score)))
    if confidence < weights["low_relevance_threshold"]:
        reasons.append(REASON_LOW_RELEVANCE)
    preferred_floor = context.preferences.min_confidence_threshold
    if preferred_floor is not None and confidence < preferred_floor:
        reasons.append(f"Below preferred confidence threshold ({preferred_floor})")

    return ScoredCandidate(
        candidate=candidate,
        confidence=confidence,
        educational_indicators=tuple(indicators),
        filter_reasons=tuple(reasons),
        query_term=query_term,
    )


def score_candidates(candidates, context, query_term, policy=None):
    return [score_candidate(candidate, context, query_term, policy) for candidate in candidates or ()]
