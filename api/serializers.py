"""Shape search results for the HTTP API."""

from engine.types import ScoredCandidate, SearchResult

DEFAULT_DURATION_SECONDS = 300
DEFAULT_MIN_AGE = 8

# First matching indicator keyword decides the recommended minimum viewer age.
_AGE_BY_KEYWORD = (
    (("kindergarten", "preschool"), 5),
    (("elementary", "primary"), 7),
    (("middle", "intermediate"), 11),
    (("high school", "secondary"), 14),
    (("advanced", "college"), 16),
)


def format_duration(seconds):
    seconds = max(0, int(seconds or 0))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def recommended_min_age(indicators):
    text = " ".join(str(item) for item in indicators or ()).lower()
    for keywords, age in _AGE_BY_KEYWORD:
        if any(keyword in text for keyword in keywords):
            return age
    return DEFAULT_MIN_AGE


def video_payload(scored: ScoredCandidate) -> dict:
    item = scored.candidate
    duration_seconds = item.duration_seconds if item.duration_seconds else DEFAULT_DURATION_SECONDS
    indicators = list(scored.educational_indicators)
    return {
        "id": item.id,
        "title": item.title,
        "description": item.description,
        "thumbnail_url": item.thumbnail_url,
        "url": f"https://www.youtube.com/watch?v={item.id}",
        "short_url": f"https://youtu.be/{item.id}",
        "duration": format_duration(duration_seconds),
        "duration_seconds": duration_seconds,
        "channel_title": item.channel_title,
        "channel_id": item.channel_id or "unknown",
        "published_at": item.published_at,
        "view_count": item.view_count or 0,
        "relevance_score": scored.confidence,
        "safety_analysis": {
            "safety_score": min(95, scored.confidence + 10),
            "age_appropriate": True,
            "educational_value": scored.confidence,
            "recommended_min_age": recommended_min_age(indicators),
            "content_warnings": [],
            "teacher_review_required": scored.confidence < 80,
        },
        "relevancy_reason": f"Intelligent analysis: {', '.join(indicators[:2])}",
        "intelligent_metadata": {
            "confidence_score": scored.confidence,
            "search_term": scored.query_term,
            "educational_indicators": indicators,
            "analysis_reason": f"Selected through intelligent filtering with {scored.confidence}% confidence",
        },
    }


def search_summary(result: SearchResult, metrics: dict) -> dict:
    if result.fallback_triggered:
        suggestion = "Try more specific terms or check if the topic matches your subject area"
    else:
        suggestion = "High-quality results found using intelligent analysis"
    return {
        "search_strategy": result.search_strategy,
        "search_terms_used": list(result.search_terms_used),
        "average_confidence": round(result.average_confidence, 1),
        "total_results_analyzed": result.total_results_found,
        "fallback_triggered": result.fallback_triggered,
        "fallback_reason": result.fallback_reason,
        "feedback": result.feedback.to_dict(),
        "suggestions": suggestion,
        "improvement_suggestions": list(result.improvement_suggestions),
        "thresholds": result.thresholds.to_dict() if result.thresholds else None,
        "performance": {
            "success_rate": round(metrics.get("success_rate", 0.0), 1),
            "average_confidence": round(metrics.get("average_confidence", 0.0), 1),
            "fallback_rate": round(metrics.get("fallback_rate", 0.0), 1),
        },
    }
