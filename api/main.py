#!/usr/bin/env python3
import logging
import os
import threading

import anyio
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.serializers import search_summary, video_payload
from config import settings
from config.search_policy import load_search_policy
from engine.context import SearchContext, SearchPreferences
from engine.errors import ProviderUnavailable
from engine.json_utils import safe_json_dumps
from engine.search_engine import ContextualSearchService
from providers import build_content_provider

APP_NAME = "Lessonscout"

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


class UserPreferencesPayload(BaseModel):
    min_confidence_threshold: int | None = None
    preferred_channels: list[str] = []
    excluded_channels: list[str] = []


class IntelligentSearchPayload(BaseModel):
    query: str | None = None
    subject: str | None = None
    grade_level: str | None = None
    topic: str | None = None
    duration: float | None = None
    max_results: int = 10
    previous_successful_terms: list[str] = []
    user_preferences: UserPreferencesPayload | None = None


class SuggestionsPayload(BaseModel):
    query: str | None = None
    subject: str | None = None
    grade_level: str | None = None
    topic: str | None = None


class SafeJSONResponse(JSONResponse):
    def render(self, content):
        return safe_json_dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


def build_search_service():
    policy = load_search_policy(settings.SEARCH_POLICY_PATH)
    provider = build_content_provider()
    logging.info("Search service using provider=%s", provider.source or type(provider).__name__)
    return ContextualSearchService(provider, policy=policy)


app = FastAPI(
    title=APP_NAME,
    description="Lessonscout API for contextual educational video search.",
    default_response_class=SafeJSONResponse,
)


@app.on_event("startup")
async def startup():
    _search_service()


@app.on_event("shutdown")
async def shutdown():
    service = getattr(app.state, "search_service", None)
    if service is not None:
        service.provider.close()


_service_lock = threading.Lock()


def _search_service():
    service = getattr(app.state, "search_service", None)
    if service is not None:
        return service
    with _service_lock:
        service = getattr(app.state, "search_service", None)
        if service is None:
            service = build_search_service()
            app.state.search_service = service
    return service


def _clean(value):
    return " ".join(str(value or "").split())


@app.post("/api/search/intelligent")
async def intelligent_search(payload: IntelligentSearchPayload):
    query = _clean(payload.query)
    if not query:
        raise HTTPException(status_code=400, detail="Search query is required")
    subject, grade_level, topic = _clean(payload.subject), _clean(payload.grade_level), _clean(payload.topic)
    if not subject or not grade_level or not topic:
        raise HTTPException(
            status_code=400,
            detail="Subject, grade level, and topic are required for intelligent search",
        )
    prefs = payload.user_preferences or UserPreferencesPayload()
    context = SearchContext(
        subject=subject,
        grade_level=grade_level,
        topic=topic,
        target_duration_minutes=payload.duration,
        previous_successful_terms=tuple(payload.previous_successful_terms or ()),
        preferences=SearchPreferences(
            min_confidence_threshold=prefs.min_confidence_threshold,
            preferred_channels=tuple(prefs.preferred_channels or ()),
            excluded_channels=tuple(prefs.excluded_channels or ()),
        ),
    )

    service = _search_service()
    try:
        result = await anyio.to_thread.run_sync(service.search, query, context)
    except ProviderUnavailable as exc:
        logging.error("Intelligent search unavailable query=%s: %s", query, exc)
        raise HTTPException(status_code=503, detail="Video search is temporarily unavailable") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    limit = max(1, int(payload.max_results))
    return {
        "success": True,
        "query": query,
        "videos": [video_payload(item) for item in result.results[:limit]],
        "intelligent_search": search_summary(result, service.performance_metrics()),
    }


@app.post("/api/search/suggestions")
async def search_suggestions(payload: SuggestionsPayload):
    query = _clean(payload.query)
    if not query:
        raise HTTPException(status_code=400, detail="Search query is required")
    context = SearchContext(
        subject=_clean(payload.subject),
        grade_level=_clean(payload.grade_level),
        topic=_clean(payload.topic),
    )
    return {"query": query, "suggestions": _search_service().suggest_terms(query, context)}


@app.get("/api/search/metrics")
async def search_metrics():
    return {"metrics": _search_service().performance_metrics()}


@app.get("/api/health")
async def health():
    service = _search_service()
    return {
        "status": "ok",
        "app": APP_NAME,
        "provider": service.provider.source or type(service.provider).__name__,
        "pid": os.getpid(),
    }
