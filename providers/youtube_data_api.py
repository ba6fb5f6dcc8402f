import logging
import threading
import time

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config import settings
from engine.errors import ProviderAuthError, ProviderTransportError
from engine.types import CandidateItem, SearchFilters, parse_iso8601_duration
from providers.base import ContentProvider

logger = logging.getLogger(__name__)

_MAX_PAGE_SIZE = 50
_DURATION_BANDS = {"short", "medium", "long"}
_AUTH_REASON_TOKENS = ("keyinvalid", "api key", "forbidden", "accessnotconfigured", "has not been used")
_QUOTA_REASON_TOKENS = ("quota", "ratelimit", "rate limit")


def _video_id(item):
    raw_id = item.get("id")
    if isinstance(raw_id, dict):
        raw_id = raw_id.get("videoId")
    if not isinstance(raw_id, str):
        return None
    raw_id = raw_id.strip()
    return raw_id or None


def _thumbnail_url(snippet):
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("medium", "high", "default"):
        entry = thumbnails.get(size)
        if isinstance(entry, dict) and entry.get("url"):
            return entry["url"]
    return None


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _classify_http_error(exc: HttpError):
    status = int(getattr(exc.resp, "status", 0) or 0)
    detail = f"{getattr(exc, 'reason', '')} {exc.content!r}".lower()
    if status == 401:
        return ProviderAuthError(f"YouTube API rejected credentials (status={status})")
    if status in (400, 403):
        if any(token in detail for token in _QUOTA_REASON_TOKENS):
            return ProviderTransportError(f"YouTube API quota or rate limit exceeded (status={status})")
        if any(token in detail for token in _AUTH_REASON_TOKENS):
            return ProviderAuthError(f"YouTube API key rejected (status={status})")
    return ProviderTransportError(f"YouTube API request failed (status={status})")


class YouTubeDataApiProvider(ContentProvider):
    """Searches the YouTube Data API v3 and enriches hits with duration and view counts."""

    source = "youtube"

    def __init__(
        self,
        api_key=None,
        *,
        service=None,
        http_factory=None,
        timeout_seconds=None,
        min_interval_seconds=None,
        num_retries=2,
        region_code="US",
        relevance_language="en",
    ):
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY
        self.timeout_seconds = float(timeout_seconds if timeout_seconds is not None else settings.REQUEST_TIMEOUT_SECONDS)
        interval = min_interval_seconds if min_interval_seconds is not None else settings.MIN_INTERVAL_SECONDS
        self.min_interval_seconds = max(0.0, float(interval))
        self.num_retries = max(0, int(num_retries))
        self.region_code = region_code
        self.relevance_language = relevance_language
        self._service = service
        self._http_factory = http_factory or (lambda: httplib2.Http(timeout=self.timeout_seconds))
        self._build_lock = threading.Lock()
        self._rate_lock = threading.Lock()
        self._last_request_ts = 0.0

    def _service_or_raise(self):
        if self._service is not None:
            return self._service
        if not self.api_key:
            raise ProviderAuthError("YOUTUBE_API_KEY is not configured")
        with self._build_lock:
            if self._service is None:
                try:
                    self._service = build("youtube", "v3", developerKey=self.api_key, cache_discovery=False)
                except Exception as exc:
                    raise ProviderTransportError(f"Failed to initialize YouTube API client: {exc}") from exc
        return self._service

    def _sleep_for_rate_limit(self) -> None:
        with self._rate_lock:
            now = time.monotonic()
            wait_for = self.min_interval_seconds - (now - self._last_request_ts)
            if wait_for > 0:
                time.sleep(wait_for)
            self._last_request_ts = time.monotonic()

    def _execute(self, request, *, endpoint):
        self._sleep_for_rate_limit()
        # httplib2 connections are not thread-safe, so every call gets its own.
        try:
            response = request.execute(http=self._http_factory(), num_retries=self.num_retries)
        except HttpError as exc:
            error = _classify_http_error(exc)
            logger.warning(f"[YOUTUBE] request={endpoint} status={getattr(exc.resp, 'status', 'error')}")
            raise error from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            logger.warning(f"[YOUTUBE] request={endpoint} status=error error={exc}")
            raise ProviderTransportError(f"YouTube API transport failure: {exc}") from exc
        logger.info(f"[YOUTUBE] request={endpoint} status=200")
        return response if isinstance(response, dict) else {}

    def _search_params(self, query, page_size, filters, page_token):
        params = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": page_size,
            "order": "relevance",
            "safeSearch": "strict" if filters.safe_mode else "moderate",
            "videoEmbeddable": "true",
            "videoSyndicated": "true",
            "regionCode": self.region_code,
            "relevanceLanguage": self.relevance_language,
        }
        if filters.preferred_duration_band in _DURATION_BANDS:
            params["videoDuration"] = filters.preferred_duration_band
        if page_token:
            params["pageToken"] = page_token
        return params

    def _fetch_details(self, service, video_ids):
        details = {}
        for start in range(0, len(video_ids), _MAX_PAGE_SIZE):
            chunk = video_ids[start:start + _MAX_PAGE_SIZE]
            try:
                response = self._execute(
                    service.videos().list(part="contentDetails,statistics", id=",".join(chunk)),
                    endpoint="videos",
                )
            except (ProviderAuthError, ProviderTransportError):
                # Search hits are still usable without duration/view counts.
                logger.warning("YouTube details lookup failed for %s videos; continuing without details", len(chunk))
                continue
            for item in response.get("items") or []:
                if isinstance(item, dict) and item.get("id"):
                    details[item["id"]] = item
        return details

    def _to_candidate(self, video_id, item, detail):
        snippet = item.get("snippet") or {}
        content_details = (detail or {}).get("contentDetails") or {}
        statistics = (detail or {}).get("statistics") or {}
        return CandidateItem(
            id=video_id,
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            channel_title=snippet.get("channelTitle") or "",
            channel_id=snippet.get("channelId"),
            published_at=snippet.get("publishedAt"),
            duration_seconds=parse_iso8601_duration(content_details.get("duration")),
            view_count=_as_int(statistics.get("viewCount")),
            thumbnail_url=_thumbnail_url(snippet),
        )

    def search(self, query, max_results, filters=None):
        query = " ".join(str(query or "").split())
        if not query:
            return []
        filters = filters or SearchFilters()
        service = self._service_or_raise()

        hits = []
        seen = set()
        remaining = max(1, int(max_results))
        page_token = None
        while remaining > 0:
            params = self._search_params(query, min(_MAX_PAGE_SIZE, remaining), filters, page_token)
            response = self._execute(service.search().list(**params), endpoint="search")
            page_items = [item for item in response.get("items") or [] if isinstance(item, dict)]
            for item in page_items:
                video_id = _video_id(item)
                if not video_id or video_id in seen:
                    continue
                seen.add(video_id)
                hits.append((video_id, item))
            remaining = max(1, int(max_results)) - len(hits)
            page_token = response.get("nextPageToken")
            if not page_token or not page_items:
                break

        hits = hits[: max(1, int(max_results))]
        if not hits:
            return []
        details = self._fetch_details(service, [video_id for video_id, _ in hits])
        return [self._to_candidate(video_id, item, details.get(video_id)) for video_id, item in hits]
