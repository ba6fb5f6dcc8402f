import logging
from urllib.parse import urlparse

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError, ExtractorError

from config import settings
from engine.errors import ProviderTransportError
from engine.types import CandidateItem, SearchFilters
from providers.base import ContentProvider


def _is_http_url(value):
    if not value or not isinstance(value, str):
        return False
    try:
        return urlparse(value).scheme in ("http", "https")
    except Exception:
        return False


def _thumbnail_url(entry):
    video_id = entry.get("id")
    if not isinstance(video_id, str):
        return None
    video_id = video_id.strip()
    if not video_id:
        return None
    return f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


class YtDlpSearchProvider(ContentProvider):
    """Keyless YouTube search through yt-dlp's ``ytsearchN:`` extractor.

    yt-dlp has no safe-search switch, so ``filters.safe_mode`` is left to the
    scorer's disallowed-terms gate.
    """

    source = "youtube"
    search_prefix = "ytsearch"

    def __init__(self, *, timeout_seconds=None, cookie_file=None):
        self.timeout_seconds = float(timeout_seconds if timeout_seconds is not None else settings.REQUEST_TIMEOUT_SECONDS)
        self.cookie_file = cookie_file

    def _options(self):
        opts = {
            "skip_download": True,
            "extract_flat": "in_playlist",
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "cachedir": False,
            "socket_timeout": self.timeout_seconds,
        }
        if self.cookie_file:
            opts["cookiefile"] = self.cookie_file
        return opts

    def _to_candidate(self, entry):
        video_id = entry.get("id")
        if not isinstance(video_id, str) or not video_id.strip():
            return None
        url = entry.get("webpage_url") or entry.get("url")
        if url and not _is_http_url(url):
            # Search extractors sometimes expose internal extractor URLs instead of real ones.
            logging.debug("Skipping non-http search result: %r", url)
            return None
        duration = entry.get("duration")
        view_count = entry.get("view_count")
        return CandidateItem(
            id=video_id.strip(),
            title=entry.get("title") or "",
            description=entry.get("description") or "",
            channel_title=entry.get("channel") or entry.get("uploader") or "",
            channel_id=entry.get("channel_id"),
            published_at=entry.get("upload_date") or entry.get("release_date"),
            duration_seconds=int(duration) if isinstance(duration, (int, float)) else None,
            view_count=int(view_count) if isinstance(view_count, (int, float)) else None,
            thumbnail_url=_thumbnail_url(entry),
        )

    def search(self, query, max_results, filters=None):
        query = " ".join(str(query or "").split())
        if not query:
            return []
        filters = filters or SearchFilters()
        limit = max(1, int(max_results))
        search_term = f"{self.search_prefix}{limit}:{query}"
        try:
            with YoutubeDL(self._options()) as ydl:
                info = ydl.extract_info(search_term, download=False)
        except (DownloadError, ExtractorError) as exc:
            logging.warning("yt-dlp search failed for query=%s: %s", query, exc)
            raise ProviderTransportError(f"yt-dlp search failed: {exc}") from exc

        entries = info.get("entries") if isinstance(info, dict) else None
        if not entries:
            return []

        results = []
        seen = set()
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            candidate = self._to_candidate(entry)
            if candidate is None or candidate.id in seen:
                continue
            seen.add(candidate.id)
            results.append(candidate)
        logging.debug(
            "yt-dlp search query=%s band=%s results=%s", query, filters.preferred_duration_band, len(results)
        )
        return results[:limit]
