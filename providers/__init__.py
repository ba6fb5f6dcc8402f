from config import settings

from .base import ContentProvider
from .static import StaticContentProvider
from .youtube_data_api import YouTubeDataApiProvider
from .ytdlp_search import YtDlpSearchProvider

PROVIDER_NAMES = ("youtube_api", "ytdlp")


def build_content_provider(name=None) -> ContentProvider:
    name = (name or settings.CONTENT_PROVIDER or "youtube_api").strip().lower()
    if name == "youtube_api":
        return YouTubeDataApiProvider()
    if name == "ytdlp":
        return YtDlpSearchProvider()
    raise ValueError(f"Unknown content provider {name!r}; expected one of {', '.join(PROVIDER_NAMES)}")


__all__ = [
    "ContentProvider",
    "PROVIDER_NAMES",
    "StaticContentProvider",
    "YouTubeDataApiProvider",
    "YtDlpSearchProvider",
    "build_content_provider",
]
