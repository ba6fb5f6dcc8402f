from __future__ import annotations

import pytest

pytest.importorskip("yt_dlp")
from yt_dlp.utils import DownloadError

import providers.ytdlp_search as ytdlp_search
from engine.errors import ProviderTransportError


class _FakeYoutubeDL:
    instances = []
    info = None
    error = None

    def __init__(self, opts):
        self.opts = opts
        self.extracted = []
        _FakeYoutubeDL.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def extract_info(self, url, download=False):
        self.extracted.append((url, download))
        if _FakeYoutubeDL.error is not None:
            raise _FakeYoutubeDL.error
        return _FakeYoutubeDL.info


@pytest.fixture
def fake_ydl(monkeypatch):
    _FakeYoutubeDL.instances = []
    _FakeYoutubeDL.info = None
    _FakeYoutubeDL.error = None
    monkeypatch.setattr(ytdlp_search, "YoutubeDL", _FakeYoutubeDL)
    return _FakeYoutubeDL


def test_search_maps_flat_entries(fake_ydl) -> None:
    fake_ydl.info = {
        "entries": [
            {
                "id": "abc123",
                "title": "Fractions for kids",
                "channel": "Math Antics",
                "duration": 301.0,
                "view_count": 1500,
                "url": "https://www.youtube.com/watch?v=abc123",
            },
            {"id": "internal", "url": "ytsearch:internal-extractor"},
            {"id": "abc123", "title": "Duplicate"},
            {"title": "No id"},
            "not-a-dict",
        ]
    }
    provider = ytdlp_search.YtDlpSearchProvider(timeout_seconds=7)

    results = provider.search("fractions", 5)

    assert [item.id for item in results] == ["abc123"]
    assert results[0].duration_seconds == 301
    assert results[0].channel_title == "Math Antics"
    assert results[0].thumbnail_url == "https://i.ytimg.com/vi/abc123/hqdefault.jpg"
    ydl = fake_ydl.instances[0]
    assert ydl.extracted == [("ytsearch5:fractions", False)]
    assert ydl.opts["extract_flat"] == "in_playlist"
    assert ydl.opts["socket_timeout"] == 7


def test_no_entries_returns_empty_list(fake_ydl) -> None:
    fake_ydl.info = {"entries": []}
    assert ytdlp_search.YtDlpSearchProvider().search("fractions", 5) == []


def test_download_error_maps_to_transport_error(fake_ydl) -> None:
    fake_ydl.error = DownloadError("network unreachable")
    with pytest.raises(ProviderTransportError):
        ytdlp_search.YtDlpSearchProvider().search("fractions", 5)


def test_cookie_file_is_passed_through(fake_ydl) -> None:
    fake_ydl.info = {"entries": []}
    ytdlp_search.YtDlpSearchProvider(cookie_file="/tmp/cookies.txt").search("fractions", 3)
    assert fake_ydl.instances[0].opts["cookiefile"] == "/tmp/cookies.txt"
