import json
import threading

from engine.context import normalize_label
from engine.types import CandidateItem
from providers.base import ContentProvider

_CANDIDATE_FIELDS = (
    "id",
    "title",
    "description",
    "channel_title",
    "published_at",
    "duration_seconds",
    "view_count",
    "channel_id",
    "thumbnail_url",
)


def candidate_from_dict(payload) -> CandidateItem:
    if isinstance(payload, CandidateItem):
        return payload
    if not isinstance(payload, dict):
        raise ValueError("candidate fixture must be an object")
    values = {key: payload.get(key) for key in _CANDIDATE_FIELDS if key in payload}
    if not values.get("id"):
        raise ValueError("candidate fixture is missing id")
    return CandidateItem(**values)


class StaticContentProvider(ContentProvider):
    """Serves canned candidates per query; useful offline and in tests.

    Queries match case-insensitively; unknown queries get ``default`` (empty
    unless given). Every call is recorded in ``calls``.
    """

    source = "static"

    def __init__(self, responses=None, *, default=None):
        self._responses = {
            normalize_label(query): [candidate_from_dict(item) for item in items or ()]
            for query, items in (responses or {}).items()
        }
        self._default = [candidate_from_dict(item) for item in default or ()]
        self._lock = threading.Lock()
        self.calls = []

    @classmethod
    def from_json_file(cls, path):
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError("static provider fixture must be a JSON object")
        return cls(payload.get("responses") or {}, default=payload.get("default") or [])

    def search(self, query, max_results, filters=None):
        with self._lock:
            self.calls.append((query, max_results, filters))
        items = self._responses.get(normalize_label(query), self._default)
        return list(items[: max(0, int(max_results))])
