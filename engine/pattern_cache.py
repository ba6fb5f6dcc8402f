import logging
import threading
from collections import OrderedDict
from typing import Any

from engine.errors import CacheCorruption

_KEY_SEPARATOR = ":"


def _key_to_str(key) -> str:
    if isinstance(key, (tuple, list)):
        return _KEY_SEPARATOR.join(str(part) for part in key)
    return str(key)


class PatternCache:
    """Bounded store of query terms that produced high-confidence results, per context key.

    Each key keeps at most ``max_terms_per_key`` terms (oldest evicted first).
    At most ``max_keys`` keys are kept; the least recently updated key goes
    first. All access is serialized by one lock.
    """

    def __init__(self, max_terms_per_key: int = 10, max_keys: int = 256) -> None:
        self.max_terms_per_key = max(1, int(max_terms_per_key))
        self.max_keys = max(1, int(max_keys))
        self._lock = threading.Lock()
        self._data: "OrderedDict[str, list[str]]" = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _discard_locked(self, key: str, reason: str) -> None:
        self._data.pop(key, None)
        logging.warning(str(CacheCorruption(key, reason)))

    def _valid_terms_locked(self, key: str):
        terms = self._data.get(key)
        if terms is None:
            return None
        if not isinstance(terms, list) or not all(isinstance(term, str) for term in terms):
            self._discard_locked(key, "entry is not a list of strings")
            return None
        return terms

    def lookup(self, key) -> list[str]:
        key = _key_to_str(key)
        with self._lock:
            terms = self._valid_terms_locked(key)
            return list(terms) if terms else []

    def record(self, key, successful_terms) -> list[str]:
        key = _key_to_str(key)
        new_terms = [str(term).strip() for term in successful_terms or () if str(term or "").strip()]
        with self._lock:
            terms = self._valid_terms_locked(key) or []
            for term in new_terms:
                if term not in terms:
                    terms.append(term)
            if len(terms) > self.max_terms_per_key:
                terms = terms[-self.max_terms_per_key:]
            self._data[key] = terms
            self._data.move_to_end(key)
            while len(self._data) > self.max_keys:
                evicted, _ = self._data.popitem(last=False)
                logging.debug("Pattern cache evicted key=%s", evicted)
            return list(terms)

    def snapshot(self) -> dict[str, list[str]]:
        with self._lock:
            return {key: list(terms) for key, terms in self._data.items() if isinstance(terms, list)}

    def restore(self, payload: Any) -> int:
        """Load a snapshot, skipping malformed entries. Returns the number of keys kept."""
        if not isinstance(payload, dict):
            logging.warning("Ignoring pattern cache snapshot of type %s", type(payload).__name__)
            return 0
        with self._lock:
            self._data.clear()
            for key, terms in payload.items():
                key = _key_to_str(key)
                if not isinstance(terms, list) or not all(isinstance(term, str) for term in terms):
                    logging.warning(str(CacheCorruption(key, "entry is not a list of strings")))
                    continue
                deduped = []
                for term in terms:
                    if term.strip() and term not in deduped:
                        deduped.append(term)
                self._data[key] = deduped[-self.max_terms_per_key:]
            while len(self._data) > self.max_keys:
                self._data.popitem(last=False)
            return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
