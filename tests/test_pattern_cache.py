from __future__ import annotations

import logging
import threading

from engine.pattern_cache import PatternCache

KEY = ("science", "5th grade")


def test_record_and_lookup() -> None:
    cache = PatternCache()
    assert cache.lookup(KEY) == []
    cache.record(KEY, ["photosynthesis lesson", "plant food"])
    assert cache.lookup(KEY) == ["photosynthesis lesson", "plant food"]
    assert len(cache) == 1


def test_terms_per_key_are_bounded_and_most_recent_kept() -> None:
    cache = PatternCache(max_terms_per_key=3)
    for idx in range(5):
        cache.record(KEY, [f"term {idx}"])
    assert cache.lookup(KEY) == ["term 2", "term 3", "term 4"]


def test_record_dedupes_terms() -> None:
    cache = PatternCache()
    cache.record(KEY, ["cells", "cells", " "])
    stored = cache.record(KEY, ["cells", "cell parts"])
    assert stored == ["cells", "cell parts"]


def test_least_recently_updated_key_is_evicted() -> None:
    cache = PatternCache(max_keys=2)
    cache.record(("math", "1st grade"), ["counting"])
    cache.record(("math", "2nd grade"), ["adding"])
    cache.record(("math", "1st grade"), ["shapes"])
    cache.record(("math", "3rd grade"), ["multiplying"])
    assert cache.lookup(("math", "2nd grade")) == []
    assert cache.lookup(("math", "1st grade")) == ["counting", "shapes"]
    assert len(cache) == 2


def test_lookup_returns_a_copy() -> None:
    cache = PatternCache()
    cache.record(KEY, ["cells"])
    terms = cache.lookup(KEY)
    terms.append("mutated")
    assert cache.lookup(KEY) == ["cells"]


def test_malformed_entry_is_discarded(caplog) -> None:
    cache = PatternCache()
    cache.record(KEY, ["cells"])
    cache._data["science:5th grade"] = "not-a-list"
    with caplog.at_level(logging.WARNING):
        assert cache.lookup(KEY) == []
    assert len(cache) == 0
    assert "Discarded malformed pattern cache entry" in caplog.text


def test_snapshot_and_restore_skip_bad_entries() -> None:
    cache = PatternCache(max_terms_per_key=2)
    cache.record(KEY, ["cells", "plants"])
    snapshot = cache.snapshot()
    assert snapshot == {"science:5th grade": ["cells", "plants"]}

    other = PatternCache(max_terms_per_key=2)
    kept = other.restore({**snapshot, "math:1st grade": [1, 2], "art:k": ["a", "b", "c"]})
    assert kept == 2
    assert other.lookup(KEY) == ["cells", "plants"]
    assert other.lookup(("art", "k")) == ["b", "c"]
    assert other.restore("nope") == 0


def test_clear() -> None:
    cache = PatternCache()
    cache.record(KEY, ["cells"])
    cache.clear()
    assert len(cache) == 0


def test_concurrent_records_stay_bounded() -> None:
    cache = PatternCache(max_terms_per_key=5, max_keys=3)

    def _worker(offset):
        for idx in range(50):
            cache.record(("subject", f"grade {idx % 4}"), [f"term {offset}-{idx}"])

    threads = [threading.Thread(target=_worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(cache) <= 3
    for terms in cache.snapshot().values():
        assert len(terms) <= 5
