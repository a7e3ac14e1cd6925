"""
Unit tests for the in-memory file cache.
"""

import threading

import pytest

from assetserver.cache import CacheEntry, CacheStore


def make_entry(data: bytes = b"body", mtime: int = 1_000_000_000, size: int = None) -> CacheEntry:
    return CacheEntry(
        data=data,
        etag='"tag"',
        source_mtime=mtime,
        source_size=len(data) if size is None else size,
        headers={"Content-Type": "text/plain"},
    )


class TestCacheEntry:
    """Tests for CacheEntry."""

    def test_matches_same_stat(self):
        entry = make_entry(mtime=5, size=4)
        assert entry.matches(5, 4) is True

    def test_mismatch_on_mtime_or_size(self):
        entry = make_entry(mtime=5, size=4)
        assert entry.matches(6, 4) is False
        assert entry.matches(5, 3) is False

    def test_mtime_seconds(self):
        entry = make_entry(mtime=1_500_000_000_250_000_000)
        assert entry.mtime_seconds == pytest.approx(1_500_000_000.25)

    def test_headers_are_read_only(self):
        entry = make_entry()
        with pytest.raises(TypeError):
            entry.headers["X-New"] = "1"

    def test_headers_copied_from_source(self):
        headers = {"ETag": '"a"'}
        entry = CacheEntry(data=b"", etag='"a"', source_mtime=0, source_size=0, headers=headers)
        headers["ETag"] = '"b"'
        assert entry.headers["ETag"] == '"a"'

    def test_entry_is_frozen(self):
        entry = make_entry()
        with pytest.raises(AttributeError):
            entry.data = b"other"


class TestCacheStore:
    """Tests for CacheStore."""

    def test_get_missing(self):
        store = CacheStore()
        assert store.get("/nope") is None

    def test_put_then_get(self):
        store = CacheStore()
        entry = make_entry()
        store.put("/site/a.txt", entry)

        assert store.get("/site/a.txt") is entry
        assert "/site/a.txt" in store
        assert len(store) == 1

    def test_put_replaces(self):
        store = CacheStore()
        store.put("/a", make_entry(b"old"))
        store.put("/a", make_entry(b"new"))

        assert store.get("/a").data == b"new"
        assert len(store) == 1

    def test_clear(self):
        store = CacheStore()
        store.put("/a", make_entry())
        store.put("/b", make_entry())

        assert store.clear() == 2
        assert len(store) == 0
        assert store.get("/a") is None

    def test_clear_empty(self):
        assert CacheStore().clear() == 0

    def test_stats(self):
        store = CacheStore()
        store.put("/a", make_entry(b"12345"))
        store.get("/a")
        store.get("/missing")

        stats = store.stats()
        assert stats == {"entries": 1, "bytes": 5, "hits": 1, "misses": 1}

    def test_clear_resets_counters(self):
        store = CacheStore()
        store.get("/missing")
        store.clear()
        assert store.stats()["misses"] == 0

    def test_concurrent_puts(self):
        store = CacheStore()

        def writer(prefix: str):
            for i in range(200):
                store.put(f"/{prefix}/{i}", make_entry())

        threads = [threading.Thread(target=writer, args=(str(n),)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 800
