"""
=============================================================================
IN-MEMORY FILE CACHE
=============================================================================

Holds the last-known state of every file the server has served, keyed by
the file's resolved filesystem path.

=============================================================================
WHY CACHE FILES IN MEMORY?
=============================================================================

A small static site is read far more often than it changes. Reading the
same stylesheet from disk and hashing it for every request wastes both
I/O and CPU:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     REQUEST COST, WITH AND WITHOUT                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   WITHOUT CACHE                   WITH CACHE                         │
    │   ─────────────                   ──────────                         │
    │                                                                      │
    │   stat()                          stat()                             │
    │   open() + read()                 dict lookup                        │
    │   sha1(content)                   compare (mtime, size)              │
    │   build headers                   reuse stored headers               │
    │                                                                      │
    │   Every request                   Only when the file changed         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The stat() call stays on every request: it is what keeps the cache
coherent with the disk.

=============================================================================
COHERENCE RULE
=============================================================================

An entry is valid if and only if the file's CURRENT (mtime, size) equals
the snapshot taken when the entry was built:

    stored:  mtime=1718445600123456789  size=5120
    stat():  mtime=1718445600123456789  size=5120   → HIT, reuse entry
    stat():  mtime=1718449999000000000  size=5120   → STALE, rebuild
    stat():  mtime=1718445600123456789  size=5300   → STALE, rebuild

A stale entry is never patched. The caller reads the file again, builds a
brand new entry and put()s it over the old one.

=============================================================================
THREAD SAFETY
=============================================================================

Requests run on a pool of worker threads, so the map is guarded by a
lock. Two workers that miss on the same path at the same moment may both
read the file and both put() an entry; the last write wins, and both
entries describe the same bytes.

=============================================================================
"""

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """
    One served file's last-known state.

    =========================================================================
    FIELDS
    =========================================================================

        data:           File contents at the time of caching (immutable)
        etag:           Strong validator computed from data
        source_mtime:   st_mtime_ns of the file when it was read
        source_size:    st_size of the file when it was read
        headers:        Base response headers, built once per population

    The source_* fields are a snapshot of the FILESYSTEM, not timestamps
    of the cache itself.

    =========================================================================
    """

    data: bytes
    etag: str
    source_mtime: int
    source_size: int
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Frozen dataclass: bypass __setattr__ to wrap headers read-only
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def mtime_seconds(self) -> float:
        """Source modification time in seconds since the epoch."""
        return self.source_mtime / 1_000_000_000

    def matches(self, mtime_ns: int, size: int) -> bool:
        """Check the entry against a fresh stat() result."""
        return self.source_mtime == mtime_ns and self.source_size == size


class CacheStore:
    """
    Path-keyed store of CacheEntry objects.

    =========================================================================
    CONTRACT
    =========================================================================

        get(path)           → CacheEntry or None. Pure lookup, no I/O.
        put(path, entry)    → Unconditional replace.
        clear()             → Drop every entry.

    There is no eviction policy. Entries live until they are replaced or
    the store is cleared, so memory grows with the number of distinct
    files served. That is fine for a small static site; it is not an LRU.

    =========================================================================
    USAGE
    =========================================================================

        store = CacheStore()
        handler = StaticFileHandler("public", store=store)

        # Administrative reset
        store.clear()

    =========================================================================
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

        # Counters for stats(); updated under the same lock
        self._hits = 0
        self._misses = 0

    def get(self, path: str) -> Optional[CacheEntry]:
        """
        Look up the entry for a path.

        Args:
            path: Resolved filesystem path.

        Returns:
            The stored entry, or None if the path was never cached
            (or the store was cleared since).
        """
        with self._lock:
            entry = self._entries.get(path)
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
            return entry

    def put(self, path: str, entry: CacheEntry) -> None:
        """
        Store an entry, replacing whatever was there.

        Args:
            path: Resolved filesystem path.
            entry: The freshly built entry.
        """
        with self._lock:
            replaced = path in self._entries
            self._entries[path] = entry

        if replaced:
            logger.debug(f"Replaced cache entry for {path} ({entry.source_size} bytes)")
        else:
            logger.debug(f"Cached {path} ({entry.source_size} bytes)")

    def clear(self) -> int:
        """
        Drop all entries.

        Returns:
            The number of entries that were dropped.
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def stats(self) -> dict:
        """Snapshot of store size and lookup counters."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "bytes": sum(e.source_size for e in self._entries.values()),
                "hits": self._hits,
                "misses": self._misses,
            }


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# The cache store is deliberately dumb:
#
# 1. It knows nothing about HTTP (no ETag math, no header policy)
# 2. It never touches the disk
# 3. Validity is decided by the caller via CacheEntry.matches()
#
# TUNABLE:
# - Compressed variants are NOT cached; every compressed response is
#   re-encoded from entry.data. Cache per-encoding bodies here if traffic
#   grows beyond a small site.
# =============================================================================
