"""
In-memory file cache.

The store is owned by whoever constructs the static file handler and
injected into it, so tests can build an isolated store per case.
"""

from .store import CacheEntry, CacheStore

__all__ = [
    "CacheEntry",
    "CacheStore",
]
