"""
Cache administration endpoint.

    GET /clearcache  →  200 "Cache cleared"

Empties the file cache and the memoized error pages. The next request
for any file reads it from disk again. The route is unauthenticated;
disable it with ``enable_clear_cache=False`` (or ASSET_CLEAR_CACHE=0)
when the server is reachable by untrusted clients.
"""

import logging
from typing import Optional

from .errors import ErrorPages
from ..cache.store import CacheStore
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class CacheAdminHandler:

    def __init__(self, store: CacheStore, error_pages: Optional[ErrorPages] = None):
        self.store = store
        self.error_pages = error_pages

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        stats = self.store.stats()
        dropped = self.store.clear()
        if self.error_pages is not None:
            self.error_pages.reset()

        logger.info(
            f"Cache cleared by {request.client_address[0]} "
            f"({dropped} entries, {stats['bytes']} bytes, "
            f"{stats['hits']} hits, {stats['misses']} misses)"
        )

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("Cache cleared")
            .no_store()
            .build())
