"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Maps a request path onto a file under the site root and answers with the
file's bytes, served from the in-memory cache whenever the file has not
changed on disk.

=============================================================================
PATH RESOLUTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                   URL PATH → FILE                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   /                   → <root>/index.html                            │
    │   /css/site.css       → <root>/css/site.css                          │
    │   /about              → <root>/about          (missing)              │
    │                       → <root>/about.html     (fallback)             │
    │   /docs               → <root>/docs           (directory: 404)       │
    │   /a%20b.txt          → <root>/a b.txt        (percent-decoded)      │
    │   /../etc/passwd      → outside root          (403)                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The query string never takes part: "/app.js?v=3" serves "app.js".
Directories are never listed and there is no directory index beyond the
root "/".

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /%2e%2e/%2e%2e/etc/passwd HTTP/1.1

The path is decoded FIRST and checked AFTER, so encoded dots cannot slip
past the check:

    full_path = (root_dir / decoded.lstrip("/")).resolve()
    full_path.relative_to(root_dir)  # raises if outside the root

resolve() also follows symlinks, so a link pointing out of the root is
refused the same way. The ".html" fallback path goes through the same
check.

=============================================================================
CACHE FLOW
=============================================================================

    stat(file)
       │
       ├── entry cached and (mtime, size) unchanged ──► reuse entry
       │
       └── otherwise ──► read bytes, sha1 → ETag, build headers, put()
                              │
                              ▼
               If-None-Match / If-Modified-Since satisfied?
                      │                        │
                     yes                       no
                      │                        │
               304 + cached headers     200 + headers + bytes

The stat() happens on every request; only the read and the hash are
skipped on a hit.

=============================================================================
INTERVIEW QUESTIONS ABOUT STATIC FILES
=============================================================================

Q: "Why hash the content for the ETag instead of using mtime and size?"
A: "A content hash only changes when the bytes change. Redeploying an
   identical file bumps the mtime, but clients keep their copy because
   the ETag is still the same."

Q: "Why does HTML get a different Cache-Control than CSS or images?"
A: "Asset file names are expected to be fingerprinted (app.3f9c.js), so
   they can be cached for a year. HTML is the entry point that points at
   the current fingerprints, so browsers must revalidate it every time."

=============================================================================
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import unquote

from .errors import ErrorPages
from ..cache.store import CacheEntry, CacheStore
from ..http.conditional import is_not_modified, make_etag
from ..http.mime_types import base_type, get_content_type
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, format_http_date, not_modified
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Handler for serving cached static files.

    =========================================================================
    USAGE
    =========================================================================

        store = CacheStore()
        static = StaticFileHandler("public", store, ErrorPages("public"))

        router.get("/*path", static.handle)
        router.head("/*path", static.handle)

    HEAD goes through the very same code; the connection layer drops the
    body when writing the response.

    =========================================================================
    """

    def __init__(
        self,
        root_dir: Union[str, Path],
        store: CacheStore,
        error_pages: Optional[ErrorPages] = None,
        index_file: str = "index.html",
        html_cache_control: str = "no-cache",
        asset_cache_control: str = "public, max-age=31536000, immutable",
    ):
        """
        Initialize static file handler.

        Args:
            root_dir: Directory to serve. Nothing outside it is ever read.
            store: Shared cache of file contents and headers.
            error_pages: Builds 403/404/500 responses; defaults to pages
                         looked up in root_dir.
            index_file: File served for "/".
            html_cache_control: Cache-Control for text/html responses.
            asset_cache_control: Cache-Control for everything else.
        """
        self.root_dir = Path(root_dir).resolve()
        self.store = store
        self.error_pages = error_pages or ErrorPages(self.root_dir)
        self.index_file = index_file
        self.html_cache_control = html_cache_control
        self.asset_cache_control = asset_cache_control

        if not self.root_dir.is_dir():
            raise ValueError(f"Static root directory does not exist: {root_dir}")

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Serve the file named by the request path.

        Returns:
            200 with the file, 304 when the client's copy is current,
            403 for paths outside the root, 404 for anything missing,
            500 if the file exists but cannot be read.
        """
        # ─────────────────────────────────────────────────────────────────
        # DECODE THE URL PATH
        # ─────────────────────────────────────────────────────────────────
        try:
            decoded = unquote(request.path, errors="strict")
        except UnicodeDecodeError:
            logger.warning(f"Undecodable path: {request.path}")
            return self.error_pages.response(HTTPStatus.FORBIDDEN)

        if "\x00" in decoded:
            logger.warning(f"NUL byte in path: {request.path}")
            return self.error_pages.response(HTTPStatus.FORBIDDEN)

        if decoded in ("", "/"):
            decoded = "/" + self.index_file

        # ─────────────────────────────────────────────────────────────────
        # RESOLVE AND CONTAIN
        # ─────────────────────────────────────────────────────────────────
        full_path = self._resolve(decoded)
        if full_path is None:
            logger.warning(f"Path traversal attempt: {request.path}")
            return self.error_pages.response(HTTPStatus.FORBIDDEN)

        # ─────────────────────────────────────────────────────────────────
        # STAT, WITH THE .html FALLBACK
        # ─────────────────────────────────────────────────────────────────
        found = self._stat_file(full_path)
        if found is None:
            if full_path.is_dir():
                return self.error_pages.response(HTTPStatus.NOT_FOUND)

            fallback = self._resolve(decoded + ".html")
            if fallback is None:
                logger.warning(f"Path traversal attempt: {request.path}.html")
                return self.error_pages.response(HTTPStatus.FORBIDDEN)

            found = self._stat_file(fallback)
            if found is None:
                return self.error_pages.response(HTTPStatus.NOT_FOUND)

        path, mtime_ns, size = found
        return self._serve(path, mtime_ns, size, request)

    def _resolve(self, decoded: str) -> Optional[Path]:
        """Map a decoded URL path to a resolved file path, or None if outside the root."""
        full_path = (self.root_dir / decoded.lstrip("/")).resolve()
        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            return None
        return full_path

    @staticmethod
    def _stat_file(path: Path) -> Optional[Tuple[Path, int, int]]:
        """(path, mtime_ns, size) for a regular file, None for anything else."""
        try:
            st = path.stat()
        except (OSError, ValueError):
            return None
        if not path.is_file():
            return None
        return path, st.st_mtime_ns, st.st_size

    def _serve(self, path: Path, mtime_ns: int, size: int, request: HTTPRequest) -> HTTPResponse:
        """
        Answer from the cache, repopulating it if the file changed.

        =====================================================================
        CONDITIONAL REQUESTS
        =====================================================================

        The 304 carries the same validators and Cache-Control as the 200
        would, so the client can refresh its stored copy. Either a
        matching If-None-Match or an If-Modified-Since at or after
        Last-Modified is enough.

        =====================================================================
        """
        key = str(path)
        entry = self.store.get(key)

        if entry is None or not entry.matches(mtime_ns, size):
            entry = self._load(path)
            if entry is None:
                return self.error_pages.response(HTTPStatus.INTERNAL_SERVER_ERROR)
            self.store.put(key, entry)

        if is_not_modified(request.headers, entry.etag, entry.mtime_seconds):
            return not_modified(entry.headers)

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .headers(dict(entry.headers))
            .body(entry.data)
            .build())

    def _load(self, path: Path) -> Optional[CacheEntry]:
        """Read a file and build its cache entry. None if it cannot be read."""
        try:
            data = path.read_bytes()
            # Stat again after reading; the entry must describe these bytes
            st = path.stat()
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}")
            return None

        etag = make_etag(data)
        content_type = get_content_type(path)
        mtime = datetime.fromtimestamp(st.st_mtime_ns / 1_000_000_000, tz=timezone.utc)

        if base_type(content_type) == "text/html":
            cache_control = self.html_cache_control
        else:
            cache_control = self.asset_cache_control

        headers = {
            "Content-Type": content_type,
            "Content-Length": str(len(data)),
            "Last-Modified": format_http_date(mtime),
            "ETag": etag,
            "Cache-Control": cache_control,
        }

        return CacheEntry(
            data=data,
            etag=etag,
            source_mtime=st.st_mtime_ns,
            source_size=st.st_size,
            headers=headers,
        )
