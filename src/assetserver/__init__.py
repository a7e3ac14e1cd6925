"""
=============================================================================
ASSETSERVER - Caching Static-Asset HTTP Server
=============================================================================

Serves a directory of static files over HTTP/1.1 from a thread pool,
keeping file contents, ETags and headers in memory until the file
changes on disk.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ASSET SERVER FEATURES                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. IN-MEMORY FILE CACHE                                           │
    │      - Keyed by resolved path, validated by (mtime, size)           │
    │      - SHA-1 content ETags, headers built once per change           │
    │      - GET /clearcache empties it                                   │
    │                                                                      │
    │   2. CONDITIONAL REQUESTS                                           │
    │      - If-None-Match and If-Modified-Since → 304                    │
    │                                                                      │
    │   3. COMPRESSION                                                    │
    │      - Brotli preferred, gzip fallback, text assets only            │
    │      - Streamed with chunked transfer encoding                      │
    │                                                                      │
    │   4. SAFE PATH RESOLUTION                                           │
    │      - Percent-decoding, ".html" fallback, 403 outside the root     │
    │      - Custom 403/404/500 pages from the site root                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    assetserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m assetserver)
    ├── server.py            # HTTPServer: wiring and connection loop
    ├── config.py            # ServerConfig dataclass
    ├── cache/
    │   └── store.py         # CacheEntry, CacheStore
    ├── core/
    │   ├── socket_server.py # TCP accept loop
    │   ├── connection.py    # Per-client socket wrapper
    │   └── thread_pool.py   # Worker threads
    ├── http/
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response building, chunked writes
    │   ├── conditional.py   # ETag and date validators
    │   ├── router.py        # URL routing
    │   ├── status_codes.py  # HTTPStatus enum
    │   └── mime_types.py    # Content types, compressible set
    ├── middleware/
    │   ├── base.py          # Middleware protocol and pipeline
    │   ├── logging.py       # Access log
    │   └── compression.py   # br / gzip negotiation and streaming
    └── handlers/
        ├── static.py        # Static files through the cache
        ├── cache_admin.py   # /clearcache
        └── errors.py        # Custom error pages

=============================================================================
QUICK START
=============================================================================

    from assetserver import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(root_dir="public", port=14000))
    server.run()

or from the shell:

    python -m assetserver --root public --port 14000

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_app
from .config import ServerConfig
from .cache import CacheEntry, CacheStore

__all__ = [
    "HTTPServer",
    "create_app",
    "ServerConfig",
    "CacheEntry",
    "CacheStore",
    "__version__",
]
