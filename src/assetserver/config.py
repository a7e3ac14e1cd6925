"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the asset server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m assetserver --port 3000                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── ASSET_PORT=3000 python -m assetserver                      │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CACHING POLICY KNOBS
=============================================================================

Two Cache-Control values cover every file the server sends:

    html_cache_control    "no-cache"
        HTML is the entry point that names every other asset. Browsers
        may store it but must revalidate (ETag → cheap 304) each time,
        so a deploy is visible on the next page load.

    asset_cache_control   "public, max-age=31536000, immutable"
        Styles, scripts, images. Cached for a year without revalidation.
        Pair with fingerprinted filenames (app.3f9a.css) when deploying.

=============================================================================
INTERVIEW QUESTIONS ABOUT CONFIGURATION
=============================================================================

Q: "How do you validate configuration?"
A: "Validate eagerly at startup, not lazily at first use. A missing
   root directory should stop the process before it binds a port,
   not turn every request into a 404."

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """
    Configuration for the asset server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - keep_alive, keep_alive_timeout, max_request_size

    THREADING SETTINGS
    - min_workers, max_workers, queue_size

    STATIC FILES
    - root_dir, html_cache_control, asset_cache_control

    COMPRESSION
    - compression_level, brotli_quality, compression_chunk_size

    CACHE ADMINISTRATION
    - clear_cache_path, enable_clear_cache

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """All interfaces by default; use 127.0.0.1 for local-only."""

    port: int = 14000
    """TCP port to listen on. 0 lets the OS pick a free port."""

    backlog: int = 128
    """Maximum number of connections queued in the kernel."""

    buffer_size: int = 8192
    """recv() size in bytes."""

    timeout: Optional[float] = 30.0
    """Socket timeout for the first request on a connection, in seconds."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024
    """
    Maximum request size in bytes. Static GETs carry no body, so 1 MB
    is already generous.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16
    queue_size: int = 100
    """Connections waiting for a worker before new ones get 503."""

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "public"
    """
    Directory served at "/". Also where custom error pages
    (403.html, 404.html, 500.html) are looked up.
    """

    html_cache_control: str = "no-cache"
    asset_cache_control: str = "public, max-age=31536000, immutable"

    # ─────────────────────────────────────────────────────────────────────
    # COMPRESSION
    # ─────────────────────────────────────────────────────────────────────

    compression_level: int = 6
    """gzip level, 1 (fastest) to 9 (smallest)."""

    brotli_quality: int = 5
    """
    Brotli quality, 0 to 11. Bodies are encoded on every request,
    so a mid-range quality keeps CPU time per request low.
    """

    compression_chunk_size: int = 64 * 1024
    """Bytes of raw content fed to the encoder per step."""

    # ─────────────────────────────────────────────────────────────────────
    # CACHE ADMINISTRATION
    # ─────────────────────────────────────────────────────────────────────

    clear_cache_path: str = "/clearcache"
    enable_clear_cache: bool = True
    """
    Whether GET clear_cache_path empties the file cache. There is no
    authentication on it; disable it when the port is publicly reachable.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "assetserver/1.0"

    @property
    def root_path(self) -> Path:
        """Resolved absolute path of root_dir."""
        return Path(self.root_dir).resolve()

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        ASSET_HOST          Bind address (default: 0.0.0.0)
        ASSET_PORT          Port (default: 14000)
        ASSET_ROOT          Served directory (default: public)
        ASSET_WORKERS       Max worker threads (default: 16)
        ASSET_TIMEOUT       Request timeout in seconds (default: 30)
        ASSET_CLEAR_CACHE   Enable /clearcache (default: 1)
        ASSET_LOG_LEVEL     Logging level (default: INFO)
        ASSET_LOG_FORMAT    text or json (default: text)

        =====================================================================
        """
        defaults = cls()
        max_workers = int(os.getenv("ASSET_WORKERS", str(defaults.max_workers)))
        return cls(
            host=os.getenv("ASSET_HOST", defaults.host),
            port=int(os.getenv("ASSET_PORT", str(defaults.port))),
            root_dir=os.getenv("ASSET_ROOT", defaults.root_dir),
            min_workers=min(defaults.min_workers, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("ASSET_TIMEOUT", str(defaults.timeout))),
            enable_clear_cache=_env_flag("ASSET_CLEAR_CACHE", defaults.enable_clear_cache),
            log_level=os.getenv("ASSET_LOG_LEVEL", defaults.log_level),
            log_format=os.getenv("ASSET_LOG_FORMAT", defaults.log_format),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if not self.root_path.is_dir():
            raise ValueError(f"root_dir is not a directory: {self.root_dir}")

        if not 1 <= self.compression_level <= 9:
            raise ValueError("compression_level must be 1-9")

        if not 0 <= self.brotli_quality <= 11:
            raise ValueError("brotli_quality must be 0-11")

        if self.compression_chunk_size < 1:
            raise ValueError("compression_chunk_size must be >= 1")

        if not self.clear_cache_path.startswith("/"):
            raise ValueError("clear_cache_path must start with '/'")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with dataclass
# 2. Environment variable support (ASSET_*)
# 3. Validation at startup (fail-fast), including the root directory
#
# PRODUCTION CHECKLIST:
# □ Point root_dir at the built site, not the source tree
# □ Disable enable_clear_cache when the port is public
# □ Use json log_format when shipping logs to an aggregator
# =============================================================================
