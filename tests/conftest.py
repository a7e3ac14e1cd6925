"""
pytest configuration and fixtures.
"""

import os
import threading
from pathlib import Path
from typing import Callable, Generator, List

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from assetserver import HTTPServer, ServerConfig
from assetserver.cache import CacheStore
from assetserver.handlers import ErrorPages, StaticFileHandler


# Fixed mtime for files whose Last-Modified is asserted on
FIXED_MTIME = 1_700_000_000  # Tue, 14 Nov 2023 22:13:20 GMT


INDEX_HTML = b"<!DOCTYPE html><html><body><h1>Home</h1></body></html>"
ABOUT_HTML = b"<!DOCTYPE html><html><body><h1>About</h1></body></html>"
SITE_CSS = b"body { margin: 0; padding: 0; }\n" * 200
APP_JS = b"console.log('hello');\n" * 200
LOGO_PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A small site:

        site/
        ├── index.html
        ├── about.html
        ├── css/site.css
        ├── js/app.js
        ├── img/logo.png
        ├── docs/           (empty directory)
        └── hello world.txt
    """
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "js").mkdir()
    (root / "img").mkdir()
    (root / "docs").mkdir()

    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "about.html").write_bytes(ABOUT_HTML)
    (root / "css" / "site.css").write_bytes(SITE_CSS)
    (root / "js" / "app.js").write_bytes(APP_JS)
    (root / "img" / "logo.png").write_bytes(LOGO_PNG)
    (root / "hello world.txt").write_bytes(b"hi there\n")

    for path in root.rglob("*"):
        if path.is_file():
            os.utime(path, (FIXED_MTIME, FIXED_MTIME))

    # A file next to the root that must never be served
    (tmp_path / "secret.txt").write_bytes(b"top secret")

    return root


@pytest.fixture
def store() -> CacheStore:
    return CacheStore()


@pytest.fixture
def static_handler(site_root: Path, store: CacheStore) -> StaticFileHandler:
    return StaticFileHandler(site_root, store, ErrorPages(site_root))


@pytest.fixture
def config(site_root: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root_dir=str(site_root),
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        log_level="WARNING",
    )


class RunningServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def start_server() -> Generator[Callable[[ServerConfig], RunningServer], None, None]:
    """Factory that starts servers and stops them all at teardown."""
    started: List[RunningServer] = []

    def _start(config: ServerConfig) -> RunningServer:
        srv = RunningServer(HTTPServer(config))
        srv.start()
        started.append(srv)
        return srv

    yield _start

    for srv in started:
        srv.stop()


@pytest.fixture
def running_server(start_server, config: ServerConfig) -> RunningServer:
    """A started server on a free port, serving site_root."""
    return start_server(config)
