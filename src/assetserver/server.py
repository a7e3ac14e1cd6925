"""
=============================================================================
ASSET SERVER
=============================================================================

Ties the components together into a running static-asset server.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ASSET SERVER ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │   Pipeline   │        │
    │    │ (Networking) │    │ (Concurrency)│    │ log → gzip/br│        │
    │    └──────────────┘    └──────────────┘    └──────┬───────┘        │
    │                                                   ▼                 │
    │                                            ┌──────────────┐        │
    │                                            │    Router    │        │
    │                                            └──┬────────┬──┘        │
    │                                               ▼        ▼           │
    │                                     CacheAdminHandler  Static      │
    │                                               │        │           │
    │                                               └──► CacheStore      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    accept() ──► ThreadPool.submit ──► read_request ──► parse
                   │ (queue full)                         │
                   ▼                                      ▼
                 503 + close              LoggingMiddleware
                                          CompressionMiddleware
                                          Router ──► handler
                                                      │
    send head (+ body unless HEAD) ◄──────────────────┘
         │
         └── keep-alive? read the next request : close

=============================================================================
"""

import logging
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .cache import CacheStore
from .core import SocketServer, Connection, ThreadPool, RequestTooLarge
from .handlers import StaticFileHandler, CacheAdminHandler, ErrorPages
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, Router,
    text_response, service_unavailable,
)
from .middleware import MiddlewarePipeline, LoggingMiddleware, CompressionMiddleware


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Caching static-asset server.

    =========================================================================
    USAGE
    =========================================================================

        server = HTTPServer(ServerConfig(root_dir="public", port=14000))
        server.run()        # blocks until SIGINT/SIGTERM or shutdown()

    Everything is wired in the constructor: the cache, the handlers, the
    routes and the middleware. There is nothing to register.

    =========================================================================
    ROUTES
    =========================================================================

        GET  /clearcache   empty the cache        (if enable_clear_cache)
        GET  /*path        static file
        HEAD /*path        static file, headers only

    Anything else gets 405 with "Allow: GET, HEAD".

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Validated immediately, so a bad
                    root directory fails here rather than on first request.
        """
        self.config = config or ServerConfig()
        self.config.validate()
        self._setup_logging()

        # ─────────────────────────────────────────────────────────────────
        # CORE COMPONENTS
        # ─────────────────────────────────────────────────────────────────
        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        # ─────────────────────────────────────────────────────────────────
        # APPLICATION COMPONENTS
        # ─────────────────────────────────────────────────────────────────
        root = self.config.root_path
        self.store = CacheStore()
        self.error_pages = ErrorPages(root)
        self.static = StaticFileHandler(
            root,
            self.store,
            self.error_pages,
            html_cache_control=self.config.html_cache_control,
            asset_cache_control=self.config.asset_cache_control,
        )
        self.cache_admin = CacheAdminHandler(self.store, self.error_pages)

        self._router = Router()
        if self.config.enable_clear_cache:
            self._router.add_route(
                self.config.clear_cache_path, self.cache_admin.handle,
                method="GET", name="clear_cache",
            )
        self._router.add_route("/*path", self.static.handle, method="GET", name="static")
        self._router.add_route("/*path", self.static.handle, method="HEAD", name="static_head")

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))
        self._middleware.add(CompressionMiddleware(
            level=self.config.compression_level,
            brotli_quality=self.config.brotli_quality,
            chunk_size=self.config.compression_chunk_size,
        ))

        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._middleware.wrap(
            self._router.handle
        )
        self._running = False

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port) the server is bound to; the real port once listening."""
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Returns after shutdown() is called or SIGINT/SIGTERM arrives.
        """
        self._running = True
        self._thread_pool.start()

        logger.info(
            f"Serving {self.config.root_path} on {self.config.host}:{self.config.port} "
            f"({self.config.min_workers}-{self.config.max_workers} workers)"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Safe from any thread."""
        self._running = False
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("assetserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Queue a connection for a worker thread.

        Called on the accept thread, so it must never block: when the
        queue is full the client gets 503 straight away.
        """
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            conn.send_response(service_unavailable(), server_name=self.config.server_name)
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve requests on one connection until it closes (worker thread).

        =====================================================================
        CONNECTION PROCESSING LOOP
        =====================================================================

        1. Read request from socket
        2. Parse HTTP request
        3. Process through middleware + router
        4. Send response (headers only for HEAD)
        5. If keep-alive: repeat from step 1

        =====================================================================
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        self._send_error(conn, e.status_code, str(e))
                        break

                    try:
                        response = self._handler(request)
                    except Exception as e:
                        logger.exception(f"[{conn.id}] Handler error: {e}")
                        response = text_response(
                            HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error"
                        )

                    # HTTP/1.0 has no chunked encoding
                    if request.version == "HTTP/1.0":
                        response.materialize()
                        response.version = "HTTP/1.0"

                    keep_alive = request.is_keep_alive and self.config.keep_alive
                    if response.get_header("Connection", "").lower() == "close":
                        keep_alive = False

                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive",
                            f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    sent = conn.send_response(
                        response,
                        include_body=not request.is_head,
                        server_name=self.config.server_name,
                    )
                    if not sent or not keep_alive:
                        break

                    conn.set_keep_alive()

                except RequestTooLarge as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, "Payload Too Large")
                    logger.warning(f"[{conn.id}] {e}")
                    break

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request Timeout")
                    break

                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def _send_error(self, conn: Connection, status: int, message: str):
        """
        Send a plain-text error and mark the connection for closing.

        Used for errors before a request reaches the handlers (parse
        errors, oversized requests, timeouts).
        """
        response = text_response(status, message)
        response.headers["Connection"] = "close"
        conn.send_response(response, server_name=self.config.server_name)


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """Factory for a configured server, mainly for tests and embedding."""
    return HTTPServer(config)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Component wiring: config, sockets, threads, cache, handlers, routes
# 2. Request flow: accept → parse → logging → compression → route → send
# 3. Connection management: keep-alive, HTTP/1.0, HEAD, timeouts, 503
# 4. Lifecycle: run() blocks; shutdown() or a signal ends it
# =============================================================================
