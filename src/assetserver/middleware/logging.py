"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request with timing, status, size and encoding, plus an
X-Request-ID response header for correlating client reports with logs.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (Apache-like, default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 10.0.0.7 - - [10/Jun/2024:10:55:36 +0000] "GET /app.css" 200 - br  │
    │ 1.84ms                                                              │
    │ ──────────────────────────────────────────────────────────────────  │
    │ IP        Timestamp               Request     Status Size Enc  Time │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/app.css",    │
    │  "status_code": 200, "content_length": null,                       │
    │  "content_encoding": "br", "duration_ms": 1.84, ...}               │
    └─────────────────────────────────────────────────────────────────────┘

Size is "-" (null in JSON) for compressed responses: they are streamed
with chunked encoding and their length is only known once they are sent.

=============================================================================
LOGGER
=============================================================================

Lines go to the "assetserver.access" logger so they can be routed
separately from application logs:

    logging.getLogger("assetserver.access").addHandler(file_handler)

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import List, Optional
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("assetserver.access")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

        request_id:       Value sent back as X-Request-ID
        method, path:     Request line (path as sent, still encoded)
        query:            Raw query string
        client_ip:        Peer address
        user_agent:       Client identifier
        status_code:      Response status
        content_length:   Body size, None when streamed
        content_encoding: "br", "gzip" or "identity"
        duration_ms:      Time spent producing the response
        timestamp:        Local time, Apache format
    """

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: Optional[int]
    content_encoding: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "query": self.query,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "content_encoding": self.content_encoding,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        path = f"{self.path}?{self.query}" if self.query else self.path
        size = "-" if self.content_length is None else str(self.content_length)
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {path}" {self.status_code} '
            f'{size} {self.content_encoding} {self.duration_ms:.2f}ms'
        )


def _response_length(response: HTTPResponse) -> Optional[int]:
    if response.is_streamed:
        return None
    declared = response.get_header("Content-Length")
    if declared is not None:
        try:
            return int(declared)
        except ValueError:
            pass
    return len(response.body)


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Must be FIRST in the pipeline so it times and records every response,
    including the ones compression rewrote.

        pipeline.add(LoggingMiddleware(log_format="json"))
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[List[str]] = None,
    ):
        """
        Args:
            log_format: "text" or "json".
            include_request_id: Add X-Request-ID to responses.
            log_level: Level the access lines are logged at.
            skip_paths: Request paths that are never logged.
        """
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        if request.path in self.skip_paths:
            return response

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=request.query_string,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=_response_length(response),
            content_encoding=response.get_header("Content-Encoding", "identity"),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(self.log_level, log_entry.to_text())

        return response
