"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP/1.1 request bytes into structured HTTPRequest objects.
Implements the parts of RFC 7230 a static file server needs.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    GET /assets/app%20v2.css?v=3 HTTP/1.1\r\n                        │
    │    ─┬─ ──────────┬──────────────  ────┬────                          │
    │     │            │                    │                              │
    │   Method        URI                 Version                          │
    │                  │                                                   │
    │       ┌──────────┴──────────┐                                       │
    │       │                     │                                        │
    │     Path (RAW)         Query String                                  │
    │  /assets/app%20v2.css      v=3                                       │
    │                                                                      │
    │    Host: example.com\r\n                                             │
    │    Accept-Encoding: br, gzip\r\n                                     │
    │    If-None-Match: "3q2+7w"\r\n                                       │
    │    \r\n                                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY THE PATH STAYS PERCENT-ENCODED
=============================================================================

The parser does NOT url-decode the path. Decoding and the traversal check
belong together in the static file handler:

    /%2e%2e/%2e%2e/etc/passwd
        │
        ├── parser:  keeps it as-is, routes it like any other path
        └── handler: decodes → /../../etc/passwd → resolves outside
                     the root → 403 Forbidden

Rejecting ".." here would turn a traversal attempt into a 400 and hide it
from the handler's logging.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP PARSING
=============================================================================

Q: "How do you know when the HTTP headers end?"
A: "Headers end with an empty line (\\r\\n\\r\\n). We scan for this
   delimiter, then split the request into header section and body."

Q: "How do you handle very large requests?"
A: "We set a max_request_size limit and reject requests that exceed it
   with a 413 Payload Too Large response."

Q: "How do you handle malformed requests?"
A: "We raise HTTPParseError with an appropriate status code:
   400 for bad syntax, 405 for an unknown method, 505 for bad version."

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple
import re


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the status code to return to the client:

        400 Bad Request                - Malformed request syntax
        405 Method Not Allowed         - Unknown method token
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Not HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         GET, HEAD, ...
        path:           Request path WITHOUT query string, still
                        percent-encoded ("/a%20b.css")
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Dictionary with LOWERCASE keys
        query_string:   Raw query string without the "?"
        body:           Raw request body (Content-Length bytes)
        path_params:    Values captured by the router
        client_address: (ip, port) of the client

    Headers are stored lowercase because HTTP header names are
    case-insensitive (RFC 7230 §3.2).

    =========================================================================
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_string: str = ""
    body: bytes = b""

    path_params: Dict[str, str] = field(default_factory=dict)

    client_address: Tuple[str, int] = ("", 0)

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def is_head(self) -> bool:
        """HEAD requests get the GET headers and no body."""
        return self.method == "HEAD"

    @property
    def is_keep_alive(self) -> bool:
        """
        Check if this connection should be kept alive.

            HTTP/1.1: keep alive unless "Connection: close"
            HTTP/1.0: close unless "Connection: keep-alive"
        """
        connection = self.headers.get("connection", "").lower()

        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Get a header value (case-insensitive lookup)."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        1. Size check                     → 413 if too large
        2. Find \\r\\n\\r\\n separator        → 400 if missing
        3. Parse request line             → 400 / 405 / 505
        4. Parse headers                  → lowercase names, merged dupes
        5. Slice body by Content-Length   → 400 if short or invalid

    ==========================================================================
    """

    # Methods recognised at the protocol level. Anything routed to the
    # static handler other than GET/HEAD gets a 405 from the router, which
    # can attach an Allow header; unknown tokens fail here.
    VALID_METHODS = {
        "GET",
        "HEAD",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "OPTIONS",
        "TRACE",
        "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        """
        Args:
            max_request_size: Maximum allowed request size in bytes.
                              Larger requests are rejected with 413.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from socket.
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        # Header bytes are ISO-8859-1 per RFC 7230; latin-1 never fails
        header_section = data[:header_end].decode("latin-1")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")

        method, path, query_string, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )
        body = body[:content_length]

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_string=query_string,
            body=body,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> Tuple[str, str, str, str]:
        """
        Parse the HTTP request line.

            "GET /users?page=1 HTTP/1.1"
             ─┬─ ─────┬─────── ────┬────
              │       │            │
            Method   URI       Version

        Returns:
            Tuple of (method, raw path, query string, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        # Only origin-form targets ("/path?query") are served
        if not uri.startswith("/"):
            raise HTTPParseError(f"Invalid request target: {uri!r}")

        # A leading "//" is part of the path, not a network location
        path, _, query = uri.partition("?")
        return method, path or "/", query, version

    def _parse_headers(self, lines: List[str]) -> Dict[str, str]:
        """
        Parse HTTP headers into a dictionary.

        Names are lowercased. Repeated headers are joined with ", "
        (RFC 7230 §3.2.2), so two Accept-Encoding lines behave like one.
        Obsolete line folding is accepted and malformed lines are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    parser = RequestParser(max_request_size=max_size)
    return parser.parse(data, client_address)
