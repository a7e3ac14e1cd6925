"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses, either with a fixed body or streamed with
chunked transfer encoding.

=============================================================================
TWO WAYS TO FRAME A BODY
=============================================================================

A keep-alive client has to know where one response ends and the next one
begins. There are two ways to tell it:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  FIXED LENGTH                      CHUNKED                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  HTTP/1.1 200 OK                   HTTP/1.1 200 OK                   │
    │  Content-Length: 5120              Transfer-Encoding: chunked        │
    │                                    Content-Encoding: br              │
    │  <5120 bytes>                                                        │
    │                                    400\\r\\n                           │
    │                                    <1024 bytes>\\r\\n                  │
    │                                    1a7\\r\\n                           │
    │                                    <423 bytes>\\r\\n                   │
    │                                    0\\r\\n                             │
    │                                    \\r\\n                              │
    │                                                                      │
    │  Length known up front             Length unknown until the          │
    │  (files served as-is)              encoder finishes (br / gzip)      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A response becomes chunked as soon as it carries a `stream`. The
Content-Length header is dropped and Transfer-Encoding takes its place.

HTTP/1.0 clients do not understand chunked framing. For them the server
calls `materialize()`, which joins the stream into a fixed body first.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP RESPONSES
=============================================================================

Q: "How does the client know when the response body ends?"
A: "Content-Length gives the exact byte count. With chunked encoding
   every chunk is prefixed by its size in hex, and a zero-size chunk
   marks the end. A third option, closing the connection, wastes the
   keep-alive connection."

Q: "Why does a HEAD response have a Content-Length but no body?"
A: "HEAD must return the same headers GET would. The length describes
   the representation, the body is simply omitted."

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler returns          head_bytes()            Socket sends
        HTTPResponse    ─────►   + body_chunks() ─────►  raw bytes
            │
        HTTPResponse(
          status=200,
          headers={...},
          body=b"..."         ← fixed body
          stream=<iterator>   ← or a chunked stream
        )

    =========================================================================
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    stream: Optional[Iterable[bytes]] = None
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Status line, e.g. "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {_phrase(self.status)}"

    @property
    def is_streamed(self) -> bool:
        return self.stream is not None

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def remove_header(self, name: str) -> "HTTPResponse":
        """Remove a header regardless of its case."""
        for key in [k for k in self.headers if k.lower() == name.lower()]:
            del self.headers[key]
        return self

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set a fixed body, encoding strings as UTF-8."""
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.stream = None
        return self

    def set_stream(self, stream: Iterable[bytes]) -> "HTTPResponse":
        """
        Replace the body with a stream of byte chunks.

        The stream is consumed exactly once, when the response is written.
        """
        self.body = b""
        self.stream = stream
        self.remove_header("Content-Length")
        return self

    def materialize(self) -> "HTTPResponse":
        """
        Drain the stream into a fixed body.

        Used for HTTP/1.0 clients, which cannot parse chunked framing.
        """
        if self.stream is not None:
            self.body = b"".join(self.stream)
            self.stream = None
            self.remove_header("Transfer-Encoding")
        return self

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def head_bytes(self, server_name: str = "assetserver/1.0") -> bytes:
        """
        Serialize the status line and headers.

        Auto-added when missing:
            Content-Length      fixed bodies, statuses that allow a body
            Transfer-Encoding   streamed bodies
            Date                always (RFC 7231 §7.1.1.2)
            Server              always
        """
        response_headers = dict(self.headers)

        if self.stream is not None:
            response_headers.pop("Content-Length", None)
            response_headers["Transfer-Encoding"] = "chunked"
        elif "Content-Length" not in response_headers and _allows_body(self.status):
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("latin-1") + b"\r\n"

    def body_chunks(self) -> Iterator[bytes]:
        """
        Yield the body exactly as it goes on the wire.

        Fixed bodies come out as a single piece. Streamed bodies are framed
        as chunks, empty pieces from the encoder are skipped because a
        zero-size chunk would end the body early.
        """
        if self.stream is None:
            if self.body:
                yield self.body
            return

        for piece in self.stream:
            if piece:
                yield b"%X\r\n%s\r\n" % (len(piece), piece)
        yield b"0\r\n\r\n"

    def to_bytes(self, server_name: str = "assetserver/1.0", include_body: bool = True) -> bytes:
        """
        Serialize the whole response in one piece.

        Drains the stream, so only call it once on a streamed response.
        """
        head = self.head_bytes(server_name)
        if not include_body:
            return head
        return head + b"".join(self.body_chunks())


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("Cache cleared")
            .build())

    Each method returns `self`, except build().
    """

    def __init__(self, server_name: str = "assetserver/1.0"):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._stream: Optional[Iterable[bytes]] = None
        self._server_name = server_name

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the response body (string auto-encoded to UTF-8)."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        """Plain text body with a matching Content-Type."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: Union[str, bytes]) -> "ResponseBuilder":
        """HTML body with a matching Content-Type."""
        self.body(html)
        self._headers["Content-Type"] = "text/html; charset=utf-8"
        return self

    def stream(self, chunks: Iterable[bytes]) -> "ResponseBuilder":
        """Send the body with chunked transfer encoding."""
        self._stream = chunks
        return self

    def no_store(self) -> "ResponseBuilder":
        """Forbid caching entirely, for administrative responses."""
        self._headers["Cache-Control"] = "no-store"
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        response = HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )
        if self._stream is not None:
            response.set_stream(self._stream)
        return response

    def to_bytes(self) -> bytes:
        return self.build().to_bytes(self._server_name)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def _phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"


def _allows_body(status: int) -> bool:
    try:
        return HTTPStatus(status).allows_body
    except ValueError:
        return True


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231 IMF-fixdate).

        Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are ALWAYS in GMT. Aware datetimes are converted to UTC;
    naive ones are assumed to already be UTC.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def text_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Plain-text response, used for errors without a custom page."""
    return ResponseBuilder().status(status).text(message).build()


def not_modified(headers: Dict[str, str]) -> HTTPResponse:
    """
    Create a 304 Not Modified response.

    Carries the validators and caching headers of the entry so the client
    can refresh its stored copy, and never a body.
    """
    return HTTPResponse(status=HTTPStatus.NOT_MODIFIED, headers=dict(headers))


def method_not_allowed(allowed_methods: List[str]) -> HTTPResponse:
    """
    Create a 405 Method Not Allowed response.

    Includes the Allow header listing valid methods (RFC 7231 §6.5.5).
    """
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .text("Method Not Allowed")
        .build())


def service_unavailable(message: str = "Service Unavailable") -> HTTPResponse:
    """Create a 503 response that also closes the connection."""
    return (ResponseBuilder()
        .status(HTTPStatus.SERVICE_UNAVAILABLE)
        .text(message)
        .close_connection()
        .build())
