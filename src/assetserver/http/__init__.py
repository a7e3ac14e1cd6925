"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Translates raw bytes from TCP into structured HTTP messages and back.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py      bytes → HTTPRequest (path kept percent-encoded)     │
    │ response.py     HTTPResponse → bytes, fixed-length or chunked       │
    │ conditional.py  ETag / If-None-Match / If-Modified-Since            │
    │ router.py       (method, path) → handler                            │
    │ status_codes.py HTTPStatus enum with reason phrases                 │
    │ mime_types.py   extension → Content-Type, compressible types        │
    └─────────────────────────────────────────────────────────────────────┘

Key points of the wire format:
- Lines end with CRLF (\\r\\n)
- Headers and body are separated by an empty line
- Header names are case-insensitive
- The body length comes from Content-Length, or from chunk framing

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    text_response,
    not_modified,
    method_not_allowed,
    service_unavailable,
)
from .conditional import make_etag, parse_http_date, etag_matches, is_not_modified
from .router import Router, Route
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "format_http_date",
    "text_response",
    "not_modified",
    "method_not_allowed",
    "service_unavailable",

    # Conditional requests
    "make_etag",
    "parse_http_date",
    "etag_matches",
    "is_not_modified",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_mime_type",
    "get_content_type",
]
