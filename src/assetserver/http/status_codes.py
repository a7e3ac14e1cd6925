"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can actually produce, with reason phrases.

    ┌────────────────────────────────────────────────────────────────────┐
    │                   WHERE EACH STATUS COMES FROM                     │
    ├────────┬───────────────────────────────────────────────────────────┤
    │  200   │ File served, cache cleared                                │
    │  304   │ If-None-Match / If-Modified-Since matched the cache entry │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Malformed request line or headers (parser)                │
    │  403   │ Path escapes the served root                              │
    │  404   │ No file, no .html fallback, or a directory                │
    │  405   │ Method other than GET / HEAD                              │
    │  413   │ Request larger than max_request_size (parser)             │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ stat() succeeded but read() failed, or a handler crashed  │
    │  503   │ Worker pool queue is full                                 │
    │  505   │ Not HTTP/1.0 or HTTP/1.1 (parser)                         │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an IntEnum.

    IntEnum members compare equal to plain ints, so handlers may pass
    either ``HTTPStatus.NOT_FOUND`` or ``404``:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx Success
    OK = 200
    NO_CONTENT = 204

    # 3xx Redirection
    NOT_MODIFIED = 304          # Client's cached copy is still valid

    # 4xx Client Errors
    BAD_REQUEST = 400
    FORBIDDEN = 403             # Path traversal / outside the served root
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    URI_TOO_LONG = 414
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431

    # 5xx Server Errors
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line:

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        return self >= 400

    @property
    def allows_body(self) -> bool:
        """
        Whether a response with this status may carry a body.

        RFC 7230 §3.3.3: 1xx, 204 and 304 responses never have one.
        """
        return not (100 <= self < 200 or self in (204, 304))


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.URI_TOO_LONG: "URI Too Long",
    HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE: "Request Header Fields Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def get_status_phrase(code: int) -> str:
    """
    Reason phrase for an arbitrary integer code.

    Codes outside HTTPStatus get a generic phrase rather than an error,
    since a handler may legitimately emit any 3-digit code.
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
