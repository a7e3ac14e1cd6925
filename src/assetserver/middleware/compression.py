"""
=============================================================================
COMPRESSION MIDDLEWARE
=============================================================================

Negotiates a Content-Encoding with the client and stream-compresses text
assets with Brotli or gzip.

=============================================================================
CONTENT NEGOTIATION
=============================================================================

    Request:
    ┌───────────────────────────────────────────────────────────────┐
    │ GET /assets/app.js HTTP/1.1                                   │
    │ Accept-Encoding: gzip, deflate, br                            │
    │                   │       │      │                             │
    │                   │       │      └── Brotli: preferred         │
    │                   │       └── DEFLATE: never chosen            │
    │                   └── gzip: fallback                           │
    └───────────────────────────────────────────────────────────────┘

    Response:
    ┌───────────────────────────────────────────────────────────────┐
    │ HTTP/1.1 200 OK                                               │
    │ Content-Type: application/javascript; charset=utf-8           │
    │ Content-Encoding: br                                          │
    │ Transfer-Encoding: chunked     (no Content-Length)            │
    │ Vary: Accept-Encoding                                         │
    │                                                               │
    │ [brotli stream, chunk by chunk]                               │
    └───────────────────────────────────────────────────────────────┘

Selection order is fixed: br if advertised, else gzip, else identity.
A token with q=0 ("br;q=0") means "not acceptable" and counts as absent.

=============================================================================
WHY STREAM INSTEAD OF COMPRESSING UP FRONT?
=============================================================================

The raw bytes already sit in the file cache. Compressing them into a
second buffer would double the memory per request and delay the first
byte until the whole body is encoded. Instead the body becomes a
generator:

    cached bytes ──64 KB──► encoder.process() ──► chunk ──► socket
                 ──64 KB──► encoder.process() ──► chunk ──► socket
                            encoder.finish()  ──► chunk ──► socket

The encoded size is unknown until the last chunk, which is why
Content-Length is dropped and the response goes out chunked.

Compressed variants are NOT cached: every request re-encodes. That is
the deliberate trade for a small site; cache per-encoding bodies next to
the raw entry if CPU becomes the bottleneck.

=============================================================================
INTERVIEW QUESTIONS ABOUT COMPRESSION
=============================================================================

Q: "Why not compress everything?"
A: "Images, fonts and video are already compressed. Re-encoding them
   burns CPU and can make them larger."

Q: "What's the Vary header for?"
A: "It tells shared caches that the body depends on Accept-Encoding,
   so a Brotli body is never replayed to a client that only knows gzip."

Q: "How is Brotli different from gzip?"
A: "Brotli has a built-in dictionary of common web tokens and typically
   beats gzip by 15-25% on HTML, CSS and JS, at a higher CPU cost for
   high quality levels."

=============================================================================
"""

import zlib
from typing import Dict, Iterator, Optional, Set

import brotli

from .base import Middleware, NextHandler
from ..http.mime_types import COMPRESSIBLE_TYPES, base_type
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


# Encodings this middleware can produce, in order of preference
SUPPORTED_ENCODINGS = ("br", "gzip")


def parse_accept_encoding(header: str) -> Dict[str, float]:
    """
    Parse an Accept-Encoding header into {coding: q-value}.

        >>> parse_accept_encoding("gzip, br;q=0.8, identity;q=0")
        {'gzip': 1.0, 'br': 0.8, 'identity': 0.0}

    Malformed q-values count as 1.0, matching how lenient clients behave.
    """
    codings: Dict[str, float] = {}

    for part in header.split(","):
        token, _, params = part.strip().partition(";")
        token = token.strip().lower()
        if not token:
            continue

        quality = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value.strip())
                except ValueError:
                    quality = 1.0

        codings[token] = quality

    return codings


def select_encoding(header: str) -> Optional[str]:
    """
    Pick the encoding for a response.

    Returns "br", "gzip", or None for identity.
    """
    if not header:
        return None

    codings = parse_accept_encoding(header)
    wildcard = codings.get("*", 0.0)

    for encoding in SUPPORTED_ENCODINGS:
        quality = codings.get(encoding, wildcard)
        if quality > 0:
            return encoding

    return None


def brotli_stream(data: bytes, quality: int = 5, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Yield a Brotli encoding of data, fed to the encoder chunk_size bytes at a time."""
    compressor = brotli.Compressor(quality=quality)
    for offset in range(0, len(data), chunk_size):
        yield compressor.process(data[offset:offset + chunk_size])
    yield compressor.finish()


def gzip_stream(data: bytes, level: int = 6, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """
    Yield a gzip encoding of data.

    wbits=31 selects the gzip container (16) over a 32 KB window (15),
    which is what "Content-Encoding: gzip" means on the wire.
    """
    compressor = zlib.compressobj(level, zlib.DEFLATED, 31)
    for offset in range(0, len(data), chunk_size):
        yield compressor.compress(data[offset:offset + chunk_size])
    yield compressor.flush()


def add_vary(response: HTTPResponse, field_name: str = "Accept-Encoding") -> None:
    """Append a field to the Vary header without duplicating it."""
    vary = response.get_header("Vary", "")
    fields = [f.strip() for f in vary.split(",") if f.strip()]
    if field_name.lower() not in (f.lower() for f in fields):
        fields.append(field_name)
    response.remove_header("Vary")
    response.headers["Vary"] = ", ".join(fields)


class CompressionMiddleware(Middleware):
    """
    Response compression middleware.

    =========================================================================
    HOW IT WORKS
    =========================================================================

    1. Call the next handler to get the response
    2. Leave it alone unless it is a 200 with a fixed body, no existing
       Content-Encoding and a compressible Content-Type
    3. Pick br / gzip / identity from Accept-Encoding
    4. Swap the body for an encoder stream, set Content-Encoding

    Vary: Accept-Encoding is added to every compressible 200 or 304
    response, including identity ones, because the representation a
    cache stores still depends on that request header.

    =========================================================================
    MIDDLEWARE POSITION
    =========================================================================

        pipeline.add(LoggingMiddleware())      # sees the final response
        pipeline.add(CompressionMiddleware())  # closest to the handler

    =========================================================================
    """

    COMPRESSIBLE_TYPES: Set[str] = set(COMPRESSIBLE_TYPES)

    def __init__(
        self,
        level: int = 6,
        brotli_quality: int = 5,
        chunk_size: int = 64 * 1024,
        min_size: int = 0,
        compressible_types: Optional[Set[str]] = None,
    ):
        """
        Args:
            level: gzip compression level (1-9).
            brotli_quality: Brotli quality (0-11).
            chunk_size: Raw bytes fed to the encoder per step.
            min_size: Bodies smaller than this are sent as-is.
            compressible_types: Base MIME types eligible for compression.
        """
        self.level = level
        self.brotli_quality = brotli_quality
        self.chunk_size = chunk_size
        self.min_size = min_size
        self.compressible_types = compressible_types or self.COMPRESSIBLE_TYPES

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        if not self._is_compressible_type(response):
            return response

        if response.status in (HTTPStatus.OK, HTTPStatus.NOT_MODIFIED):
            add_vary(response)

        encoding = select_encoding(request.get_header("accept-encoding"))

        # The 200 this 304 stands for would be chunked, with no length
        if response.status == HTTPStatus.NOT_MODIFIED and encoding is not None:
            response.remove_header("Content-Length")

        if encoding is None or not self._should_compress(response):
            return response

        response.set_stream(self._encode(response.body, encoding))
        response.headers["Content-Encoding"] = encoding
        return response

    def _encode(self, data: bytes, encoding: str) -> Iterator[bytes]:
        if encoding == "br":
            return brotli_stream(data, self.brotli_quality, self.chunk_size)
        return gzip_stream(data, self.level, self.chunk_size)

    def _is_compressible_type(self, response: HTTPResponse) -> bool:
        content_type = response.get_header("Content-Type", "")
        return base_type(content_type) in self.compressible_types

    def _should_compress(self, response: HTTPResponse) -> bool:
        """
        Decision factors besides the content type:
        1. 200 OK (errors and 304s stay as they are)
        2. Not already encoded or streamed
        3. At least min_size bytes
        """
        if response.status != HTTPStatus.OK:
            return False

        if response.get_header("Content-Encoding") is not None:
            return False

        if response.is_streamed:
            return False

        return len(response.body) >= self.min_size


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. br > gzip > identity, q=0 means "not acceptable"
# 2. Only text assets (COMPRESSIBLE_TYPES) are touched
# 3. Bodies are encoded lazily, chunk by chunk, from the cached bytes
# 4. Content-Length is dropped, the response goes out chunked
# 5. Vary: Accept-Encoding on every compressible 200/304
# =============================================================================
