"""
Unit tests for content negotiation and streamed compression.
"""

import gzip

import brotli
import pytest

from assetserver.http.request import HTTPRequest
from assetserver.http.response import HTTPResponse, ResponseBuilder
from assetserver.http.status_codes import HTTPStatus
from assetserver.middleware.compression import (
    CompressionMiddleware,
    parse_accept_encoding,
    select_encoding,
    brotli_stream,
    gzip_stream,
)


CSS = b"body { margin: 0; padding: 0; }\n" * 500


def make_request(accept_encoding: str = None) -> HTTPRequest:
    headers = {}
    if accept_encoding is not None:
        headers["accept-encoding"] = accept_encoding
    return HTTPRequest(method="GET", path="/site.css", headers=headers)


def css_response(status: HTTPStatus = HTTPStatus.OK, content_type: str = "text/css; charset=utf-8"):
    def handler(request: HTTPRequest) -> HTTPResponse:
        return (ResponseBuilder()
            .status(status)
            .header("Content-Type", content_type)
            .header("Content-Length", str(len(CSS)))
            .header("ETag", '"abc"')
            .body(CSS if status == HTTPStatus.OK else b"")
            .build())
    return handler


def drain(response: HTTPResponse) -> bytes:
    return b"".join(response.stream)


class TestNegotiation:
    """Tests for Accept-Encoding parsing and selection."""

    def test_parse_q_values(self):
        assert parse_accept_encoding("gzip, br;q=0.8, identity;q=0") == {
            "gzip": 1.0, "br": 0.8, "identity": 0.0,
        }

    def test_malformed_q_counts_as_one(self):
        assert parse_accept_encoding("br;q=abc") == {"br": 1.0}

    @pytest.mark.parametrize("header, expected", [
        ("gzip, deflate, br", "br"),
        ("br", "br"),
        ("gzip", "gzip"),
        ("GZIP", "gzip"),
        ("deflate", None),
        ("", None),
        ("br;q=0, gzip", "gzip"),
        ("br;q=0, gzip;q=0", None),
        ("*", "br"),
        ("*, br;q=0", "gzip"),
        ("identity", None),
    ])
    def test_select(self, header, expected):
        assert select_encoding(header) == expected


class TestEncoders:
    """The streaming encoders produce valid bodies."""

    def test_gzip_stream_roundtrip(self):
        encoded = b"".join(gzip_stream(CSS, level=6, chunk_size=1000))
        assert gzip.decompress(encoded) == CSS

    def test_brotli_stream_roundtrip(self):
        encoded = b"".join(brotli_stream(CSS, quality=5, chunk_size=1000))
        assert brotli.decompress(encoded) == CSS

    def test_empty_input(self):
        assert gzip.decompress(b"".join(gzip_stream(b""))) == b""
        assert brotli.decompress(b"".join(brotli_stream(b""))) == b""

    def test_encoders_are_lazy(self):
        stream = gzip_stream(CSS)
        assert not isinstance(stream, (bytes, list))


class TestCompressionMiddleware:
    """Tests for CompressionMiddleware."""

    def test_brotli_preferred(self):
        middleware = CompressionMiddleware()
        response = middleware(make_request("gzip, deflate, br"), css_response())

        assert response.headers["Content-Encoding"] == "br"
        assert response.get_header("Content-Length") is None
        assert response.is_streamed
        assert brotli.decompress(drain(response)) == CSS

    def test_gzip_fallback(self):
        middleware = CompressionMiddleware()
        response = middleware(make_request("gzip"), css_response())

        assert response.headers["Content-Encoding"] == "gzip"
        assert gzip.decompress(drain(response)) == CSS

    def test_validators_kept(self):
        response = CompressionMiddleware()(make_request("br"), css_response())
        assert response.headers["ETag"] == '"abc"'

    def test_vary_on_compressed(self):
        response = CompressionMiddleware()(make_request("br"), css_response())
        assert response.headers["Vary"] == "Accept-Encoding"

    def test_identity_keeps_length_and_adds_vary(self):
        response = CompressionMiddleware()(make_request(), css_response())

        assert response.get_header("Content-Encoding") is None
        assert response.headers["Content-Length"] == str(len(CSS))
        assert response.body == CSS
        assert response.headers["Vary"] == "Accept-Encoding"

    def test_binary_untouched(self):
        response = CompressionMiddleware()(
            make_request("br, gzip"), css_response(content_type="image/png")
        )

        assert response.get_header("Content-Encoding") is None
        assert response.get_header("Vary") is None
        assert response.body == CSS

    def test_not_modified_untouched(self):
        response = CompressionMiddleware()(
            make_request("br"), css_response(status=HTTPStatus.NOT_MODIFIED)
        )

        assert response.get_header("Content-Encoding") is None
        assert not response.is_streamed
        assert response.headers["Vary"] == "Accept-Encoding"
        assert response.get_header("Content-Length") is None

    def test_not_modified_keeps_length_for_identity(self):
        response = CompressionMiddleware()(
            make_request(), css_response(status=HTTPStatus.NOT_MODIFIED)
        )

        assert response.headers["Content-Length"] == str(len(CSS))
        assert response.headers["Vary"] == "Accept-Encoding"

    def test_error_untouched(self):
        def not_found(request):
            return (ResponseBuilder()
                .status(HTTPStatus.NOT_FOUND)
                .text("Not Found")
                .build())

        response = CompressionMiddleware()(make_request("br"), not_found)

        assert response.get_header("Content-Encoding") is None
        assert response.body == b"Not Found"

    def test_min_size(self):
        middleware = CompressionMiddleware(min_size=len(CSS) + 1)
        response = middleware(make_request("br"), css_response())
        assert response.get_header("Content-Encoding") is None

    def test_existing_vary_extended(self):
        def handler(request):
            response = css_response()(request)
            response.headers["Vary"] = "Origin"
            return response

        response = CompressionMiddleware()(make_request("gzip"), handler)
        assert response.headers["Vary"] == "Origin, Accept-Encoding"

    def test_wire_format_is_chunked(self):
        response = CompressionMiddleware()(make_request("gzip"), css_response())
        raw = response.to_bytes()

        head, _, body = raw.partition(b"\r\n\r\n")
        assert b"Transfer-Encoding: chunked" in head
        assert b"Content-Length" not in head
        assert body.endswith(b"0\r\n\r\n")
