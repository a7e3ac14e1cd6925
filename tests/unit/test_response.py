"""
Unit tests for HTTP response building.
"""

from datetime import datetime, timedelta, timezone

from assetserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    HTTPStatus,
    format_http_date,
    text_response,
    not_modified,
    method_not_allowed,
    service_unavailable,
)


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.NOT_MODIFIED)
        assert response.status_line == "HTTP/1.1 304 Not Modified"

    def test_to_bytes_includes_headers(self):
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert b"HTTP/1.1 200 OK\r\n" in result
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Server: assetserver/1.0\r\n" in result
        assert b"Date: " in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_head_omits_body_keeps_length(self):
        response = HTTPResponse(body=b"hello world")
        result = response.to_bytes(include_body=False)

        assert b"Content-Length: 11\r\n" in result
        assert result.endswith(b"\r\n\r\n")

    def test_no_content_length_for_304(self):
        result = HTTPResponse(status=HTTPStatus.NOT_MODIFIED).to_bytes()
        assert b"Content-Length" not in result

    def test_header_lookup_case_insensitive(self):
        response = HTTPResponse(headers={"Content-Type": "text/css"})

        assert response.get_header("content-type") == "text/css"
        response.remove_header("CONTENT-TYPE")
        assert response.get_header("Content-Type") is None

    def test_set_header_chaining(self):
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers["X-One"] == "1"
        assert response.headers["X-Two"] == "2"


class TestStreaming:
    """Chunked transfer encoding."""

    def test_chunk_framing(self):
        response = HTTPResponse(headers={"Content-Length": "99"})
        response.set_stream(iter([b"hello", b"", b"world!"]))

        head, _, body = response.to_bytes().partition(b"\r\n\r\n")

        assert b"Transfer-Encoding: chunked" in head
        assert b"Content-Length" not in head
        assert body == b"5\r\nhello\r\n6\r\nworld!\r\n0\r\n\r\n"

    def test_materialize(self):
        response = HTTPResponse()
        response.set_stream(iter([b"abc", b"def"]))
        response.materialize()

        assert not response.is_streamed
        assert response.body == b"abcdef"
        assert b"Content-Length: 6\r\n" in response.to_bytes()

    def test_set_body_clears_stream(self):
        response = HTTPResponse()
        response.set_stream(iter([b"x"]))
        response.set_body("plain")

        assert not response.is_streamed
        assert response.body == b"plain"


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_status(self):
        response = ResponseBuilder().status(HTTPStatus.NOT_FOUND).build()
        assert response.status == HTTPStatus.NOT_FOUND

    def test_html_body(self):
        html = "<html><body>Hello</body></html>"
        response = ResponseBuilder().html(html).build()

        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert response.body == html.encode()

    def test_text_body(self):
        response = ResponseBuilder().text("Cache cleared").build()

        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == b"Cache cleared"

    def test_headers_merge(self):
        response = ResponseBuilder().headers({"A": "1"}).header("B", "2").build()
        assert response.headers == {"A": "1", "B": "2"}

    def test_stream(self):
        response = ResponseBuilder().stream(iter([b"a"])).build()
        assert response.is_streamed

    def test_no_store(self):
        response = ResponseBuilder().no_store().build()
        assert response.headers["Cache-Control"] == "no-store"


class TestHelpers:
    """Tests for convenience functions."""

    def test_text_response(self):
        response = text_response(HTTPStatus.FORBIDDEN, "Forbidden")

        assert response.status == HTTPStatus.FORBIDDEN
        assert response.body == b"Forbidden"

    def test_not_modified_copies_headers(self):
        headers = {"ETag": '"abc"', "Cache-Control": "no-cache"}
        response = not_modified(headers)
        response.headers["X"] = "1"

        assert response.status == HTTPStatus.NOT_MODIFIED
        assert response.body == b""
        assert response.headers["ETag"] == '"abc"'
        assert "X" not in headers

    def test_method_not_allowed(self):
        response = method_not_allowed(["GET", "HEAD"])

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET, HEAD"

    def test_service_unavailable(self):
        response = service_unavailable()

        assert response.status == HTTPStatus.SERVICE_UNAVAILABLE
        assert response.headers["Connection"] == "close"


class TestFormatHttpDate:
    """Tests for format_http_date()."""

    def test_utc(self):
        dt = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Tue, 14 Nov 2023 22:13:20 GMT"

    def test_converts_other_zones(self):
        dt = datetime(2023, 11, 15, 0, 13, 20, tzinfo=timezone(timedelta(hours=2)))
        assert format_http_date(dt) == "Tue, 14 Nov 2023 22:13:20 GMT"
