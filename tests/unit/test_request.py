"""
Unit tests for HTTP request parsing.
"""

import pytest

from assetserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


SAMPLE_GET = (
    b"GET /css/site.css?v=3&theme=dark HTTP/1.1\r\n"
    b"Host: localhost:14000\r\n"
    b"User-Agent: pytest\r\n"
    b"Accept-Encoding: gzip, br\r\n"
    b"Connection: keep-alive\r\n"
    b"\r\n"
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        parser = RequestParser()
        request = parser.parse(SAMPLE_GET, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/css/site.css"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self):
        request = parse_request(SAMPLE_GET)

        assert request.host == "localhost:14000"
        assert request.user_agent == "pytest"
        assert request.headers["accept-encoding"] == "gzip, br"
        assert request.get_header("Accept-Encoding") == "gzip, br"
        assert request.is_keep_alive is True

    def test_query_is_split_off(self):
        request = parse_request(SAMPLE_GET)

        assert request.path == "/css/site.css"
        assert request.query_string == "v=3&theme=dark"

    def test_leading_double_slash_is_a_path(self):
        request = parse_request(b"GET //css/site.css?v=1 HTTP/1.1\r\n\r\n")

        assert request.path == "//css/site.css"
        assert request.query_string == "v=1"

    def test_path_stays_encoded(self):
        request = parse_request(b"GET /hello%20world.txt HTTP/1.1\r\n\r\n")
        assert request.path == "/hello%20world.txt"

    def test_dotdot_reaches_handler(self):
        request = parse_request(b"GET /../etc/passwd HTTP/1.1\r\n\r\n")
        assert request.path == "/../etc/passwd"

    def test_head(self):
        request = parse_request(b"HEAD /index.html HTTP/1.1\r\n\r\n")
        assert request.is_head is True

    def test_duplicate_headers_joined(self):
        request = parse_request(
            b"GET / HTTP/1.1\r\n"
            b"Accept-Encoding: gzip\r\n"
            b"Accept-Encoding: br\r\n"
            b"\r\n"
        )
        assert request.headers["accept-encoding"] == "gzip, br"

    def test_folded_header(self):
        request = parse_request(
            b"GET / HTTP/1.1\r\n"
            b"X-Long: first\r\n"
            b"  second\r\n"
            b"\r\n"
        )
        assert request.headers["x-long"] == "first second"

    def test_body_sliced_by_content_length(self):
        request = parse_request(
            b"POST /upload HTTP/1.1\r\n"
            b"Content-Length: 5\r\n"
            b"\r\n"
            b"helloEXTRA"
        )
        assert request.body == b"hello"


class TestParseErrors:
    """Malformed requests map to the right status codes."""

    def test_missing_terminator(self):
        with pytest.raises(HTTPParseError) as exc:
            parse_request(b"GET / HTTP/1.1\r\nHost: x\r\n")
        assert exc.value.status_code == 400

    def test_bad_request_line(self):
        with pytest.raises(HTTPParseError) as exc:
            parse_request(b"GARBAGE\r\n\r\n")
        assert exc.value.status_code == 400

    def test_unknown_method(self):
        with pytest.raises(HTTPParseError) as exc:
            parse_request(b"BREW /pot HTTP/1.1\r\n\r\n")
        assert exc.value.status_code == 405

    def test_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc:
            parse_request(b"GET / HTTP/2.0\r\n\r\n")
        assert exc.value.status_code == 505

    def test_absolute_form_rejected(self):
        with pytest.raises(HTTPParseError) as exc:
            parse_request(b"GET http://example.com/ HTTP/1.1\r\n\r\n")
        assert exc.value.status_code == 400

    def test_too_large(self):
        with pytest.raises(HTTPParseError) as exc:
            parse_request(SAMPLE_GET, max_size=10)
        assert exc.value.status_code == 413

    @pytest.mark.parametrize("value", [b"abc", b"-1"])
    def test_invalid_content_length(self, value):
        with pytest.raises(HTTPParseError) as exc:
            parse_request(b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n")
        assert exc.value.status_code == 400

    def test_short_body(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nshort")


class TestHTTPRequest:
    """Tests for HTTPRequest properties."""

    def test_keep_alive_http11_default(self):
        assert HTTPRequest(method="GET", path="/").is_keep_alive is True

    def test_keep_alive_http11_close(self):
        request = HTTPRequest(method="GET", path="/", headers={"connection": "close"})
        assert request.is_keep_alive is False

    def test_keep_alive_http10_default(self):
        request = HTTPRequest(method="GET", path="/", version="HTTP/1.0")
        assert request.is_keep_alive is False

    def test_keep_alive_http10_opt_in(self):
        request = HTTPRequest(
            method="GET", path="/", version="HTTP/1.0",
            headers={"connection": "keep-alive"},
        )
        assert request.is_keep_alive is True
