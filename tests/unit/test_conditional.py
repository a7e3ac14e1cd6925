"""
Unit tests for ETags and conditional request evaluation.
"""

import base64
import hashlib
from datetime import datetime, timezone

from assetserver.http.conditional import (
    make_etag,
    parse_http_date,
    etag_matches,
    modified_since,
    is_not_modified,
)


# Tue, 14 Nov 2023 22:13:20 GMT
MTIME = 1_700_000_000.0


class TestMakeEtag:
    """Tests for make_etag()."""

    def test_empty_body(self):
        assert make_etag(b"") == '"2jmj7l5rSw0yVb/vlWAYkK/YBwk"'

    def test_quoted_unpadded_base64_sha1(self):
        data = b"body { color: red }"
        expected = base64.b64encode(hashlib.sha1(data).digest()).decode().rstrip("=")

        etag = make_etag(data)

        assert etag == f'"{expected}"'
        assert "=" not in etag

    def test_depends_only_on_content(self):
        assert make_etag(b"same") == make_etag(b"same")
        assert make_etag(b"same") != make_etag(b"different")


class TestParseHttpDate:
    """Tests for parse_http_date()."""

    def test_imf_fixdate(self):
        parsed = parse_http_date("Tue, 14 Nov 2023 22:13:20 GMT")
        assert parsed == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_rfc850(self):
        parsed = parse_http_date("Tuesday, 14-Nov-23 22:13:20 GMT")
        assert parsed.timestamp() == MTIME

    def test_asctime(self):
        parsed = parse_http_date("Tue Nov 14 22:13:20 2023")
        assert parsed.timestamp() == MTIME

    def test_invalid(self):
        assert parse_http_date("") is None
        assert parse_http_date("yesterday") is None
        assert parse_http_date("Tue, 99 Foo 2023 99:99:99 GMT") is None


class TestEtagMatches:
    """Tests for etag_matches()."""

    def test_exact(self):
        assert etag_matches('"abc"', '"abc"') is True

    def test_different(self):
        assert etag_matches('"abc"', '"xyz"') is False

    def test_empty_header(self):
        assert etag_matches("", '"abc"') is False

    def test_list(self):
        assert etag_matches('"one", "abc", "two"', '"abc"') is True

    def test_weak_comparison(self):
        assert etag_matches('W/"abc"', '"abc"') is True

    def test_wildcard(self):
        assert etag_matches("*", '"abc"') is True


class TestModifiedSince:
    """Tests for modified_since()."""

    def test_same_second(self):
        assert modified_since("Tue, 14 Nov 2023 22:13:20 GMT", MTIME) is False

    def test_subsecond_mtime_same_second(self):
        assert modified_since("Tue, 14 Nov 2023 22:13:20 GMT", MTIME + 0.75) is False

    def test_later_date(self):
        assert modified_since("Wed, 15 Nov 2023 00:00:00 GMT", MTIME) is False

    def test_earlier_date(self):
        assert modified_since("Tue, 14 Nov 2023 22:13:19 GMT", MTIME) is True

    def test_unparseable_counts_as_modified(self):
        assert modified_since("not a date", MTIME) is True


class TestIsNotModified:
    """Tests for is_not_modified()."""

    def test_no_validators(self):
        assert is_not_modified({}, '"abc"', MTIME) is False

    def test_matching_etag(self):
        assert is_not_modified({"if-none-match": '"abc"'}, '"abc"', MTIME) is True

    def test_matching_date(self):
        headers = {"if-modified-since": "Tue, 14 Nov 2023 22:13:20 GMT"}
        assert is_not_modified(headers, '"abc"', MTIME) is True

    def test_either_validator_is_enough(self):
        headers = {
            "if-none-match": '"stale"',
            "if-modified-since": "Wed, 15 Nov 2023 00:00:00 GMT",
        }
        assert is_not_modified(headers, '"abc"', MTIME) is True

    def test_both_fail(self):
        headers = {
            "if-none-match": '"stale"',
            "if-modified-since": "Mon, 13 Nov 2023 00:00:00 GMT",
        }
        assert is_not_modified(headers, '"abc"', MTIME) is False
