"""
=============================================================================
CONDITIONAL REQUESTS
=============================================================================

Validators (ETag, Last-Modified) and the checks that turn a GET into a
304 Not Modified.

=============================================================================
HOW REVALIDATION WORKS
=============================================================================

    First visit                           Later visit
    ───────────                           ───────────

    GET /app.css                          GET /app.css
                                          If-None-Match: "2jmj7l5rSw0yVb"
                                          If-Modified-Since: Mon, 10 Jun ...
         │                                     │
         ▼                                     ▼
    200 OK                                304 Not Modified
    ETag: "2jmj7l5rSw0yVb"                ETag: "2jmj7l5rSw0yVb"
    Last-Modified: Mon, 10 Jun ...        (no body)
    <body>

The client answers from its own copy and no body crosses the network.

=============================================================================
THE ETAG FORMAT
=============================================================================

    sha1(content) → 20 bytes → base64 → strip "=" padding → quote

    b""   →   da39a3ee...0709   →   "2jmj7l5rSw0yVb/vlWAYkK/YBwk"

The tag depends only on the bytes, so the same content always produces the
same tag, even after a restart or a cache clear.

=============================================================================
"""

import base64
import hashlib
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional


def make_etag(data: bytes) -> str:
    """
    Compute the strong ETag for a body.

        >>> make_etag(b"")
        '"2jmj7l5rSw0yVb/vlWAYkK/YBwk"'
    """
    digest = hashlib.sha1(data).digest()
    return '"' + base64.b64encode(digest).decode("ascii").rstrip("=") + '"'


def parse_http_date(value: str) -> Optional[datetime]:
    """
    Parse an HTTP-date header value into an aware UTC datetime.

    Accepts all three formats RFC 7231 §7.1.1.1 requires recipients to
    understand (IMF-fixdate, RFC 850, asctime).

    Returns:
        The parsed datetime, or None if the value is not a valid date.
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _opaque_tag(tag: str) -> str:
    """Drop the weak indicator so tags can be compared weakly."""
    tag = tag.strip()
    if tag.startswith("W/"):
        tag = tag[2:]
    return tag


def etag_matches(if_none_match: str, etag: str) -> bool:
    """
    Check an If-None-Match header against the current ETag.

    The header may be "*", a single tag or a comma separated list. Per
    RFC 7232 §3.2 the comparison is weak, so W/"x" matches "x".

        >>> etag_matches('"a", W/"b"', '"b"')
        True
    """
    if not if_none_match:
        return False
    if if_none_match.strip() == "*":
        return True

    current = _opaque_tag(etag)
    return any(
        _opaque_tag(candidate) == current
        for candidate in if_none_match.split(",")
        if candidate.strip()
    )


def modified_since(if_modified_since: str, mtime: float) -> bool:
    """
    Check whether the resource changed after the If-Modified-Since date.

    HTTP dates have whole-second resolution while filesystems record
    fractions, so the mtime is truncated before comparing. An unparseable
    date counts as "modified", which means a full response.
    """
    since = parse_http_date(if_modified_since)
    if since is None:
        return True
    return int(mtime) > since.timestamp()


def is_not_modified(headers: Mapping[str, str], etag: str, mtime: float) -> bool:
    """
    Decide whether a request can be answered with 304.

    Either validator is enough: a matching If-None-Match, or an
    If-Modified-Since at or after the last modification.

    Args:
        headers: Request headers with lowercase names.
        etag: Current ETag of the resource.
        mtime: Modification time of the resource, seconds since the epoch.
    """
    if etag_matches(headers.get("if-none-match", ""), etag):
        return True

    if_modified_since = headers.get("if-modified-since", "")
    if if_modified_since and not modified_since(if_modified_since, mtime):
        return True

    return False
