"""
Error responses with optional custom pages.

A site can override the body of any error status by dropping
``<status>.html`` into the served root (``404.html``, ``403.html``,
``500.html``). Without one, the client gets a short plain-text message.
Bodies never include paths, exception text or stack traces.

Pages are read lazily on first use and memoized, including the fact
that a page does NOT exist, so a flood of 404s costs one stat, not one
per request. ``reset()`` forgets everything; the cache-clear route calls
it so a newly deployed ``404.html`` shows up without a restart.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Union

from ..http.response import HTTPResponse, ResponseBuilder, text_response
from ..http.status_codes import HTTPStatus, get_status_phrase


logger = logging.getLogger(__name__)


DEFAULT_MESSAGES = {
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


class ErrorPages:
    """Status code → optional custom page body, loaded once per status."""

    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir).resolve()
        self._pages: Dict[int, Optional[bytes]] = {}
        self._lock = threading.Lock()

    def page(self, status: int) -> Optional[bytes]:
        """
        Body of ``<status>.html``, or None if there is no readable page.
        """
        status = int(status)
        with self._lock:
            if status in self._pages:
                return self._pages[status]

        body = self._load(status)

        with self._lock:
            self._pages[status] = body
        return body

    def _load(self, status: int) -> Optional[bytes]:
        path = self.root_dir / f"{status}.html"
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read error page {path.name}: {e}")
            return None

    def response(self, status: int, message: Optional[str] = None) -> HTTPResponse:
        """
        Build the error response for a status.

        Args:
            status: HTTP status code.
            message: Plain-text fallback; defaults to a generic message.
        """
        body = self.page(status)
        if body is not None:
            return (ResponseBuilder()
                .status(status)
                .html(body)
                .build())

        if message is None:
            message = DEFAULT_MESSAGES.get(status) or f"{int(status)} {get_status_phrase(status)}"
        return text_response(status, message)

    def reset(self) -> None:
        with self._lock:
            self._pages.clear()
