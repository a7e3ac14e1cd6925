"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions.

The asset server only has two kinds of route, which makes the table
short but the ORDER significant:

    ┌──────────┬────────────────┬───────────────────────────────────────┐
    │ Method   │ Pattern        │ Handler                               │
    ├──────────┼────────────────┼───────────────────────────────────────┤
    │ GET      │ /clearcache    │ CacheAdminHandler (exact path)        │
    │ GET      │ /*path         │ StaticFileHandler (everything else)   │
    │ HEAD     │ /*path         │ StaticFileHandler                     │
    └──────────┴────────────────┴───────────────────────────────────────┘

First match wins, so the exact admin route is registered before the
catch-all. A POST anywhere finds no route for its method but a pattern
that matches, and gets 405 with "Allow: GET, HEAD".

=============================================================================
PATTERNS
=============================================================================

    /clearcache      exact match
    /files/:name     one path segment    → path_params["name"]
    /*path           the rest of the path, slashes included

Patterns compile to anchored regexes:

    /files/:name  →  ^/files/(?P<name>[^/]+)$
    /*path        →  ^/(?P<path>.*)$

=============================================================================
INTERVIEW QUESTIONS ABOUT ROUTING
=============================================================================

Q: "What's the time complexity of route matching?"
A: "O(R × P) where R is the number of routes and P the path length.
   Fine for a handful of routes; a radix tree helps when there are
   thousands."

Q: "When do you return 404 vs 405?"
A: "404 if no pattern matches the path at all. 405 if some pattern
   matches but not for this method, with an Allow header listing the
   methods that would have worked."

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import re

from .request import HTTPRequest
from .response import HTTPResponse, method_not_allowed, text_response
from .status_codes import HTTPStatus


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """
    A URL pattern bound to a handler.

        Route(
            path="/clearcache",
            method="GET",
            handler=admin.handle,
            name="clear_cache",
        )
    """

    path: str
    method: Optional[str]            # None = any method
    handler: Handler
    name: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """A matched route plus the parameters captured from the path."""
    route: Route
    params: Dict[str, str]


class Router:
    """
    Ordered route table.

    Usage:

        router = Router()
        router.add_route("/clearcache", admin.handle, method="GET")
        router.add_route("/*path", static.handle, method="GET")
        router.add_route("/*path", static.handle, method="HEAD")

        response = router.handle(request)

    Or with decorators:

        @router.get("/clearcache")
        def clear_cache(request):
            ...
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
        **meta: Any
    ) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern (e.g. /clearcache, /*path)
            handler: Callable taking a request and returning a response
            method: HTTP method, or None for any method
            name: Optional route name
            **meta: Extra data available as route.meta

        Returns:
            The registered Route.
        """
        pattern, param_names = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            name=name,
            meta=meta,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)

        return route

    def _compile_pattern(self, path: str) -> Tuple[re.Pattern, List[str]]:
        """
        Compile a path pattern into an anchored regex.

            "/files/:name"  →  ^/files/(?P<name>[^/]+)$

        Returns:
            Tuple of (compiled regex, list of parameter names)
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                param_name = segment[1:]
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>[^/]+)")

            elif segment.startswith("*"):
                # Wildcard consumes the rest of the path and must be last
                param_name = segment[1:] or "wildcard"
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>.*)")
                break

            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")

        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    @staticmethod
    def _normalize(path: str) -> str:
        # "/about/" and "/about" match the same routes
        return "/" + path.strip("/") if path != "/" else "/"

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching method and path.

        Returns:
            RouteMatch if found, None otherwise
        """
        path = self._normalize(path)

        for route in self._routes:
            if route.method and route.method != method.upper():
                continue

            if route._pattern:
                match = route._pattern.match(path)
                if match:
                    return RouteMatch(route=route, params=match.groupdict())

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """
        Methods that have a route matching this path.

        Used for the Allow header of a 405 response.
        """
        path = self._normalize(path)
        methods = set()

        for route in self._routes:
            if route._pattern and route._pattern.match(path):
                if route.method is None:
                    return ["GET", "HEAD"]
                methods.add(route.method)

        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        Sets request.path_params from the match before calling the
        handler. Falls back to 405 or 404 when nothing matches.
        """
        match = self.match(request.method, request.path)

        if match:
            request.path_params = match.params
            return match.route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return text_response(HTTPStatus.NOT_FOUND, "Not Found")

    # =========================================================================
    # DECORATOR-STYLE ROUTE REGISTRATION
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
        **meta: Any
    ) -> Callable[[Handler], Handler]:
        """Decorator form of add_route()."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name, **meta)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name, **meta)

    def head(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "HEAD", name, **meta)

    @property
    def routes(self) -> List[Route]:
        """Registered routes in match order (copy)."""
        return list(self._routes)
