"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting request/response processing around the router.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   LoggingMiddleware       access log line + X-Request-ID            │
    │          │                                                           │
    │          ▼                                                           │
    │   CompressionMiddleware   br / gzip streaming for text assets        │
    │          │                                                           │
    │          ▼                                                           │
    │   Router                  /clearcache, static files                  │
    └─────────────────────────────────────────────────────────────────────┘

Each middleware is a callable taking (request, next) and returning a
response. MiddlewarePipeline.wrap() nests them, first added outermost.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .compression import CompressionMiddleware, select_encoding

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "CompressionMiddleware",
    "select_encoding",
]
