"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SOCKET SERVER                                                       │
    │  Listening socket, accept() loop, SIGTERM/SIGINT handling            │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ hands off each accepted connection
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  THREAD POOL                                                         │
    │  Bounded queue of connections, worker threads, 503 when full         │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ a worker owns the connection
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION                                                          │
    │  Buffered request reads, fixed and chunked writes, keep-alive        │
    └─────────────────────────────────────────────────────────────────────┘

One worker serves one connection at a time, so every stat(), read() and
send() in a request is a plain blocking call that only holds up that
worker.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestTooLarge
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "ThreadPool",
]
