"""
=============================================================================
CORE MODULE
=============================================================================

The transport underneath the request pipeline:

    socket_server.py  - listening socket and accept loop
    connection.py     - per-client buffered reads, fixed and streamed writes
    thread_pool.py    - workers that run one connection each

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
