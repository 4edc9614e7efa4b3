"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The plumbing under the HTTP layer: sockets, connections, worker threads
and disk access. Nothing in here knows what a file URL means.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ SOCKET SERVER (socket_server.py)                                    │
    │  • Binds, listens, runs the accept() loop                           │
    │  • SIGTERM / SIGINT → graceful shutdown                             │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ hands off each Connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │ THREAD POOL (thread_pool.py)                                        │
    │  • Fixed workers, bounded queue: the concurrency cap                │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ worker runs the connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │ CONNECTION (connection.py)                                          │
    │  • Reads until \\r\\n\\r\\n, writes one response, closes               │
    └─────────────────────────────────────────────────────────────────────┘

    FILESYSTEM (filesystem.py): stat() and read_file(), swappable in tests

=============================================================================
"""

from .filesystem import FileStat, FileSystem, LocalFileSystem
from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
    "FileStat",
    "FileSystem",
    "LocalFileSystem",
]
