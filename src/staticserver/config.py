"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the server in one dataclass, passed explicitly to the
components that need it. Nothing reads configuration from globals.

=============================================================================
WHERE VALUES COME FROM
=============================================================================

    CLI arguments  ──►  ServerConfig(...)          python -m staticserver ./www
    Environment    ──►  ServerConfig.from_env()    HTTP_ROOT_DIR=./www
    Code           ──►  ServerConfig(root_dir="./www", port=0)

validate() runs before the listening socket is created, so a missing root
directory stops the server before it ever accepts a connection.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .access_log import LOG_FORMATS
from .http.response import DEFAULT_SERVER_NAME


@dataclass
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    CONTENT         root_dir
    NETWORK         host, port, backlog
    CONNECTIONS     buffer_size, max_request_size, timeout
    CONCURRENCY     max_workers, queue_size
    LOGGING         log_level, log_format
    IDENTITY        server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root_dir: Optional[str] = None
    """
    Directory whose files are served. Required.
    "GET /a/b.css" is answered from root_dir + "/a/b.css".
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8000
    """The port to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128
    """Maximum number of connections waiting to be accepted."""

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 10240
    """Bytes requested per recv() call (10 KB)."""

    max_request_size: int = 64 * 1024
    """
    Largest request head we are willing to buffer.
    No "\\r\\n\\r\\n" within this many bytes → 400 Bad Request.
    """

    timeout: Optional[float] = 30.0
    """
    Read/write deadline for client sockets, in seconds.
    A client that goes quiet for this long is disconnected.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    max_workers: int = 16
    """Worker threads, i.e. connections handled at the same time."""

    queue_size: int = 128
    """Accepted connections allowed to wait for a free worker."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (human readable) or 'json' (one object per line)."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = DEFAULT_SERVER_NAME
    """Value of the Server header on every response."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_ROOT_DIR      Directory to serve (required to start)
        HTTP_HOST          Server host (default: 127.0.0.1)
        HTTP_PORT          Server port (default: 8000)
        HTTP_WORKERS       Worker threads (default: 16)
        HTTP_TIMEOUT       Socket deadline in seconds (default: 30)
        HTTP_LOG_LEVEL     Logging level (default: INFO)
        HTTP_LOG_FORMAT    Access log format (default: text)
        HTTP_SERVER_NAME   Server header value

        =====================================================================
        """
        return cls(
            root_dir=os.getenv("HTTP_ROOT_DIR"),
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8000")),
            max_workers=int(os.getenv("HTTP_WORKERS", "16")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
            server_name=os.getenv("HTTP_SERVER_NAME", DEFAULT_SERVER_NAME),
        )

    def validate(self) -> None:
        """
        Validate configuration values (fail fast, before binding).

        Raises:
            ValueError: On the first invalid value.
        """
        if not self.root_dir:
            raise ValueError("root_dir is required: pass a folder to be served")

        if not os.path.isdir(self.root_dir):
            raise ValueError(f"root_dir is not a directory: {self.root_dir}")

        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format!r}")
