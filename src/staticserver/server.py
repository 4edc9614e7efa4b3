"""
=============================================================================
STATIC FILE SERVER
=============================================================================

The orchestrator: ties the listener, the worker pool, the parser and the
resolver together into a server that answers GET requests with files from
a directory.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │RouteResolver │        │
    │    │  (accept)    │    │  (workers)   │    │ (disk → file)│        │
    │    └──────┬───────┘    └──────┬───────┘    └──────────────┘        │
    │           ▼                   ▼                                     │
    │    ┌──────────────┐    ┌──────────────┐                            │
    │    │  Connection  │    │RequestParser │                            │
    │    └──────────────┘    └──────────────┘                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE (one request per connection)
=============================================================================

    1. SocketServer accepts, wraps the socket in a Connection
    2. Connection is queued in the ThreadPool (full → 500, close)
    3. Worker: read until a blank line     nothing read → close silently
    4. Parse                               InvalidMethod/InvalidVersion → 400
    5. Resolve + load                      NotFound → 404, not GET → 405
    6. 200 with the file bytes             anything unexpected → 500
    7. Send exactly ONE response, log it, close

=============================================================================
"""

import logging
import threading
from typing import Optional

from .access_log import log_access, make_record
from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool, FileSystem
from .http import (
    HTTPError,
    HTTPRequest,
    HTTPResponse,
    RequestParser,
    RouteResolver,
    error_response,
    internal_error,
    ok,
)


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Static file HTTP/1.1 server.

    =========================================================================
    USAGE
    =========================================================================

        config = ServerConfig(root_dir="./www", port=8000)
        server = HTTPServer(config)
        server.run()              # Blocks until Ctrl+C / SIGTERM / shutdown()

    =========================================================================
    """

    def __init__(self, config: ServerConfig, filesystem: Optional[FileSystem] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Validated here, before any socket
                    exists.
            filesystem: Disk access for the resolver (LocalFileSystem by
                        default).

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser()
        self._resolver = RouteResolver(self.config.root_dir, filesystem=filesystem)

    @property
    def address(self) -> tuple[str, int]:
        """Address the listener is bound to (real port once running)."""
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.

        Raises:
            OSError: If the listening address cannot be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._thread_pool.start()

        logger.info(
            f"Serving {self.config.root_dir} on {self.config.host}:{self.config.port} "
            f"with {self.config.max_workers} workers"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections (for embedding and tests)."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Stop accepting connections; run() returns once in-flight work is done."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("staticserver").setLevel(level)

    def _shutdown(self):
        """Let queued connections finish, then stop the workers."""
        logger.info(f"Shutting down server... (pool: {self._thread_pool.stats})")
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Queue a connection for a worker (called from the accept loop).

        When every worker is busy and the queue is full, the client gets a
        500 right away instead of waiting. The rejection is written from a
        short-lived thread so accept() is never held up by a slow client.
        """
        submitted = self._thread_pool.submit(
            self.process_connection,
            args=(conn,),
            on_discard=conn.close,
        )

        if not submitted:
            logger.warning(
                f"[{conn.id}] Thread pool full ({self._thread_pool.pending} queued), "
                f"rejecting connection from {conn.client_ip}"
            )
            threading.Thread(
                target=self._reject,
                args=(conn,),
                name=f"Reject-{conn.id}",
                daemon=True,
            ).start()

    def _reject(self, conn: Connection):
        """Answer a connection the pool had no room for with a 500."""
        with conn:
            self._respond(conn, internal_error())

    def process_connection(self, conn: Connection):
        """
        Handle one connection from first byte to close (runs in a worker).

        Every path through this method sends at most one response, and
        the connection is closed on the way out.

        Args:
            conn: The client connection.
        """
        with conn:
            request: Optional[HTTPRequest] = None

            try:
                raw_request = conn.read_request()
                if raw_request is None:
                    logger.debug(f"[{conn.id}] Client sent nothing, closing")
                    return

                conn.state = ConnectionState.PARSING
                request = self._parser.parse(raw_request)

                conn.state = ConnectionState.RESOLVING
                resolved = self._resolver.resolve(request)
                content = self._resolver.load(resolved)

                response = ok(content, resolved.mime_type)

            except HTTPError as e:
                conn.state = ConnectionState.ERROR
                logger.debug(f"[{conn.id}] {type(e).__name__}: {e}")
                response = error_response(e)

            except Exception as e:
                conn.state = ConnectionState.ERROR
                logger.exception(f"[{conn.id}] Unexpected error: {e}")
                response = error_response(e)

            self._respond(conn, response, request)

    def _respond(
        self,
        conn: Connection,
        response: HTTPResponse,
        request: Optional[HTTPRequest] = None,
    ):
        """Send the one response for this connection and log it."""
        conn.send_response(response, self.config.server_name)

        record = make_record(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            method=str(request.method) if request else None,
            path=request.path if request else None,
            status_code=response.status,
            content_length=response.content_length,
            started_at=conn.created_at,
        )
        log_access(record, self.config.log_format)


def create_server(config: ServerConfig) -> HTTPServer:
    """
    Create a server for the given configuration.

    Example:
        server = create_server(ServerConfig(root_dir="./www", port=3000))
        server.run()
    """
    return HTTPServer(config)
