"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: read the request head, write one
response, close. One connection, one request, one response.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

recv() hands back whatever the kernel has buffered, not "a request":

    Client sends:   "GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n"

    Server might see:
        recv() → "GET / HTTP/1.1\\r\\nHo"
        recv() → "st: x\\r\\n\\r\\n"

So we keep reading until the blank line that ends the header section
shows up (\\r\\n\\r\\n, or \\n\\n from clients that send bare LFs). Once
any bytes have arrived, a peer that closes or goes quiet still gets an
answer built from what it sent. Past max_request_size we give up.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    NEW ──► READING ──► PARSING ──► RESOLVING ──► RESPONDING ──► CLOSED
               │           │            │              ▲
               └───────────┴────────────┴──► ERROR ────┘

    - READING returning None (client sent nothing) goes straight to CLOSED
    - ERROR means "an error response is about to be sent"
    - Every path ends in CLOSED, via the context manager

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.errors import RequestTooLarge
from ..http.response import DEFAULT_SERVER_NAME, HTTPResponse, write_response


logger = logging.getLogger(__name__)


HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Tracked for logging and for making close() idempotent.
    """
    NEW = "new"                # Just accepted
    READING = "reading"        # Reading request bytes
    PARSING = "parsing"        # Turning bytes into an HTTPRequest
    RESOLVING = "resolving"    # Finding (and loading) the file
    RESPONDING = "responding"  # Writing the response
    ERROR = "error"            # Something failed, error response pending
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier (for logging).
        state: Current lifecycle state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Bytes requested per recv() call.
        timeout: Read/write deadline in seconds (None = block forever).
        max_request_size: Upper bound on the buffered request head.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 10240
    timeout: Optional[float] = 30.0
    max_request_size: int = 64 * 1024

    def __post_init__(self):
        """Apply the read/write deadline to the socket."""
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read the request head (and whatever body bytes came with it).

        ┌─────────────────────────────────────────────────────────────────┐
        │                    read_request() Flow                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   recv(buffer_size) ── b"" or timeout, nothing read ──► None     │
        │        │                                                         │
        │        ▼                                                         │
        │   blank line in buffer? ── yes ──► return buffer                 │
        │        │ no                                                      │
        │        ▼                                                         │
        │   buffer > max_request_size? ── yes ──► RequestTooLarge          │
        │        │ no                                                      │
        │        ▼                                                         │
        │   recv() again ── b"" or timeout ──► return buffer               │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Bytes after the terminator are NOT chased with Content-Length;
        whatever arrived in the same reads is kept as the body.

        Returns:
            Raw request bytes, or None if the client sent nothing.

        Raises:
            RequestTooLarge: No terminator within max_request_size bytes.
        """
        self.state = ConnectionState.READING
        buffer = b""

        while True:
            try:
                chunk = self._recv()
            except TimeoutError:
                if not buffer:
                    # Connected but never said anything
                    logger.debug(f"[{self.id}] Timed out waiting for request")
                    return None
                # Client went quiet mid-request: answer what it sent
                logger.debug(f"[{self.id}] Timed out after {len(buffer)} bytes, parsing what arrived")
                return buffer

            if not chunk:
                # Client closed its side: nothing at all, or all it had
                return buffer or None

            buffer += chunk

            if any(terminator in buffer for terminator in HEADER_TERMINATORS):
                return buffer

            if len(buffer) > self.max_request_size:
                raise RequestTooLarge(f"Request head exceeds {self.max_request_size} bytes")

    def _recv(self) -> bytes:
        """
        Receive data from the socket.

        A reset from the client is treated like an orderly close.

        Returns:
            Received bytes, or empty bytes if the connection is gone.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(
        self,
        response: HTTPResponse,
        server_name: str = DEFAULT_SERVER_NAME,
    ) -> bool:
        """
        Write a response to the client.

        Uses socket.send() through write_response(), which retries short
        writes with the unsent remainder.

        Args:
            response: The response to send.
            server_name: Value for the Server header.

        Returns:
            True if every byte was written, False if the client went away.
        """
        self.state = ConnectionState.RESPONDING

        try:
            write_response(self.socket.send, response, server_name)
            return True
        except (ConnectionError, TimeoutError, OSError) as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, we're done talking
        2. drain: read and discard whatever the client still sends
        3. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # Includes socket.timeout; we're closing anyway

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows using Connection with 'with' so it is always closed:

            with conn:
                data = conn.read_request()
                conn.send_response(response)
            # Connection closed here, even on exceptions
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
