"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator, Optional

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import HTTPServer, ServerConfig


INDEX_HTML = b"<html><body><h1>Hello from disk!</h1></body></html>\n"
STYLE_CSS = b"body { color: #333; }\n"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /index.html HTTP/1.1\r\n"
        b"Host: localhost:8000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a form body."""
    body = b"name=John&email=john%40example.com"
    head = (
        b"POST /submit HTTP/1.1\r\n"
        b"Host: localhost:8000\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
    )
    return head + f"Content-Length: {len(body)}\r\n\r\n".encode() + body


@pytest.fixture
def web_root(tmp_path: Path) -> Path:
    """
    A small site on disk:

        index.html
        style.css
        docs/index.html
        docs/notes.txt
        empty/            (directory without index.html)
        data.bin          (unknown extension)
    """
    (tmp_path / "index.html").write_bytes(INDEX_HTML)
    (tmp_path / "style.css").write_bytes(STYLE_CSS)

    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "index.html").write_bytes(b"<h1>Docs</h1>")
    (docs / "notes.txt").write_bytes(b"some notes")

    (tmp_path / "empty").mkdir()
    (tmp_path / "data.bin").write_bytes(bytes(range(256)))

    return tmp_path


@pytest.fixture
def config(web_root: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        root_dir=str(web_root),
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        max_workers=4,
        queue_size=16,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class RunningServer:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it accepts."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes, half-close, and read the whole reply."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as sock:
            sock.sendall(raw)
            sock.shutdown(socket.SHUT_WR)
            return recv_all(sock)


def recv_all(sock: socket.socket) -> bytes:
    """Read until the peer closes."""
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A server on an OS-assigned port, serving the web_root fixture."""
    srv = RunningServer(HTTPServer(config))
    srv.start()

    yield srv

    srv.stop()
