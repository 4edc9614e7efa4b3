"""
Integration tests: a real server on a real port.
"""

import socket
import threading
import time
from pathlib import Path

import pytest

from staticserver import HTTPServer, ServerConfig


class TestServing:
    """End-to-end requests against the running_server fixture."""

    def test_get_index(self, running_server, web_root: Path):
        response = running_server.request(b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")

        head, _, body = response.partition(b"\r\n\r\n")
        assert head.startswith(b"HTTP/1.1 200\r\n")
        assert b"Content-Type: text/html" in head
        assert head.endswith(b"Server: PY-SIMPLE-HTTP-SERVER")
        assert body == (web_root / "index.html").read_bytes()

    def test_get_css(self, running_server, web_root: Path):
        response = running_server.request(b"GET /style.css HTTP/1.1\r\n\r\n")

        assert b"Content-Type: text/css\r\n" in response
        assert response.endswith((web_root / "style.css").read_bytes())

    def test_not_found(self, running_server):
        response = running_server.request(b"GET /missing.html HTTP/1.1\r\n\r\n")

        assert response.startswith(b"HTTP/1.1 404\r\n")
        assert response.endswith(b"404 NOT FOUND")

    def test_post_not_allowed(self, running_server):
        response = running_server.request(b"POST /index.html HTTP/1.1\r\n\r\n")

        assert response.startswith(b"HTTP/1.1 405\r\n")
        assert response.endswith(b"405 Method Not Allowed")

    def test_bad_version(self, running_server):
        response = running_server.request(b"GET / HTTP/1.0\r\n\r\n")

        assert response == b"HTTP/1.1 400\r\nServer: PY-SIMPLE-HTTP-SERVER\r\n\r\n"

    def test_traversal_not_served(self, running_server):
        response = running_server.request(b"GET /../../etc/passwd HTTP/1.1\r\n\r\n")

        assert response.startswith(b"HTTP/1.1 404\r\n")

    def test_connection_closed_after_response(self, running_server):
        with socket.create_connection(("127.0.0.1", running_server.port), timeout=5.0) as sock:
            # No half-close: the server must close on its own
            sock.sendall(b"GET /style.css HTTP/1.1\r\n\r\n")
            data = b""
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                data += chunk

        assert data.count(b"HTTP/1.1 200") == 1

    def test_large_file(self, running_server, web_root: Path):
        payload = bytes(range(256)) * 4096  # 1 MiB
        (web_root / "big.bin").write_bytes(payload)

        response = running_server.request(b"GET /big.bin HTTP/1.1\r\n\r\n")

        head, _, body = response.partition(b"\r\n\r\n")
        assert f"Content-Length: {len(payload)}".encode() in head
        assert body == payload

    def test_concurrent_clients(self, running_server):
        results = []
        lock = threading.Lock()

        def client():
            response = running_server.request(b"GET /docs/notes.txt HTTP/1.1\r\n\r\n")
            with lock:
                results.append(response)

        threads = [threading.Thread(target=client) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert len(results) == 10
        assert all(r.endswith(b"some notes") for r in results)


class TestLifecycle:
    """Startup and shutdown behavior."""

    def test_port_zero_gets_real_port(self, running_server):
        assert running_server.port != 0

    def test_binds_requested_port(self, config: ServerConfig, free_port: int):
        server = HTTPServer(config)
        thread = threading.Thread(target=server.run, kwargs={"port": free_port}, daemon=True)
        thread.start()

        try:
            assert server.wait_until_ready(5.0)
            assert server.address[1] == free_port
        finally:
            server.shutdown()
            thread.join(timeout=10.0)

        assert not thread.is_alive()

    def test_shutdown_stops_accepting(self, config: ServerConfig):
        server = HTTPServer(config)
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        assert server.wait_until_ready(5.0)
        port = server.address[1]

        server.shutdown()
        thread.join(timeout=10.0)

        assert not thread.is_alive()
        time.sleep(0.1)
        with pytest.raises(OSError):
            socket.create_connection(("127.0.0.1", port), timeout=1.0).close()

    def test_invalid_config_never_binds(self, tmp_path: Path):
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(root_dir=str(tmp_path / "missing")))

    def test_address_in_use(self, config: ServerConfig):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            server = HTTPServer(config)
            with pytest.raises(OSError):
                server.run(port=port)
