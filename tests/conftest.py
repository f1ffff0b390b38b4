"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import HTTPServer, ServerConfig
from staticserver.http import HTTPRequest
from staticserver.http.request import parse_request


# Deterministic, non-repeating enough that a wrong slice is visible
A_TXT = bytes((i * 7 + i // 256) % 251 for i in range(5000))
APP_JS = b"function hello() {\n  return 'hello world';\n}\n" * 200
IMAGE_PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 8
INDEX_HTML = b"<!DOCTYPE html><html><body><h1>Home</h1></body></html>"
APP_INDEX_HTML = b"<!DOCTYPE html><html><body><h1>App</h1></body></html>"


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A small site:

        site/
        ├── index.html
        ├── a.txt           5000 bytes
        ├── app.js
        ├── image.png
        ├── empty.txt       0 bytes
        ├── app/index.html
        └── docs/           no index file
            ├── b.txt
            ├── c.css
            └── nested/
    """
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "a.txt").write_bytes(A_TXT)
    (root / "app.js").write_bytes(APP_JS)
    (root / "image.png").write_bytes(IMAGE_PNG)
    (root / "empty.txt").write_bytes(b"")

    (root / "app").mkdir()
    (root / "app" / "index.html").write_bytes(APP_INDEX_HTML)

    docs = root / "docs"
    docs.mkdir()
    (docs / "b.txt").write_bytes(b"bee")
    (docs / "c.css").write_bytes(b"body { color: red; }")
    (docs / "nested").mkdir()

    # Something outside the root worth stealing
    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return root


@pytest.fixture
def site_files() -> dict:
    """Expected content of the files in `site_root`, by request path."""
    return {
        "/index.html": INDEX_HTML,
        "/a.txt": A_TXT,
        "/app.js": APP_JS,
        "/image.png": IMAGE_PNG,
        "/empty.txt": b"",
        "/app/index.html": APP_INDEX_HTML,
    }


@pytest.fixture
def make_request()-> Callable[..., HTTPRequest]:
    """
    Build an HTTPRequest the way the server would parse it.

        make_request("/a.txt", Range="bytes=0-9")
    """
    def _make(target: str = "/", method: str = "GET", host: str = "localhost:3000", **headers: str) -> HTTPRequest:
        lines = [f"{method} {target} HTTP/1.1"]
        if host is not None:
            lines.append(f"Host: {host}")
        for name, value in headers.items():
            lines.append(f"{name.replace('_', '-')}: {value}")
        raw = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
        return parse_request(raw, ("127.0.0.1", 50000))

    return _make


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /docs/a%20b.txt?v=2&lang=en HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept-Encoding: gzip, deflate\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class despite the name

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def test_server(site_root: Path) -> Generator[TestServer, None, None]:
    """A server on an OS-assigned port, serving `site_root`."""
    server = HTTPServer(
        ServerConfig(
            host="127.0.0.1",
            port=0,
            root=os.fspath(site_root),
            min_workers=2,
            max_workers=4,
            timeout=5.0,
            keep_alive_timeout=1.0,
            log_level="WARNING",
        ),
        access_log=False,
    )

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
