"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webcache import ServerConfig, WebCacheServer
from webcache.cache import load_content, load_error_pages
from webcache.handlers import CacheDispatcher


ROOT_INDEX = b"<html><body>home</body></html>"
BLOG_INDEX = b"<html><body>blog</body></html>"
STYLE_CSS = b"body { margin: 0; }"
LOGO_PNG = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
README = b"plain file without extension"
CUSTOM_404 = b"<html><body>custom not found</body></html>"


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """
    A small site:

        serve/index.html
        serve/style.css
        serve/README
        serve/blog/index.html
        serve/blog/logo.png
    """
    root = tmp_path / "serve"
    (root / "blog").mkdir(parents=True)
    (root / "index.html").write_bytes(ROOT_INDEX)
    (root / "style.css").write_bytes(STYLE_CSS)
    (root / "README").write_bytes(README)
    (root / "blog" / "index.html").write_bytes(BLOG_INDEX)
    (root / "blog" / "logo.png").write_bytes(LOGO_PNG)
    return root


@pytest.fixture
def error_dir(tmp_path: Path) -> Path:
    """Custom error pages: a 404 page and a non-numeric one that is skipped."""
    root = tmp_path / "error"
    root.mkdir()
    (root / "404.html").write_bytes(CUSTOM_404)
    (root / "oops.html").write_bytes(b"never served")
    return root


@pytest.fixture
def dispatcher(content_dir: Path) -> CacheDispatcher:
    """Dispatcher with content and no custom error pages."""
    return CacheDispatcher(load_content(content_dir))


@pytest.fixture
def dispatcher_with_errors(content_dir: Path, error_dir: Path) -> CacheDispatcher:
    """Dispatcher with content and the custom 404 page."""
    return CacheDispatcher(load_content(content_dir), load_error_pages(error_dir))


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /blog/index.html?ref=home HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
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
    """Runs a WebCacheServer in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: WebCacheServer, port: int):
        self.server = server
        self.port = port
        self._thread: threading.Thread = None

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes) -> bytes:
        """Send one raw request on a new connection and read until close."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def get(self, path: str, method: str = "GET") -> tuple[int, dict, bytes]:
        """Send a request with Connection: close; return (status, headers, body)."""
        raw = self.request(
            f"{method} {path} HTTP/1.1\r\n"
            f"Host: 127.0.0.1:{self.port}\r\n"
            f"Connection: close\r\n\r\n".encode()
        )
        head, _, body = raw.partition(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n")
        status = int(lines[0].split(" ")[1])
        headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            headers[name.strip().lower()] = value.strip()
        return status, headers, body


@pytest.fixture
def test_server(
    free_port: int, content_dir: Path, error_dir: Path
) -> Generator[TestServer, None, None]:
    """A running server on a free port over the sample site."""
    server = WebCacheServer(ServerConfig(
        host="127.0.0.1",
        port=free_port,
        workers=2,
        content_dir=str(content_dir),
        error_dir=str(error_dir),
        keep_alive_timeout=1.0,
        log_level="WARNING",
    ))

    test_srv = TestServer(server, free_port)
    test_srv.start()

    yield test_srv

    test_srv.stop()
