import io
import threading
from collections import Counter
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from grabber_components.state import SessionFactory
from grabber_components.ui import TerminalUI


class LocalSite:
    """Tiny in-process web server with routes registered per test."""

    def __init__(self):
        self.routes: dict[str, tuple[int, bytes, dict[str, str]]] = {}
        self.hits: Counter = Counter()
        self.lock = threading.Lock()
        site = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self):
                with site.lock:
                    site.hits[self.path] += 1
                status, body, headers = site.routes.get(self.path, (404, b"not found", {}))
                self.send_response(status)
                for key, value in headers.items():
                    self.send_header(key, value)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format, *args):
                pass

        self.server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    @property
    def base(self) -> str:
        host, port = self.server.server_address[:2]
        return f"http://{host}:{port}"

    def url(self, path: str) -> str:
        return self.base + path

    def add(self, path: str, body, status: int = 200, headers=None) -> str:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[path] = (status, body, dict(headers or {}))
        return self.url(path)

    def redirect(self, path: str, location: str) -> str:
        return self.add(path, b"", status=302, headers={"Location": location})


@pytest.fixture
def site():
    local = LocalSite()
    local.thread.start()
    try:
        yield local
    finally:
        local.server.shutdown()
        local.server.server_close()


@pytest.fixture
def ui():
    return TerminalUI(pretty=False, stream=io.StringIO())


@pytest.fixture
def sessions():
    factory = SessionFactory()
    yield factory
    factory.close()
