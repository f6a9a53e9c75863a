"""Integration test fixtures.

Starts a file-cloud server with uvicorn on a free port, backed by the
in-memory store, and provides an ``httpx.Client`` pointing at it.
"""

from __future__ import annotations

from collections.abc import Generator
import socket
import threading
import time

import httpx
import pytest
import uvicorn

from file_cloud.config import Settings
from file_cloud.server import create_app
from file_cloud.store import ObjectDirectory

CDN = "https://cdn.example.com"


def _free_port() -> int:
    """Find a free TCP port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _wait_for_server(url: str, timeout: float = 30.0, interval: float = 0.1) -> None:
    """Block until *url* returns a 200 response or *timeout* is reached."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=3)
            if r.status_code == 200:
                return
        except (httpx.ConnectError, httpx.ReadError, httpx.TimeoutException):
            pass
        time.sleep(interval)
    raise TimeoutError(f"Server at {url} did not become ready within {timeout}s")


@pytest.fixture(scope="session")
def server_url(shared_store) -> Generator[str, None, None]:
    """Start the server in a background thread and yield its base URL."""
    port = _free_port()
    url = f"http://127.0.0.1:{port}"

    settings = Settings(bucket="test-bucket", key="ABC123", secret="ABC/123", cdn=CDN)
    app = create_app(ObjectDirectory(shared_store, cdn=settings.cdn), settings)
    server = uvicorn.Server(uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning"))

    t = threading.Thread(target=server.run, daemon=True)
    t.start()

    try:
        _wait_for_server(f"{url}/ping")
        yield url
    finally:
        server.should_exit = True
        t.join(timeout=10)


@pytest.fixture(scope="session")
def client(server_url: str) -> Generator[httpx.Client, None, None]:
    """Return an ``httpx.Client`` connected to the running test server."""
    with httpx.Client(base_url=server_url, follow_redirects=False) as client:
        yield client
