"""Shared fixtures.

``FakeBackingStore`` implements the ``BackingStore`` protocol in memory and
counts every call so tests can assert which store operations a request hit.
"""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
import time
from typing import BinaryIO
from urllib.parse import quote

import pytest

from file_cloud.config import Settings
from file_cloud.store.errors import ObjectMissingError
from file_cloud.store.models import ObjectMetadata


class FakeBackingStore:
    def __init__(self) -> None:
        self.objects: dict[str, tuple[str, bytes]] = {}
        self.calls: Counter[str] = Counter()
        self.failures: dict[str, Exception] = {}
        self.delay = 0.0

    def add(self, key: str, content_type: str, data: bytes = b"") -> None:
        self.objects[key] = (content_type, data)

    def _enter(self, name: str) -> None:
        self.calls[name] += 1
        if self.delay:
            time.sleep(self.delay)
        if name in self.failures:
            raise self.failures[name]

    def put(self, key: str, content_type: str, stream: BinaryIO, length: int) -> None:
        self._enter("put")
        self.objects[key] = (content_type, stream.read(length))

    def list_by_prefix(self, prefix: str, max_results: int = 1) -> list[str]:
        self._enter("list_by_prefix")
        return sorted(key for key in self.objects if key.startswith(prefix))[:max_results]

    def get_metadata(self, key: str) -> ObjectMetadata:
        self._enter("get_metadata")
        if key not in self.objects:
            raise ObjectMissingError(f"Could not find object {key!r}")
        return ObjectMetadata(content_type=self.objects[key][0])

    def signed_get_url(self, key: str, ttl: timedelta) -> str:
        self._enter("signed_get_url")
        return f"https://signed.example.com/{quote(key)}?expires={int(ttl.total_seconds())}"


@pytest.fixture
def store() -> FakeBackingStore:
    return FakeBackingStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(bucket="test-bucket", key="ABC123", secret="ABC/123")


@pytest.fixture(scope="session")
def shared_store() -> FakeBackingStore:
    """One store for every test in the session, for fixtures that outlive a single test."""
    return FakeBackingStore()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
