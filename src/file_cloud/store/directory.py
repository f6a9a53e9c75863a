from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import timedelta
import io
from typing import BinaryIO, TypeVar
from urllib.parse import quote_plus

from file_cloud.store.addressing import compute_key, public_token, split_key
from file_cloud.store.backend import BackingStore
from file_cloud.store.cache import LRUCache
from file_cloud.store.errors import BackingStoreError, InvalidKeyError, ObjectMissingError
from file_cloud.store.models import ResolvedFile, StoredObject
from file_cloud.utils import logging

T = TypeVar("T")

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ObjectDirectory:
    """Maps short public tokens to objects held in a backing store.

    Uploads are deduplicated on the full ``<hash>/<name>`` key. Lookups resolve a
    token with a single-result prefix search; when a CDN is configured the
    resolved files are kept in a small LRU cache. Signed URLs expire, so nothing
    is cached without a CDN.
    """

    def __init__(
        self,
        backend: BackingStore,
        *,
        cdn: str = "",
        token_length: int = 5,
        cache_size: int = 128,
        timeout: float = 30.0,
        signed_url_ttl: timedelta = timedelta(minutes=15),
    ) -> None:
        self.backend = backend
        self.cdn = cdn.rstrip("/")
        self.token_length = token_length
        self.timeout = timeout
        self.signed_url_ttl = signed_url_ttl
        self.cache: LRUCache[str, ResolvedFile] | None = LRUCache(cache_size) if self.cdn else None
        self.logger = logging.get_logger(__name__)

    async def _call(self, func: Callable[..., T], *args: object) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            name = getattr(func, "__name__", repr(func))
            raise BackingStoreError(f"Object store call {name} timed out after {self.timeout}s") from exc

    async def upload(self, original_name: str, content_type: str | None, stream: BinaryIO) -> str:
        key = await asyncio.to_thread(compute_key, original_name, stream)
        token = public_token(key, self.token_length)

        if await self.exists(key):
            self.logger.info("File with key %s already uploaded", key)
            return token

        length = stream.seek(0, io.SEEK_END)
        stream.seek(0)
        content_type = content_type or DEFAULT_CONTENT_TYPE
        self.logger.info("Uploading file as %s with key %s", content_type, key)
        await self._call(self.backend.put, key, content_type, stream, length)
        return token

    async def exists(self, key: str) -> bool:
        keys = await self._call(self.backend.list_by_prefix, key, 1)
        return bool(keys) and keys[0] == key

    async def lookup(self, token: str) -> ResolvedFile:
        if self.cache is not None:
            cached = self.cache.get(token)
            if cached is not None:
                self.logger.debug("Cache hit for %s", token)
                return cached

        keys = await self._call(self.backend.list_by_prefix, token, 1)
        if not keys:
            raise ObjectMissingError(f"Could not find object for {token!r}")
        key = keys[0]

        try:
            _, original_name = split_key(key)
        except InvalidKeyError:
            self.logger.error("Stored object %r does not follow the <hash>/<name> layout", key)
            raise

        metadata = await self._call(self.backend.get_metadata, key)
        stored = StoredObject(key=key, content_type=metadata.content_type)

        if self.cdn:
            # keys may hold characters that are unsafe in a URL
            url = f"{self.cdn}/{quote_plus(stored.key)}"
        else:
            url = await self._call(self.backend.signed_get_url, key, self.signed_url_ttl)

        resolved = ResolvedFile(original_name=original_name, url=url, is_image=stored.is_image)
        if self.cache is not None:
            self.cache.set(token, resolved)
        return resolved
