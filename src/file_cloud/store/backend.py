"""Object store capability used by the directory.

``BackingStore`` is the narrow interface the directory talks to. The production
variant wraps the ``minio`` S3 client and works against AWS S3 or any
S3-compatible endpoint; tests substitute an in-memory fake.
"""

from __future__ import annotations

from datetime import timedelta
import itertools
from typing import BinaryIO, Protocol, runtime_checkable

from minio import Minio
from minio.error import MinioException, S3Error
import urllib3

from file_cloud.store.errors import BackingStoreError, ObjectMissingError
from file_cloud.store.models import ObjectMetadata
from file_cloud.utils import logging

logger = logging.get_logger(__name__)

MISSING_CODES = frozenset({"NoSuchKey", "NotFound", "NoSuchObject"})


@runtime_checkable
class BackingStore(Protocol):
    def put(self, key: str, content_type: str, stream: BinaryIO, length: int) -> None: ...

    def list_by_prefix(self, prefix: str, max_results: int = 1) -> list[str]: ...

    def get_metadata(self, key: str) -> ObjectMetadata: ...

    def signed_get_url(self, key: str, ttl: timedelta) -> str: ...


class MinioBackingStore:
    def __init__(
        self,
        bucket: str,
        *,
        endpoint: str,
        access_key: str,
        secret_key: str,
        region: str | None = None,
        secure: bool = True,
        timeout: float = 30.0,
        client: Minio | None = None,
    ) -> None:
        self.bucket = bucket
        if client is None:
            http_client = urllib3.PoolManager(
                timeout=urllib3.Timeout(connect=timeout, read=timeout),
                retries=urllib3.Retry(total=0, connect=0, read=0, redirect=0),
                maxsize=10,
            )
            client = Minio(
                endpoint=endpoint,
                access_key=access_key,
                secret_key=secret_key,
                secure=secure,
                region=region or None,
                http_client=http_client,
            )
        self.client = client

    def put(self, key: str, content_type: str, stream: BinaryIO, length: int) -> None:
        logger.debug("PUT %s/%s (%s, %d bytes)", self.bucket, key, content_type, length)
        try:
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=key,
                data=stream,
                length=length,
                content_type=content_type,
            )
        except (MinioException, urllib3.exceptions.HTTPError) as exc:
            raise BackingStoreError(f"Could not write {key!r}: {exc}") from exc

    def list_by_prefix(self, prefix: str, max_results: int = 1) -> list[str]:
        try:
            objects = self.client.list_objects(bucket_name=self.bucket, prefix=prefix, recursive=True)
            return [obj.object_name for obj in itertools.islice(objects, max_results)]
        except (MinioException, urllib3.exceptions.HTTPError) as exc:
            raise BackingStoreError(f"Could not list objects under {prefix!r}: {exc}") from exc

    def get_metadata(self, key: str) -> ObjectMetadata:
        try:
            stat = self.client.stat_object(bucket_name=self.bucket, object_name=key)
        except S3Error as exc:
            if exc.code in MISSING_CODES:
                raise ObjectMissingError(f"Could not find object {key!r}") from exc
            raise BackingStoreError(f"Could not read metadata for {key!r}: {exc}") from exc
        except (MinioException, urllib3.exceptions.HTTPError) as exc:
            raise BackingStoreError(f"Could not read metadata for {key!r}: {exc}") from exc
        return ObjectMetadata(content_type=stat.content_type or "")

    def signed_get_url(self, key: str, ttl: timedelta) -> str:
        try:
            return self.client.presigned_get_object(bucket_name=self.bucket, object_name=key, expires=ttl)
        except (MinioException, urllib3.exceptions.HTTPError) as exc:
            raise BackingStoreError(f"Could not sign URL for {key!r}: {exc}") from exc
