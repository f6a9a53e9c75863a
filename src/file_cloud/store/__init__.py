"""Content-addressed storage core.

- `compute_key`: derives the ``<hash>/<name>`` storage key from file content.
- `ObjectDirectory`: upload with dedup, token lookup, URL resolution and caching.
- `MinioBackingStore`: the S3-compatible object store behind the directory.
"""

from file_cloud.store.addressing import compute_key
from file_cloud.store.backend import BackingStore, MinioBackingStore
from file_cloud.store.directory import ObjectDirectory
from file_cloud.store.errors import (
    BackingStoreError,
    FileCloudError,
    InvalidKeyError,
    ObjectMissingError,
    StreamReadError,
)
from file_cloud.store.models import ResolvedFile

__all__ = [
    "BackingStore",
    "BackingStoreError",
    "FileCloudError",
    "InvalidKeyError",
    "MinioBackingStore",
    "ObjectDirectory",
    "ObjectMissingError",
    "ResolvedFile",
    "StreamReadError",
    "compute_key",
]
