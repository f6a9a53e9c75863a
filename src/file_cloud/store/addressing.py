"""Content addressing for uploaded files.

Every object is stored under ``<hash>/<original-name>`` where ``<hash>`` is the
SHA-256 digest of the file bytes, base64 encoded with the URL-safe alphabet and
without padding. The public token handed out to clients is a fixed-length
prefix of that hash.
"""

from __future__ import annotations

import base64
import hashlib
from typing import BinaryIO

from file_cloud.store.errors import InvalidKeyError, StreamReadError

CHUNK_SIZE = 64 * 1024
SEPARATOR = "/"


def encode_digest(digest: bytes) -> str:
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def compute_key(original_name: str, stream: BinaryIO) -> str:
    """Hash ``stream`` to the end and build the storage key for ``original_name``.

    The stream is consumed; callers that still need the bytes must rewind it.
    """
    sha256 = hashlib.sha256()
    try:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            sha256.update(chunk)
    except OSError as exc:
        raise StreamReadError(f"Could not read upload {original_name!r}: {exc}") from exc
    return f"{encode_digest(sha256.digest())}{SEPARATOR}{original_name}"


def split_key(key: str) -> tuple[str, str]:
    digest, sep, name = key.partition(SEPARATOR)
    if not sep:
        raise InvalidKeyError(f"Encountered stored object with unexpected key {key!r}")
    return digest, name


def public_token(key: str, length: int) -> str:
    return f"/{key[:length]}"
