class FileCloudError(Exception):
    """Base class for errors raised by the storage core."""


class ObjectMissingError(FileCloudError):
    """No stored object matches the requested token or key."""


class InvalidKeyError(FileCloudError):
    """A stored object's key does not have the ``<hash>/<name>`` shape."""


class BackingStoreError(FileCloudError):
    """The object store failed, timed out or rejected the request."""


class StreamReadError(FileCloudError):
    """Uploaded content could not be read to the end."""
