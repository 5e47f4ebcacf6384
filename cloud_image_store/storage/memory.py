"""In-memory implementation of ObjectStore."""
import logging
import threading
from typing import BinaryIO

from .base import ObjectNotFoundError, ObjectStore

logger = logging.getLogger(__name__)


class InMemoryObjectStore(ObjectStore):
    """In-memory object store.

    This implementation keeps objects in a dictionary keyed by
    ``(bucket, key)``. Data is not persisted and will be lost when the
    process exits. Suitable for local development and testing without
    Google Cloud credentials.

    Like the remote service, ``insert`` overwrites an existing object.
    """

    def __init__(self):
        """Initialize the in-memory store."""
        self._objects: dict[tuple[str, str], tuple[str, bytes]] = {}
        self._lock = threading.Lock()
        logger.info("Initialized InMemoryObjectStore")

    def insert(self, bucket: str, key: str, content_type: str, data: bytes) -> None:
        with self._lock:
            self._objects[(bucket, key)] = (content_type, bytes(data))
        logger.debug(f"Stored gs://{bucket}/{key} ({content_type}, {len(data)} bytes)")

    def get(self, bucket: str, key: str) -> bytes:
        with self._lock:
            entry = self._objects.get((bucket, key))
        if entry is None:
            raise ObjectNotFoundError(bucket, key)
        return entry[1]

    def download_to(self, bucket: str, key: str, fileobj: BinaryIO) -> None:
        fileobj.write(self.get(bucket, key))

    def delete(self, bucket: str, key: str) -> None:
        with self._lock:
            if (bucket, key) not in self._objects:
                raise ObjectNotFoundError(bucket, key)
            del self._objects[(bucket, key)]
        logger.debug(f"Deleted gs://{bucket}/{key}")

    def content_type(self, bucket: str, key: str) -> str:
        """Get the content type stored with an object.

        Raises:
            ObjectNotFoundError: If the object does not exist.
        """
        with self._lock:
            entry = self._objects.get((bucket, key))
        if entry is None:
            raise ObjectNotFoundError(bucket, key)
        return entry[0]

    def exists(self, bucket: str, key: str) -> bool:
        with self._lock:
            return (bucket, key) in self._objects

    def count(self) -> int:
        """Get the total number of stored objects."""
        with self._lock:
            return len(self._objects)

    def clear(self) -> None:
        """Clear all objects.

        This is mainly useful for testing purposes.
        """
        with self._lock:
            self._objects.clear()
        logger.debug("Cleared all objects from store")
