"""Object store interface and storage error types."""

from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class ObjectStore(Protocol):
    """Abstract interface for a bucket-scoped remote object store.

    This is the minimal contract the CRUD layer needs from the remote
    service: one namespace of opaque byte objects per bucket, keyed by
    string. Implementations can use Google Cloud Storage, an in-memory
    dictionary, etc.
    """

    def insert(self, bucket: str, key: str, content_type: str, data: bytes) -> None:
        """Create (or overwrite) the object ``key`` in ``bucket``.

        Args:
            bucket: Target bucket name.
            key: Object key within the bucket.
            content_type: MIME type stored with the object.
            data: Object payload.

        Raises:
            StorageIOError: If the remote call fails.
        """
        ...

    def get(self, bucket: str, key: str) -> bytes:
        """Return the payload of the object ``key`` in ``bucket``.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageIOError: If the remote call fails.
        """
        ...

    def download_to(self, bucket: str, key: str, fileobj: BinaryIO) -> None:
        """Stream the payload of the object ``key`` into ``fileobj``.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageIOError: If the remote call fails.
        """
        ...

    def delete(self, bucket: str, key: str) -> None:
        """Delete the object ``key`` from ``bucket``.

        Raises:
            ObjectNotFoundError: If the remote service reports a missing object.
            StorageIOError: If the remote call fails.
        """
        ...


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class InvalidArgumentError(StorageError, ValueError):
    """Raised when caller-supplied parameters violate a precondition.

    The message lists every violated precondition, one per line.
    """
    pass


class StorageIOError(StorageError):
    """Raised when a transport-level operation fails."""
    pass


class ObjectNotFoundError(StorageIOError):
    """Raised when the requested object does not exist."""

    def __init__(self, bucket: str, key: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object not found: gs://{bucket}/{key}")


class CredentialSecurityError(StorageError):
    """Raised when credential material is invalid or unusable."""
    pass


class ImageCodecError(StorageError):
    """Raised when an image cannot be encoded or decoded."""
    pass


class ArgumentErrors:
    """Collects precondition violations and raises them together.

    Example:
        errors = ArgumentErrors()
        errors.check(handle is not None, "Given handle was None!")
        errors.check(bool(key), "Given key was None or empty!")
        errors.raise_if_any()
    """

    HEADER = "Error!"

    def __init__(self) -> None:
        self._messages: list[str] = []

    def check(self, condition: bool, message: str) -> None:
        if not condition:
            self._messages.append(message)

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    def raise_if_any(self) -> None:
        if self._messages:
            raise InvalidArgumentError(
                "\n".join([self.HEADER, *self._messages]) + "\n"
            )
