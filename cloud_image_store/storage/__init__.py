"""Object store backends for image persistence."""

from .base import (
    ArgumentErrors,
    CredentialSecurityError,
    ImageCodecError,
    InvalidArgumentError,
    ObjectNotFoundError,
    ObjectStore,
    StorageError,
    StorageIOError,
)
from .gcs import GCSObjectStore
from .memory import InMemoryObjectStore

__all__ = [
    "ArgumentErrors",
    "CredentialSecurityError",
    "GCSObjectStore",
    "ImageCodecError",
    "InMemoryObjectStore",
    "InvalidArgumentError",
    "ObjectNotFoundError",
    "ObjectStore",
    "StorageError",
    "StorageIOError",
]
