"""Image storage on Google Cloud Storage."""

from .client import ClientRegistry, StorageClientHandle, setup_client
from .credentials import Credential, CredentialBuilder, CredentialScope
from .crud import (
    NotFoundPolicy,
    delete_image,
    insert_image,
    object_path,
    read_image,
    replace_image,
)
from .media import ImageFormat, compression_id_for, mime_type_for
from .resources import DirectoryResourceContext, InMemoryResourceContext, ResourceContext
from .storage import (
    CredentialSecurityError,
    ImageCodecError,
    InvalidArgumentError,
    ObjectNotFoundError,
    StorageError,
    StorageIOError,
)

__all__ = [
    "ClientRegistry",
    "Credential",
    "CredentialBuilder",
    "CredentialScope",
    "CredentialSecurityError",
    "DirectoryResourceContext",
    "ImageCodecError",
    "ImageFormat",
    "InMemoryResourceContext",
    "InvalidArgumentError",
    "NotFoundPolicy",
    "ObjectNotFoundError",
    "ResourceContext",
    "StorageClientHandle",
    "StorageError",
    "StorageIOError",
    "compression_id_for",
    "delete_image",
    "insert_image",
    "mime_type_for",
    "object_path",
    "read_image",
    "replace_image",
    "setup_client",
]
