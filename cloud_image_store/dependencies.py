"""Settings-driven construction of the credential and storage handle."""

import logging

from cloud_image_store.client import StorageClientHandle
from cloud_image_store.credentials import Credential, CredentialBuilder
from cloud_image_store.crud import NotFoundPolicy
from cloud_image_store.resources import DirectoryResourceContext
from cloud_image_store.storage.memory import InMemoryObjectStore
from config import get_settings

logger = logging.getLogger(__name__)

LOCAL_BUCKET = "local"

# Global credential, built once from settings
_credential: Credential | None = None

# Global handle for the in-memory backend
_memory_handle: StorageClientHandle | None = None


def get_credential() -> Credential:
    """Get the credential described by the GCS_* settings.

    The credential is built on first use and reused afterwards.

    Returns:
        Credential: The process credential.

    Raises:
        InvalidArgumentError: If the account id or key file is missing.
        StorageIOError: If the key file cannot be read.
        CredentialSecurityError: If the key is unusable.
    """
    global _credential

    if _credential is None:
        settings = get_settings()
        builder = CredentialBuilder.setup(
            DirectoryResourceContext(settings.gcs_key_dir),
            settings.gcs_key_name,
            settings.gcs_account_id,
        ).with_scope(settings.gcs_scope)
        if settings.gcs_project:
            builder = builder.with_project(settings.gcs_project)
        _credential = builder.build()
        logger.info(f"Loaded credential from {settings.gcs_key_path}")

    return _credential


def get_storage_handle() -> StorageClientHandle:
    """Get the storage handle for the configured backend.

    This function returns the correct handle based on the STORAGE_TYPE
    environment variable:
    - "gcs": Process-wide handle for GCS_BUCKET, built from the settings credential
    - "memory": In-memory store (data lost on restart)

    Returns:
        StorageClientHandle: The configured handle
    """
    global _memory_handle
    settings = get_settings()

    if settings.storage_type == "gcs":
        return StorageClientHandle.build(settings.gcs_bucket, get_credential())

    if _memory_handle is None:
        _memory_handle = StorageClientHandle(
            bucket_name=settings.gcs_bucket or LOCAL_BUCKET,
            client=InMemoryObjectStore(),
        )
        logger.info(f"Created in-memory storage handle for bucket {_memory_handle.bucket_name}")
    return _memory_handle


def get_not_found_policy() -> NotFoundPolicy:
    """Get the configured policy for reads of missing objects."""
    return NotFoundPolicy(get_settings().not_found_policy)


def reset() -> None:
    """Forget the cached credential and in-memory handle.

    This is mainly useful for testing purposes.
    """
    global _credential, _memory_handle
    _credential = None
    _memory_handle = None
