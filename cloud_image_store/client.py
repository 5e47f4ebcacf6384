"""Bucket-bound storage client handle and the registry that caches it."""
import json
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from google.api_core.client_info import ClientInfo
from google.auth.transport.requests import AuthorizedSession, Request
from google.cloud import storage as gcs_lib

from cloud_image_store.credentials import Credential
from cloud_image_store.storage.base import ArgumentErrors, ObjectStore
from cloud_image_store.storage.gcs import GCSObjectStore

logger = logging.getLogger(__name__)

APPLICATION_NAME = "cloud-image-store"

ClientFactory = Callable[[str, Credential], ObjectStore]


@dataclass(frozen=True, eq=False)
class StorageClientHandle:
    """A bucket name paired with the object store used to reach it.

    Handles are never mutated. Obtain one through ``StorageClientHandle.build``
    (process-wide registry) or ``ClientRegistry.get_or_build`` (caller-owned
    registry).
    """

    bucket_name: str
    client: ObjectStore

    @classmethod
    def build(cls, bucket_name: str, credential: Credential) -> "StorageClientHandle":
        """Get the process-wide handle for ``bucket_name``.

        If the current handle targets the same bucket it is returned as-is
        and ``credential`` is ignored. If it targets another bucket it is
        replaced by a new handle built from ``credential``.

        Raises:
            InvalidArgumentError: If bucket_name is empty or credential is None.
        """
        return default_registry.get_or_build(bucket_name, credential)


def setup_client(bucket_name: str, credential: Credential) -> ObjectStore:
    """Create an authenticated GCS object store from a credential.

    The credential's transport and JSON codec are used when present;
    otherwise a fresh ``requests.Session`` and the ``json`` module are used.

    Args:
        bucket_name: Bucket the client is created for, used in the user agent.
        credential: Credential carrying the service account identity.

    Returns:
        ObjectStore: A ``GCSObjectStore`` over an authorized session.
    """
    if credential.transport is not None:
        transport = credential.transport
    else:
        transport = requests.Session()
        logger.debug("Credential has no transport, using requests.Session")

    if credential.json_codec is not None:
        json_codec = credential.json_codec
    else:
        json_codec = json
        logger.debug("Credential has no JSON codec, using json")

    session = AuthorizedSession(
        credential.google_credentials,
        auth_request=Request(session=transport),
    )
    for prefix, adapter in transport.adapters.items():
        session.mount(prefix, adapter)

    client = gcs_lib.Client(
        project=credential.project_id,
        credentials=credential.google_credentials,
        _http=session,
        client_info=ClientInfo(user_agent=f"{APPLICATION_NAME}/{bucket_name}"),
    )
    logger.debug(f"Created storage client for bucket {bucket_name}")
    return GCSObjectStore(client, json_codec)


class ClientRegistry:
    """Holds at most one live ``StorageClientHandle``.

    A request for the cached bucket returns the cached handle. A request
    for any other bucket replaces it. Creation and replacement happen
    under a lock, so concurrent first-time callers all receive the same
    handle.
    """

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        """Initialize the registry.

        Args:
            client_factory: Builds the object store for a new handle.
                Defaults to ``setup_client``.
        """
        self._client_factory = client_factory
        self._handle: Optional[StorageClientHandle] = None
        self._lock = threading.Lock()

    def current(self) -> Optional[StorageClientHandle]:
        """Get the cached handle, if any."""
        return self._handle

    def get_or_build(self, bucket_name: str, credential: Credential) -> StorageClientHandle:
        """Get the handle for ``bucket_name``, building or replacing as needed.

        Args:
            bucket_name: Target bucket.
            credential: Used only when a new handle has to be built.

        Returns:
            StorageClientHandle: The live handle for ``bucket_name``.

        Raises:
            InvalidArgumentError: If bucket_name is empty or credential is None.
        """
        errors = ArgumentErrors()
        errors.check(bool(bucket_name), "Given bucket_name was None or empty!")
        errors.check(credential is not None, "Given credential was None!")
        errors.raise_if_any()

        handle = self._handle
        if handle is not None and handle.bucket_name == bucket_name:
            return handle

        with self._lock:
            handle = self._handle
            if handle is None or handle.bucket_name != bucket_name:
                new_handle = StorageClientHandle(
                    bucket_name=bucket_name,
                    client=(self._client_factory or setup_client)(bucket_name, credential),
                )
                if handle is None:
                    logger.info(f"Created storage client handle for bucket {bucket_name}")
                else:
                    logger.info(
                        f"Replaced storage client handle for bucket {handle.bucket_name} "
                        f"with bucket {bucket_name}"
                    )
                self._handle = new_handle
            return self._handle

    def clear(self) -> None:
        """Drop the cached handle."""
        with self._lock:
            self._handle = None


default_registry = ClientRegistry()
