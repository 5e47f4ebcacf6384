"""Google Cloud Storage implementation of ObjectStore."""
import logging
from typing import Any, BinaryIO

import requests
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage as gcs_lib
from google.cloud.storage import exceptions as storage_exceptions

from .base import ObjectNotFoundError, ObjectStore, StorageIOError

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (
    api_exceptions.GoogleAPIError,
    auth_exceptions.GoogleAuthError,
    storage_exceptions.DataCorruption,
    storage_exceptions.InvalidResponse,
    requests.RequestException,
    OSError,
)


class GCSObjectStore(ObjectStore):
    """Object store backed by a ``google.cloud.storage.Client``.

    Each call is a single attempt: ``retry=None`` disables the library's
    built-in retry policy so transient failures reach the caller
    immediately.

    Missing objects on read and delete surface as ``ObjectNotFoundError``;
    every other failure from the API, the auth layer, the HTTP transport
    or download integrity checks surfaces as ``StorageIOError``.
    """

    def __init__(self, client: gcs_lib.Client, json_codec: Any):
        """Initialize the store.

        Args:
            client: Authenticated storage client.
            json_codec: Codec exposing ``dumps``, used to render structured
                API error details.
        """
        self._client = client
        self._json = json_codec

    @property
    def client(self) -> gcs_lib.Client:
        return self._client

    def _blob(self, bucket: str, key: str) -> gcs_lib.Blob:
        return self._client.bucket(bucket).blob(key)

    def _describe(self, error: Exception) -> str:
        details = getattr(error, "errors", None)
        if details:
            return f"{error} {self._json.dumps(details)}"
        return str(error)

    def _failure(self, action: str, bucket: str, key: str, error: Exception) -> StorageIOError:
        # An upload has no object to miss; a 404 there means the bucket is gone
        if action != "insert" and isinstance(error, api_exceptions.NotFound):
            logger.warning(f"Cloud object gs://{bucket}/{key} not found during {action}")
            return ObjectNotFoundError(bucket, key)
        message = self._describe(error)
        logger.error(f"Failed to {action} gs://{bucket}/{key}: {message}")
        return StorageIOError(f"Failed to {action} gs://{bucket}/{key}: {message}")

    def insert(self, bucket: str, key: str, content_type: str, data: bytes) -> None:
        blob = self._blob(bucket, key)
        try:
            blob.upload_from_string(data, content_type=content_type, retry=None)
        except TRANSPORT_ERRORS as e:
            raise self._failure("insert", bucket, key, e) from e
        logger.debug(f"Executed upload of gs://{bucket}/{key}")

    def get(self, bucket: str, key: str) -> bytes:
        blob = self._blob(bucket, key)
        try:
            return blob.download_as_bytes(retry=None)
        except TRANSPORT_ERRORS as e:
            raise self._failure("read", bucket, key, e) from e

    def download_to(self, bucket: str, key: str, fileobj: BinaryIO) -> None:
        blob = self._blob(bucket, key)
        try:
            self._client.download_blob_to_file(blob, fileobj, retry=None)
        except TRANSPORT_ERRORS as e:
            raise self._failure("read", bucket, key, e) from e
        logger.debug(f"Finished reading gs://{bucket}/{key}")

    def delete(self, bucket: str, key: str) -> None:
        blob = self._blob(bucket, key)
        try:
            blob.delete(retry=None)
        except TRANSPORT_ERRORS as e:
            raise self._failure("delete", bucket, key, e) from e
        logger.debug(f"Executed deletion of gs://{bucket}/{key}")
