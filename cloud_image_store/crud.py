"""Create, read, replace and delete images in cloud storage.

Every operation validates all of its arguments before touching the
network and reports every violated precondition in a single
``InvalidArgumentError``.

Object keys are either flat ids (``"avatar-42"``) or full paths
(``"users/42/avatar.png"``); ``object_path`` builds the latter.
"""
import logging
import tempfile
from enum import Enum
from typing import Optional, Union

from PIL import Image

from cloud_image_store.client import StorageClientHandle
from cloud_image_store.media import ImageFormat, decode_image, encode_image, mime_type_for
from cloud_image_store.storage.base import ArgumentErrors, InvalidArgumentError, ObjectNotFoundError

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"


class NotFoundPolicy(str, Enum):
    """What ``read_image`` does when the object does not exist."""

    RAISE = "raise"
    RETURN_NONE = "return_none"


def _check_handle_and_key(errors: ArgumentErrors, handle, key) -> None:
    errors.check(handle is not None, "Given handle was None!")
    errors.check(bool(key), "Given key was None or empty!")


def object_path(*segments: str) -> str:
    """Join path segments into a full object key.

    Empty segments and stray separators are dropped:
    ``object_path("users/", "42", "avatar.png") == "users/42/avatar.png"``.

    Raises:
        InvalidArgumentError: If no non-empty segment remains.
    """
    parts = [
        part
        for segment in segments
        if segment
        for part in str(segment).split(PATH_SEPARATOR)
        if part
    ]
    if not parts:
        raise InvalidArgumentError("Error!\nGiven path segments were empty!\n")
    return PATH_SEPARATOR.join(parts)


def insert_image(
    handle: StorageClientHandle,
    key: str,
    image: Image.Image,
    format: Union[ImageFormat, str],
) -> bool:
    """Upload an image as object ``key`` in the handle's bucket.

    The image is encoded with the codec for ``format`` and stored with
    content type ``image/<format>``. An existing object with the same key
    is overwritten by the remote service.

    Args:
        handle: Storage client handle.
        key: Object key.
        image: Image to upload.
        format: Encoding format.

    Returns:
        bool: Always True; failures raise.

    Raises:
        InvalidArgumentError: If any argument is missing.
        ImageCodecError: If the image cannot be encoded.
        StorageIOError: If the upload fails.
    """
    errors = ArgumentErrors()
    _check_handle_and_key(errors, handle, key)
    errors.check(image is not None, "Given image was None!")
    errors.check(format is not None, "Given format was None!")
    errors.raise_if_any()

    logger.debug(f"Attempting upload of {key}")
    data = encode_image(image, format)
    content_type = mime_type_for(format)

    handle.client.insert(handle.bucket_name, key, content_type, data)
    logger.info(f"Uploaded gs://{handle.bucket_name}/{key} ({content_type}, {len(data)} bytes)")
    return True


def read_image(
    handle: StorageClientHandle,
    key: str,
    not_found: Union[NotFoundPolicy, str] = NotFoundPolicy.RAISE,
) -> Optional[Image.Image]:
    """Download and decode the image stored as ``key``.

    The object is streamed into a temporary file which is removed on
    every exit path.

    Args:
        handle: Storage client handle.
        key: Object key.
        not_found: ``RAISE`` to raise ``ObjectNotFoundError`` for a missing
            object, ``RETURN_NONE`` to log a warning and return None.

    Returns:
        Optional[Image.Image]: The decoded image, or None for a missing
        object under ``RETURN_NONE``.

    Raises:
        InvalidArgumentError: If any argument is missing or invalid.
        ObjectNotFoundError: If the object does not exist (``RAISE`` only).
        StorageIOError: If the download fails.
        ImageCodecError: If the downloaded bytes are not an image.
    """
    errors = ArgumentErrors()
    _check_handle_and_key(errors, handle, key)
    try:
        policy = NotFoundPolicy(not_found)
    except ValueError:
        policy = None
    errors.check(policy is not None, f"Given not_found policy was invalid: {not_found!r}")
    errors.raise_if_any()

    try:
        with tempfile.TemporaryFile(prefix="downloaded") as temp_file:
            logger.debug(f"Created temporary file for download of {key}")
            handle.client.download_to(handle.bucket_name, key, temp_file)
            temp_file.seek(0)
            image = decode_image(temp_file)
    except ObjectNotFoundError:
        if policy is NotFoundPolicy.RETURN_NONE:
            logger.warning(f"Cloud object gs://{handle.bucket_name}/{key} not found")
            return None
        raise

    logger.debug(f"Read gs://{handle.bucket_name}/{key} ({image.size[0]}x{image.size[1]})")
    return image


def delete_image(handle: StorageClientHandle, key: str) -> bool:
    """Delete the object ``key`` from the handle's bucket.

    Deleting a missing key is left to the remote service, which reports
    it as ``ObjectNotFoundError``.

    Returns:
        bool: Always True; failures raise.

    Raises:
        InvalidArgumentError: If any argument is missing.
        ObjectNotFoundError: If the object does not exist.
        StorageIOError: If the deletion fails.
    """
    errors = ArgumentErrors()
    _check_handle_and_key(errors, handle, key)
    errors.raise_if_any()

    logger.debug(f"Executing deletion of {key}")
    handle.client.delete(handle.bucket_name, key)
    logger.info(f"Deleted gs://{handle.bucket_name}/{key}")
    return True


def replace_image(
    handle: StorageClientHandle,
    key: str,
    new_image: Image.Image,
    format: Union[ImageFormat, str],
) -> bool:
    """Replace the object ``key`` by deleting it and inserting ``new_image``.

    Not atomic. If the delete fails nothing is inserted. If the delete
    succeeds and the insert fails, the object stays deleted; there is no
    rollback.

    Returns:
        bool: Always True; failures raise.

    Raises:
        InvalidArgumentError: If any argument is missing.
        ObjectNotFoundError: If the object to replace does not exist.
        ImageCodecError: If the new image cannot be encoded.
        StorageIOError: If the delete or the insert fails.
    """
    errors = ArgumentErrors()
    _check_handle_and_key(errors, handle, key)
    errors.check(new_image is not None, "Given new_image was None!")
    errors.check(format is not None, "Given format was None!")
    errors.raise_if_any()

    delete_image(handle, key)
    try:
        return insert_image(handle, key, new_image, format)
    except Exception:
        logger.error(f"Replacement of gs://{handle.bucket_name}/{key} failed after delete; object is gone")
        raise
