"""Image format mapping and Pillow encode/decode helpers."""
import io
import logging
from enum import Enum
from typing import BinaryIO, Optional, Union

from PIL import Image, UnidentifiedImageError

from cloud_image_store.storage.base import ImageCodecError

logger = logging.getLogger(__name__)

# Pillow format identifiers
PNG = "PNG"
JPEG = "JPEG"
WEBP = "WEBP"

# Maximum quality, matching a lossless-as-possible re-encode
ENCODE_QUALITY = 100


class ImageFormat(str, Enum):
    """Image formats supported for upload."""

    PNG = "png"
    JPG = "jpg"
    WEBP = "webp"


def _format_name(format: Union[ImageFormat, str]) -> str:
    if isinstance(format, ImageFormat):
        return format.value
    return str(format)


def compression_id_for(format: Optional[Union[ImageFormat, str]]) -> Optional[str]:
    """Get the Pillow codec id for a format.

    png and webp map to their own codecs; jpg and any unrecognized value
    map to JPEG. ``None`` maps to ``None``.
    """
    if format is None:
        return None
    name = _format_name(format).lower()
    if name == ImageFormat.PNG.value:
        return PNG
    if name == ImageFormat.WEBP.value:
        return WEBP
    return JPEG


def mime_type_for(format: Union[ImageFormat, str]) -> str:
    """Build the content type stored with an object.

    This is ``"image/"`` plus the format name as-is, so ``jpg`` gives
    ``image/jpg``.
    """
    return f"image/{_format_name(format)}"


def encode_image(image: Image.Image, format: Union[ImageFormat, str]) -> bytes:
    """Encode a Pillow image into bytes for the given format.

    Args:
        image: Image to encode.
        format: Target format.

    Returns:
        bytes: Encoded image data.

    Raises:
        ImageCodecError: If Pillow cannot encode the image.
    """
    codec = compression_id_for(format)
    if codec == JPEG and image.mode not in ("RGB", "L", "CMYK"):
        image = image.convert("RGB")

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=codec, quality=ENCODE_QUALITY)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to encode image as {codec}: {e}")
        raise ImageCodecError(f"Failed to encode image as {codec}: {e}") from e

    data = buffer.getvalue()
    logger.debug(f"Encoded {image.size[0]}x{image.size[1]} image as {codec} ({len(data)} bytes)")
    return data


def decode_image(stream: BinaryIO) -> Image.Image:
    """Decode image data from a binary stream.

    Pixel data is loaded eagerly so the returned image stays usable after
    the stream is closed.

    Raises:
        ImageCodecError: If the data is not a readable image, or its header
            claims a size beyond Pillow's decompression bomb limit.
    """
    try:
        with Image.open(stream) as image:
            image.load()
            return image.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        logger.error(f"Failed to decode image: {e}")
        raise ImageCodecError(f"Failed to decode image: {e}") from e
