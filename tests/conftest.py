"""Shared fixtures for the test suite."""

import struct
import zlib

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from PIL import Image

from cloud_image_store import dependencies
from cloud_image_store.client import StorageClientHandle, default_registry
from cloud_image_store.credentials import CredentialBuilder
from cloud_image_store.storage.memory import InMemoryObjectStore
from config import get_settings


@pytest.fixture(scope="session")
def private_key_pem() -> bytes:
    """Generate a PEM encoded RSA private key once per test session."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(autouse=True)
def reset_process_state():
    """Reset process-wide singletons and cached settings around each test."""
    CredentialBuilder.reset()
    default_registry.clear()
    dependencies.reset()
    get_settings.cache_clear()
    yield
    CredentialBuilder.reset()
    default_registry.clear()
    dependencies.reset()
    get_settings.cache_clear()


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def handle(memory_store) -> StorageClientHandle:
    """A handle over an in-memory store."""
    return StorageClientHandle(bucket_name="test-bucket", client=memory_store)


def create_test_image(width: int = 8, height: int = 6, seed: int = 0, mode: str = "RGB") -> Image.Image:
    """Create a small image with a deterministic gradient.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Offset for generating different images.
        mode: Pillow image mode.

    Returns:
        Image.Image: The generated image.
    """
    img = Image.new("RGB", (width, height))
    img.putdata([
        ((x * 30 + seed) % 256, (y * 40 + seed) % 256, (x * y + seed * 7) % 256)
        for y in range(height)
        for x in range(width)
    ])
    if mode != "RGB":
        img = img.convert(mode)
    return img


@pytest.fixture
def make_image():
    """Factory fixture for test images."""
    return create_test_image


def _png_chunk(tag: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data))


@pytest.fixture(scope="session")
def oversized_png() -> bytes:
    """PNG whose header claims 100000x100000 pixels, past Pillow's bomb limit."""
    header = struct.pack(">IIBBBBB", 100000, 100000, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(b""))
        + _png_chunk(b"IEND", b"")
    )
