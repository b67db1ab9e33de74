"""Shared fixtures for photofilter tests."""

import io

import numpy as np
import pytest
from PIL import Image

from photofilter.buffer import ImageBuffer, PixelFormat


@pytest.fixture
def gradient_image() -> ImageBuffer:
    """64x48 RGB image with a horizontal red ramp and vertical green ramp."""
    pixels = np.zeros((48, 64, 3), dtype=np.uint8)
    pixels[:, :, 0] = np.linspace(0, 255, 64, dtype=np.uint8)[np.newaxis, :]
    pixels[:, :, 1] = np.linspace(0, 255, 48, dtype=np.uint8)[:, np.newaxis]
    pixels[:, :, 2] = 128
    return ImageBuffer.from_array(pixels)


@pytest.fixture
def random_image() -> ImageBuffer:
    """Seeded random 40x30 RGB image."""
    rng = np.random.default_rng(42)
    return ImageBuffer.from_array(rng.integers(0, 256, (30, 40, 3), dtype=np.uint8))


@pytest.fixture
def rgba_image() -> ImageBuffer:
    """Seeded random 20x10 RGBA image with varying alpha."""
    rng = np.random.default_rng(7)
    return ImageBuffer.from_array(
        rng.integers(0, 256, (10, 20, 4), dtype=np.uint8), PixelFormat.RGBA
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A 32x16 solid orange PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (32, 16), (255, 128, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_file(tmp_path, png_bytes):
    """Path to a 32x16 solid orange PNG on disk."""
    path = tmp_path / "orange.png"
    path.write_bytes(png_bytes)
    return path
