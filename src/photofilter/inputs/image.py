"""Still image sources decoded with Pillow."""

import io
import logging
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image, ImageOps

from photofilter.buffer import ImageBuffer, PixelFormat
from photofilter.exceptions import DecodeError
from photofilter.inputs.base import ImageSource

logger = logging.getLogger(__name__)

# Pillow modes that carry transparency
_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}

# Grayscale modes with samples wider than 8 bits (16-bit PNG, TIFF)
_WIDE_GRAY_MODES = {"I", "I;16", "I;16L", "I;16B", "I;16N"}


def from_pil(img: Image.Image) -> ImageBuffer:
    """Convert a Pillow image to an ImageBuffer.

    EXIF orientation is applied, images with transparency become RGBA and
    everything else RGB.
    """
    img = ImageOps.exif_transpose(img)

    if img.mode in _WIDE_GRAY_MODES:
        # convert("RGB") clips these to 255; reduce 16-bit samples instead
        samples = np.clip(np.asarray(img), 0, 65535).astype(np.uint16)
        return ImageBuffer.from_array(samples, PixelFormat.RGB)

    has_alpha = img.mode in _ALPHA_MODES or (
        img.mode == "P" and "transparency" in img.info
    )
    if has_alpha:
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        mode = PixelFormat.RGBA
    else:
        if img.mode != "RGB":
            img = img.convert("RGB")
        mode = PixelFormat.RGB

    return ImageBuffer.from_array(np.asarray(img), mode)


def decode_image(data: bytes | bytearray | memoryview, name: str = "<bytes>") -> ImageBuffer:
    """Decode encoded image data (PNG, JPEG, etc.)."""
    try:
        with Image.open(io.BytesIO(bytes(data))) as img:
            img.load()
            return from_pil(img)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Failed to decode image: {e}", source=name) from e


def load_image_file(path: str | Path) -> ImageBuffer:
    """Decode an image file from disk."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    try:
        with Image.open(path) as img:
            img.load()
            return from_pil(img)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Failed to decode image: {e}", source=str(path)) from e


def decode_source(source: Any) -> ImageBuffer:
    """Coerce anything the pipeline accepts into an ImageBuffer.

    Accepts an ImageBuffer, a Pillow image, a numpy array, a path, or
    encoded bytes.

    Raises:
        DecodeError: If the source cannot be interpreted
        FileNotFoundError: If a path does not exist
    """
    if isinstance(source, ImageBuffer):
        return source
    if isinstance(source, Image.Image):
        try:
            return from_pil(source)
        except (OSError, ValueError) as e:
            raise DecodeError(f"Failed to convert image: {e}", source=repr(source)) from e
    if isinstance(source, np.ndarray):
        return ImageBuffer.from_array(source)
    if isinstance(source, (str, Path)):
        return load_image_file(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return decode_image(source)
    if isinstance(source, ImageSource):
        if not source.is_opened:
            source.open()
        image = source.read_image()
        if image is None:
            raise DecodeError("Image source produced no image", source=source.name)
        return image
    raise DecodeError(f"Unsupported image source type: {type(source).__name__}")


class FileInput(ImageSource):
    """Image file on disk (PNG, JPG, BMP, WebP, etc.)."""

    input_type = "file"

    def __init__(self, path: str | Path, **kwargs: Any):
        """Initialize file input.

        Args:
            path: Path to image file
        """
        super().__init__(name=str(path), **kwargs)
        self.path = Path(path)

    def open(self) -> None:
        """Load the image file."""
        if self._opened:
            return

        self._image = load_image_file(self.path)
        self._opened = True
        width, height = self._image.size
        logger.info(f"Opened image: {self.path} ({width}x{height})")


class BytesInput(ImageSource):
    """Encoded image held in memory (e.g. handed over by a photo picker)."""

    input_type = "bytes"

    def __init__(self, data: bytes, name: str = "<bytes>", **kwargs: Any):
        """Initialize bytes input.

        Args:
            data: Encoded image data
            name: Description used in logs
        """
        super().__init__(name=name, **kwargs)
        self.data = bytes(data)

    def open(self) -> None:
        """Decode the image data."""
        if self._opened:
            return

        self._image = decode_image(self.data, self.name)
        self._opened = True
        logger.debug(f"Decoded {len(self.data)} bytes from {self.name}")
