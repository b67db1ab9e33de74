"""Immutable image buffer and scale target value types."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from photofilter.exceptions import DecodeError


class PixelFormat(str, Enum):
    """Channel layout of an image buffer."""

    RGB = "RGB"
    RGBA = "RGBA"

    @property
    def channels(self) -> int:
        """Number of samples per pixel."""
        return 4 if self is PixelFormat.RGBA else 3

    @classmethod
    def for_channels(cls, channels: int) -> "PixelFormat":
        """Return the format matching a channel count."""
        if channels == 3:
            return cls.RGB
        if channels == 4:
            return cls.RGBA
        raise DecodeError(f"Unsupported channel count: {channels}")


@dataclass(frozen=True, eq=False)
class ImageBuffer:
    """Immutable 2D grid of 8-bit pixel samples.

    The constructor takes ownership of ``pixels`` and marks the array
    read-only. Use :meth:`from_array` to build a buffer from data the caller
    keeps using.

    Attributes:
        pixels: Pixel data (H, W, C) uint8
        mode: Channel layout (RGB or RGBA)
    """

    pixels: np.ndarray
    mode: PixelFormat = PixelFormat.RGB

    def __post_init__(self) -> None:
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise DecodeError(f"Expected numpy array, got {type(pixels).__name__}")
        if pixels.dtype != np.uint8:
            raise DecodeError(f"Expected uint8 pixels, got {pixels.dtype}")
        if pixels.ndim != 3:
            raise DecodeError(f"Expected (H, W, C) pixels, got shape {pixels.shape}")

        mode = PixelFormat(self.mode)
        if pixels.shape[2] != mode.channels:
            raise DecodeError(
                f"{mode.value} buffer needs {mode.channels} channels, got {pixels.shape[2]}"
            )
        object.__setattr__(self, "mode", mode)

        if pixels.flags.writeable:
            pixels.flags.writeable = False

    @classmethod
    def from_array(cls, array: Any, mode: PixelFormat | str | None = None) -> "ImageBuffer":
        """Create a buffer from an array-like, copying the data.

        Args:
            array: Pixel data (H, W), (H, W, 1), (H, W, 3) or (H, W, 4).
                Integer data is taken as 8-bit (16-bit is reduced), float
                data as normalised [0, 1] samples.
            mode: Target format; inferred from the channel count if omitted

        Returns:
            New ImageBuffer owning a private copy of the pixels

        Raises:
            DecodeError: If the array cannot be interpreted as an image
        """
        try:
            arr = np.asarray(array)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Cannot convert {type(array).__name__} to pixels") from e

        arr = _to_uint8(arr)

        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        elif arr.ndim == 3 and arr.shape[2] == 1:
            arr = np.repeat(arr, 3, axis=2)
        elif arr.ndim != 3:
            raise DecodeError(f"Expected 2D or 3D pixel array, got shape {arr.shape}")

        source_mode = PixelFormat.for_channels(arr.shape[2])
        target_mode = PixelFormat(mode) if mode is not None else source_mode
        arr = _convert_channels(arr, source_mode, target_mode)

        return cls(np.array(arr, dtype=np.uint8, order="C", copy=True), target_mode)

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        mode: PixelFormat | str = PixelFormat.RGB,
    ) -> "ImageBuffer":
        """Create a zero-filled buffer (transparent black for RGBA)."""
        mode = PixelFormat(mode)
        return cls(np.zeros((max(0, height), max(0, width), mode.channels), dtype=np.uint8), mode)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def size(self) -> tuple[int, int]:
        """Dimensions as (width, height)."""
        return (self.width, self.height)

    @property
    def has_alpha(self) -> bool:
        return self.mode is PixelFormat.RGBA

    @property
    def is_empty(self) -> bool:
        """True if the buffer has zero width or height."""
        return self.width == 0 or self.height == 0

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height (0.0 for degenerate buffers)."""
        if self.is_empty:
            return 0.0
        return self.width / self.height

    def convert(self, mode: PixelFormat | str) -> "ImageBuffer":
        """Return this image in another channel layout."""
        mode = PixelFormat(mode)
        if mode is self.mode:
            return self
        converted = _convert_channels(self.pixels, self.mode, mode)
        return ImageBuffer(np.ascontiguousarray(converted), mode)

    def pixel_equal(self, other: "ImageBuffer", tolerance: int = 0) -> bool:
        """Compare pixel contents, allowing a per-sample tolerance."""
        if not isinstance(other, ImageBuffer):
            return False
        if self.mode is not other.mode or self.pixels.shape != other.pixels.shape:
            return False
        if tolerance <= 0:
            return bool(np.array_equal(self.pixels, other.pixels))
        diff = np.abs(self.pixels.astype(np.int16) - other.pixels.astype(np.int16))
        return bool(diff.max(initial=0) <= tolerance)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return self.pixel_equal(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ImageBuffer({self.width}x{self.height}, {self.mode.value})"


@dataclass(frozen=True)
class ScaleTarget:
    """Requested maximum output size in physical pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ValueError(
                f"Scale target must be positive, got {self.width}x{self.height}"
            )
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))

    @classmethod
    def from_viewport(
        cls,
        width: float,
        height: float,
        pixel_density: float = 1.0,
    ) -> "ScaleTarget":
        """Derive a target from a viewport size in points and the pixel density.

        Args:
            width: Viewport width in points
            height: Viewport height in points
            pixel_density: Physical pixels per point (screen scale)
        """
        if pixel_density <= 0:
            raise ValueError(f"Pixel density must be positive, got {pixel_density}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport must be positive, got {width}x{height}")
        return cls(
            max(1, round(width * pixel_density)),
            max(1, round(height * pixel_density)),
        )

    @classmethod
    def parse(cls, value: str) -> "ScaleTarget":
        """Parse a ``WxH`` string (e.g. ``300x200``)."""
        parts = value.lower().split("x")
        if len(parts) != 2:
            raise ValueError(f"Size must be WxH, got {value!r}")
        return cls(int(parts[0]), int(parts[1]))

    @property
    def size(self) -> tuple[int, int]:
        """Dimensions as (width, height)."""
        return (self.width, self.height)

    def fits(self, width: int, height: int) -> bool:
        """True if an image of the given size already fits within the target."""
        return width <= self.width and height <= self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


def _to_uint8(arr: np.ndarray) -> np.ndarray:
    """Quantise an array of samples to uint8."""
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype == np.bool_:
        return arr.astype(np.uint8) * 255
    if arr.dtype == np.uint16:
        return (arr.astype(np.uint32) * 255 // 65535).astype(np.uint8)
    if np.issubdtype(arr.dtype, np.integer):
        return np.clip(arr, 0, 255).astype(np.uint8)
    if np.issubdtype(arr.dtype, np.floating):
        scaled = np.nan_to_num(arr.astype(np.float32), nan=0.0) * 255.0
        return np.rint(np.clip(scaled, 0.0, 255.0)).astype(np.uint8)
    raise DecodeError(f"Unsupported pixel dtype: {arr.dtype}")


def _convert_channels(
    arr: np.ndarray, source: PixelFormat, target: PixelFormat
) -> np.ndarray:
    """Add or drop the alpha channel."""
    if source is target:
        return arr
    if target is PixelFormat.RGB:
        return arr[:, :, :3]
    alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([arr, alpha], axis=2)
