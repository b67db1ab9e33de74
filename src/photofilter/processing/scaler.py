"""Fit-within image scaling."""

import logging

import numpy as np
from PIL import Image

from photofilter.buffer import ImageBuffer, ScaleTarget
from photofilter.exceptions import DegenerateImageError

logger = logging.getLogger(__name__)

# Try to import OpenCV, fall back to PIL-based scaling
try:
    import cv2
    HAS_OPENCV = True
except ImportError:
    HAS_OPENCV = False

    logger.debug("OpenCV not available, using PIL for scaling")


def fit_within(width: int, height: int, target: ScaleTarget) -> tuple[int, int]:
    """Compute the largest size with the source's aspect ratio inside target.

    Sources that already fit are left at their own size.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        target: Maximum output size

    Returns:
        Output (width, height), each at least 1
    """
    if width <= 0 or height <= 0:
        raise DegenerateImageError(width, height)

    if target.fits(width, height):
        return (width, height)

    factor = min(target.width / width, target.height / height)
    new_w = min(target.width, max(1, round(width * factor)))
    new_h = min(target.height, max(1, round(height * factor)))
    return (new_w, new_h)


def resize_pixels(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Downscale (H, W, C) uint8 pixels using the available backend."""
    if HAS_OPENCV:
        # INTER_AREA gives the best quality when shrinking
        return cv2.resize(pixels, (width, height), interpolation=cv2.INTER_AREA)

    img = Image.fromarray(np.ascontiguousarray(pixels))
    resized = img.resize((width, height), Image.Resampling.LANCZOS)
    return np.asarray(resized, dtype=np.uint8)


def scale(source: ImageBuffer, target: ScaleTarget) -> ImageBuffer:
    """Downsample source to fit within target, preserving aspect ratio.

    Args:
        source: Source image (never modified)
        target: Maximum output size in physical pixels

    Returns:
        Scaled ImageBuffer, or source itself if it already fits

    Raises:
        DegenerateImageError: If source has zero width or height
    """
    new_w, new_h = fit_within(source.width, source.height, target)
    if (new_w, new_h) == source.size:
        return source

    resized = resize_pixels(source.pixels, new_w, new_h)
    logger.debug(f"Scaled {source.width}x{source.height} -> {new_w}x{new_h}")
    return ImageBuffer(np.array(resized, dtype=np.uint8, order="C", copy=True), source.mode)


class ImageScaler:
    """Scales images to fit within a fixed target."""

    def __init__(self, target: ScaleTarget):
        """Initialize the scaler.

        Args:
            target: Maximum output size in physical pixels
        """
        self.target = target

    def scale(self, source: ImageBuffer) -> ImageBuffer:
        """Scale source to fit within the configured target."""
        return scale(source, self.target)

    def output_size(self, source: ImageBuffer) -> tuple[int, int]:
        """Size that scale() would produce for source."""
        return fit_within(source.width, source.height, self.target)

    def set_target(self, target: ScaleTarget) -> None:
        """Change the target size."""
        self.target = target

    def __repr__(self) -> str:
        return f"ImageScaler(target={self.target})"
