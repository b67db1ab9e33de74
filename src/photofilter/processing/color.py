"""Color adjustment filter.

All helpers operate on float32 arrays of normalised [0, 1] samples shaped
(H, W, 3). The filter applies contrast, then brightness, then saturation,
with the saturation gray value taken from the already contrast- and
brightness-adjusted pixel. Changing that order changes the output.
"""

import logging
from typing import Any

import numpy as np

from photofilter.buffer import ImageBuffer
from photofilter.params import (
    BRIGHTNESS_RANGE,
    CONTRAST_RANGE,
    SATURATION_RANGE,
    FilterParameters,
    clamp,
)

logger = logging.getLogger(__name__)

# Rec.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def apply_contrast(rgb: np.ndarray, contrast: float = 1.0) -> np.ndarray:
    """Scale samples around mid-gray.

    Args:
        rgb: Input samples (H, W, 3) float32 in [0, 1]
        contrast: Contrast multiplier (1.0 = unchanged, 0.0 = flat gray)

    Returns:
        Contrast-adjusted samples (not clamped)
    """
    if contrast == 1.0:
        return rgb
    return (rgb - 0.5) * np.float32(contrast) + 0.5


def apply_brightness(rgb: np.ndarray, brightness: float = 0.0) -> np.ndarray:
    """Add a constant offset to every sample.

    Args:
        rgb: Input samples (H, W, 3) float32
        brightness: Offset (-1.0 = black, 0.0 = unchanged, 1.0 = white)

    Returns:
        Brightness-adjusted samples (not clamped)
    """
    if brightness == 0.0:
        return rgb
    return rgb + np.float32(brightness)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """Return the per-pixel luma (H, W, 1) of RGB samples."""
    return (rgb @ LUMA_WEIGHTS)[:, :, np.newaxis]


def apply_saturation(rgb: np.ndarray, saturation: float = 1.0) -> np.ndarray:
    """Blend each pixel with its luma.

    Args:
        rgb: Input samples (H, W, 3) float32
        saturation: Saturation multiplier (0.0 = grayscale, 1.0 = unchanged)

    Returns:
        Saturation-adjusted samples (not clamped)
    """
    if saturation == 1.0:
        return rgb
    gray = luminance(rgb)
    return gray + (rgb - gray) * np.float32(saturation)


def adjust_samples(rgb: np.ndarray, params: FilterParameters) -> np.ndarray:
    """Run contrast, brightness and saturation on float samples, then clamp."""
    brightness = clamp(params.brightness, *BRIGHTNESS_RANGE)
    contrast = clamp(params.contrast, *CONTRAST_RANGE)
    saturation = clamp(params.saturation, *SATURATION_RANGE)

    result = apply_contrast(rgb, contrast)
    result = apply_brightness(result, brightness)
    result = apply_saturation(result, saturation)
    return np.clip(result, 0.0, 1.0)


def apply_color_adjustments(
    image: ImageBuffer,
    params: FilterParameters | dict[str, Any] | None = None,
) -> ImageBuffer:
    """Apply brightness/contrast/saturation to an image.

    Args:
        image: Source image (never modified)
        params: Adjustment parameters; defaults to identity

    Returns:
        New ImageBuffer with the same dimensions and format. Degenerate
        (zero-sized) images are returned unchanged.
    """
    params = FilterParameters.coerce(params)

    if image.is_empty:
        logger.debug(f"Skipping color adjustment for degenerate image {image.size}")
        return image

    rgb = image.pixels[:, :, :3].astype(np.float32) / np.float32(255.0)
    adjusted = adjust_samples(rgb, params)

    out = np.empty_like(image.pixels)
    out[:, :, :3] = np.rint(adjusted * np.float32(255.0)).astype(np.uint8)
    if image.has_alpha:
        out[:, :, 3] = image.pixels[:, :, 3]

    return ImageBuffer(out, image.mode)


class ColorAdjustmentFilter:
    """Stateless brightness/contrast/saturation filter."""

    def apply(
        self,
        image: ImageBuffer,
        params: FilterParameters | dict[str, Any] | None = None,
    ) -> ImageBuffer:
        """Return a filtered copy of image."""
        return apply_color_adjustments(image, params)

    def __call__(
        self,
        image: ImageBuffer,
        params: FilterParameters | dict[str, Any] | None = None,
    ) -> ImageBuffer:
        return self.apply(image, params)
