"""Image processing: scaling and color adjustment."""

from photofilter.processing.scaler import ImageScaler, fit_within, scale
from photofilter.processing.color import (
    ColorAdjustmentFilter,
    apply_brightness,
    apply_color_adjustments,
    apply_contrast,
    apply_saturation,
)

__all__ = [
    "ImageScaler",
    "fit_within",
    "scale",
    "ColorAdjustmentFilter",
    "apply_brightness",
    "apply_color_adjustments",
    "apply_contrast",
    "apply_saturation",
]
