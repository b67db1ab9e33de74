"""photofilter - Live brightness/contrast/saturation editing pipeline."""

from photofilter.buffer import ImageBuffer, PixelFormat, ScaleTarget
from photofilter.exceptions import (
    DecodeError,
    DegenerateImageError,
    PhotoFilterError,
    PipelineStateError,
    SessionClosedError,
)
from photofilter.params import FilterParameters
from photofilter.pipeline import EditingPipeline, Phase, PipelineState
from photofilter.processing.color import ColorAdjustmentFilter, apply_color_adjustments
from photofilter.processing.scaler import ImageScaler, scale

__version__ = "0.1.0"

__all__ = [
    "ImageBuffer",
    "PixelFormat",
    "ScaleTarget",
    "FilterParameters",
    "EditingPipeline",
    "Phase",
    "PipelineState",
    "ColorAdjustmentFilter",
    "apply_color_adjustments",
    "ImageScaler",
    "scale",
    "PhotoFilterError",
    "DecodeError",
    "DegenerateImageError",
    "PipelineStateError",
    "SessionClosedError",
]
