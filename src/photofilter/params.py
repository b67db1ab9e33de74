"""Color adjustment parameters."""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

# Valid (min, max) for each adjustment, matching color-controls semantics
BRIGHTNESS_RANGE = (-1.0, 1.0)
CONTRAST_RANGE = (0.0, 4.0)
SATURATION_RANGE = (0.0, 2.0)

PARAMETER_RANGES: dict[str, tuple[float, float]] = {
    "brightness": BRIGHTNESS_RANGE,
    "contrast": CONTRAST_RANGE,
    "saturation": SATURATION_RANGE,
}


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


class FilterParameters(BaseModel):
    """Brightness/contrast/saturation triple.

    Values outside the documented ranges are clamped rather than rejected,
    and non-finite values fall back to the neutral default.
    """

    model_config = ConfigDict(frozen=True)

    brightness: float = 0.0  # additive offset, -1..1
    contrast: float = 1.0  # gain around mid-gray, 0..4
    saturation: float = 1.0  # 0 = grayscale, 2 = double

    @field_validator("brightness", "contrast", "saturation")
    @classmethod
    def clamp_to_range(cls, value: float, info: ValidationInfo) -> float:
        """Clamp each field into its slider range."""
        name = info.field_name
        if not math.isfinite(value):
            return cls.model_fields[name].default
        low, high = PARAMETER_RANGES[name]
        return clamp(value, low, high)

    @classmethod
    def coerce(cls, value: "FilterParameters | dict[str, Any] | None") -> "FilterParameters":
        """Build parameters from an instance, a mapping, or None (defaults)."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls(**dict(value))

    def replace(self, **changes: Any) -> "FilterParameters":
        """Return a new instance with some fields changed (and clamped)."""
        data = self.model_dump()
        data.update(changes)
        return FilterParameters(**data)

    def is_identity(self) -> bool:
        """True if applying these parameters leaves an image unchanged."""
        return self.brightness == 0.0 and self.contrast == 1.0 and self.saturation == 1.0

    def as_tuple(self) -> tuple[float, float, float]:
        """Return (brightness, contrast, saturation)."""
        return (self.brightness, self.contrast, self.saturation)


IDENTITY = FilterParameters()
