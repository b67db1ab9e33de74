"""Slider controls that feed filter parameters."""

import logging
import math
from typing import Any, Callable

from pydantic import BaseModel, Field, model_validator

from photofilter.exceptions import ControlValidationError
from photofilter.params import PARAMETER_RANGES, FilterParameters

logger = logging.getLogger(__name__)


class SliderControl(BaseModel):
    """Numeric slider with a fixed range.

    Sliders cannot leave their range, so out-of-range values are clamped
    rather than rejected.
    """

    id: str = Field(pattern=r"^[a-zA-Z_][a-zA-Z0-9_]*$")
    name: str
    description: str = ""
    value: float = 0.0
    default: float = 0.0
    min: float = 0.0
    max: float = 1.0
    step: float = 0.01
    group: str = "adjust"

    @model_validator(mode="after")
    def check_range(self) -> "SliderControl":
        if self.min >= self.max:
            raise ValueError(f"Slider '{self.id}' range is empty: [{self.min}, {self.max}]")
        return self

    @property
    def type(self) -> str:
        return "slider"

    def validate_value(self, value: Any) -> float:
        """Coerce and clamp a value into the slider range."""
        if isinstance(value, bool):
            raise ControlValidationError(self.id, "Cannot convert bool to number")
        try:
            num = float(value)
        except (TypeError, ValueError) as e:
            raise ControlValidationError(
                self.id, f"Cannot convert {type(value).__name__} to number"
            ) from e

        if not math.isfinite(num):
            raise ControlValidationError(self.id, f"Value {num} is not finite")
        return max(self.min, min(self.max, num))

    def value_at(self, position: float) -> float:
        """Map a widget position in [0, 1] to the slider range."""
        position = max(0.0, min(1.0, float(position)))
        return self.min + position * (self.max - self.min)

    @property
    def position(self) -> float:
        """Current value as a widget position in [0, 1]."""
        return (self.value - self.min) / (self.max - self.min)

    def to_dict(self) -> dict[str, Any]:
        """Convert control definition to a dictionary."""
        data = self.model_dump(exclude_none=True)
        data["type"] = self.type
        return data


ChangeCallback = Callable[[str, Any, Any], None]


class ControlRegistry:
    """Registry of slider controls."""

    def __init__(self) -> None:
        self._controls: dict[str, SliderControl] = {}
        self._callbacks: dict[str, list[ChangeCallback]] = {}
        self._any_callbacks: list[ChangeCallback] = []

    def register(self, control: SliderControl) -> None:
        """Register a control."""
        self._controls[control.id] = control

    def unregister(self, control_id: str) -> None:
        """Unregister a control."""
        self._controls.pop(control_id, None)
        self._callbacks.pop(control_id, None)

    def get(self, control_id: str) -> SliderControl | None:
        """Get a control by ID."""
        return self._controls.get(control_id)

    def _require(self, control_id: str) -> SliderControl:
        control = self._controls.get(control_id)
        if control is None:
            raise KeyError(f"Unknown control: {control_id}")
        return control

    def get_all(self) -> list[SliderControl]:
        """Get all registered controls."""
        return list(self._controls.values())

    def get_value(self, control_id: str) -> float:
        """Get the current value of a control."""
        return self._require(control_id).value

    def get_values(self, control_ids: list[str] | None = None) -> dict[str, float]:
        """Current slider values, optionally limited to some ids."""
        wanted = self._controls if control_ids is None else control_ids
        return {cid: self._controls[cid].value for cid in wanted if cid in self._controls}

    def set_value(self, control_id: str, value: Any) -> float:
        """Set the value of a control. Returns the clamped value."""
        control = self._require(control_id)

        old_value = control.value
        validated = control.validate_value(value)

        # Controls are models; replace rather than mutate
        control_dict = control.model_dump()
        control_dict["value"] = validated
        self._controls[control_id] = type(control)(**control_dict)

        if validated != old_value:
            for callback in self._callbacks.get(control_id, []) + self._any_callbacks:
                callback(control_id, old_value, validated)

        return validated

    def set_position(self, control_id: str, position: float) -> float:
        """Set a control from a widget position in [0, 1]."""
        control = self._require(control_id)
        return self.set_value(control_id, control.value_at(position))

    def set_values(
        self, values: dict[str, Any]
    ) -> tuple[dict[str, float], dict[str, str]]:
        """Set multiple control values.

        Returns:
            Tuple of (applied_values, errors)
        """
        applied: dict[str, float] = {}
        errors: dict[str, str] = {}

        for control_id, value in values.items():
            try:
                applied[control_id] = self.set_value(control_id, value)
            except KeyError:
                errors[control_id] = f"Unknown control: {control_id}"
            except ControlValidationError as e:
                errors[control_id] = e.message

        return applied, errors

    def reset(self) -> None:
        """Return every control to its default value."""
        for control in self.get_all():
            self.set_value(control.id, control.default)

    def on_change(self, control_id: str | None, callback: ChangeCallback) -> None:
        """Register a callback for control value changes.

        Callback signature: (control_id, old_value, new_value) -> None.
        A control_id of None subscribes to every control.
        """
        if control_id is None:
            self._any_callbacks.append(callback)
            return
        self._callbacks.setdefault(control_id, []).append(callback)

    def to_parameters(self) -> FilterParameters:
        """Build filter parameters from the current slider values."""
        values = {
            name: self._controls[name].value
            for name in PARAMETER_RANGES
            if name in self._controls
        }
        return FilterParameters(**values)

    def to_list(self) -> list[dict[str, Any]]:
        """Export all controls as a list of dictionaries."""
        return [control.to_dict() for control in self._controls.values()]


def create_filter_controls(params: FilterParameters | None = None) -> ControlRegistry:
    """Create brightness, contrast and saturation sliders.

    Args:
        params: Initial values; neutral if omitted
    """
    params = params or FilterParameters()
    defaults = FilterParameters()
    registry = ControlRegistry()

    descriptions = {
        "brightness": "Additive brightness offset",
        "contrast": "Contrast around mid-gray",
        "saturation": "Color saturation (0 = grayscale)",
    }

    for name, (low, high) in PARAMETER_RANGES.items():
        registry.register(
            SliderControl(
                id=name,
                name=name.capitalize(),
                description=descriptions[name],
                value=getattr(params, name),
                default=getattr(defaults, name),
                min=low,
                max=high,
            )
        )

    return registry


def bind_controls(registry: ControlRegistry, pipeline: Any) -> None:
    """Re-filter pipeline whenever a slider changes."""

    def _on_change(control_id: str, old_value: Any, new_value: Any) -> None:
        logger.debug(f"Slider {control_id}: {old_value} -> {new_value}")
        pipeline.set_parameters(registry.to_parameters())

    registry.on_change(None, _on_change)
