"""Pipeline configuration."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from photofilter.buffer import ScaleTarget
from photofilter.exceptions import ConfigError
from photofilter.outputs.library import ImageFormat
from photofilter.params import FilterParameters

logger = logging.getLogger(__name__)


class PipelineConfig(BaseModel):
    """Configuration for an editing pipeline and its photo library."""

    # Filter
    default_parameters: FilterParameters = Field(default_factory=FilterParameters)

    # Display
    viewport: list[int] = Field(default_factory=list)  # [width, height] in points, empty = no scaling
    pixel_density: float = Field(default=1.0, gt=0)

    # Library
    library_path: str = "photos"
    image_format: ImageFormat = ImageFormat.PNG
    jpeg_quality: int = Field(default=90, ge=1, le=100)

    @field_validator("viewport")
    @classmethod
    def validate_viewport(cls, v: list[int]) -> list[int]:
        if v and (len(v) != 2 or min(v) <= 0):
            raise ValueError(f"Viewport must be [width, height] with positive values, got {v}")
        return v

    def scale_target(self) -> ScaleTarget | None:
        """Scale target for the configured viewport, or None."""
        if not self.viewport:
            return None
        return ScaleTarget.from_viewport(self.viewport[0], self.viewport[1], self.pixel_density)


def config_from_dict(data: dict[str, Any]) -> PipelineConfig:
    """Map the nested file layout onto a PipelineConfig."""
    config_dict: dict[str, Any] = {}

    if "filter" in data:
        config_dict["default_parameters"] = FilterParameters(**(data["filter"] or {}))

    if "display" in data:
        display = data["display"] or {}
        if "viewport" in display:
            viewport = display["viewport"]
            if isinstance(viewport, str):
                viewport = list(ScaleTarget.parse(viewport).size)
            config_dict["viewport"] = viewport
        if "pixel_density" in display:
            config_dict["pixel_density"] = display["pixel_density"]

    if "library" in data:
        library = data["library"] or {}
        if "path" in library:
            config_dict["library_path"] = library["path"]
        if "format" in library:
            config_dict["image_format"] = str(library["format"]).lower().replace("jpg", "jpeg")
        if "jpeg_quality" in library:
            config_dict["jpeg_quality"] = library["jpeg_quality"]

    return PipelineConfig(**config_dict)


def load_config(path: str | Path) -> PipelineConfig:
    """Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file is not valid YAML or has invalid values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")

    try:
        config = config_from_dict(data)
    except (ValidationError, ValueError, TypeError) as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.debug(f"Loaded config from {path}")
    return config
