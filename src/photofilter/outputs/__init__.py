"""Persistence sinks for finished photos."""

from photofilter.outputs.library import (
    AuthorizationStatus,
    ImageFormat,
    PhotoLibrary,
)

__all__ = [
    "AuthorizationStatus",
    "ImageFormat",
    "PhotoLibrary",
]
