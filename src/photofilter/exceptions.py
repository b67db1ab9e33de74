"""
photofilter - Exceptions
"""


class PhotoFilterError(Exception):
    """Base exception for photo filter errors."""
    pass


class DecodeError(PhotoFilterError):
    """Source image could not be interpreted as pixel data."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        if source:
            super().__init__(f"{message} ({source})")
        else:
            super().__init__(message)


class DegenerateImageError(PhotoFilterError):
    """Image has zero width or height."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(f"Degenerate image: {width}x{height}")


class PipelineStateError(PhotoFilterError):
    """Operation is not valid in the pipeline's current phase."""
    pass


class SessionClosedError(PipelineStateError):
    """Editing session has ended; a new image must be loaded first."""
    pass


class ControlValidationError(PhotoFilterError):
    """Error validating a control value."""

    def __init__(self, control_id: str, message: str):
        self.control_id = control_id
        self.message = message
        super().__init__(f"Control '{control_id}': {message}")


class ConfigError(PhotoFilterError):
    """Configuration file is unreadable or invalid."""
    pass


class LibraryError(PhotoFilterError):
    """Saving to the photo library failed."""
    pass
