"""Base class for image sources."""

from abc import ABC, abstractmethod
from typing import Any

from photofilter.buffer import ImageBuffer


class ImageSource(ABC):
    """Base class for anything that supplies a decoded source image.

    Subclasses implement specific sources (file on disk, in-memory bytes).
    """

    input_type: str = "unknown"

    def __init__(self, name: str = "", **kwargs: Any):
        """Initialize image source.

        Args:
            name: Human readable description used in logs and errors
            **kwargs: Additional source-specific parameters
        """
        self.name = name
        self.extra_params = kwargs

        self._opened = False
        self._image: ImageBuffer | None = None

    @abstractmethod
    def open(self) -> None:
        """Decode the source.

        Raises:
            FileNotFoundError: If a file source doesn't exist
            DecodeError: If the data is not a readable image
        """
        pass

    def read_image(self) -> ImageBuffer | None:
        """Return the decoded image, or None if not opened."""
        if not self._opened:
            return None
        return self._image

    def close(self) -> None:
        """Release the decoded image."""
        self._image = None
        self._opened = False

    @property
    def native_dimensions(self) -> tuple[int, int]:
        """Dimensions (width, height) of the decoded image."""
        if self._image is None:
            return (0, 0)
        return self._image.size

    @property
    def is_opened(self) -> bool:
        """True if the source has been decoded."""
        return self._opened

    def __enter__(self) -> "ImageSource":
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
