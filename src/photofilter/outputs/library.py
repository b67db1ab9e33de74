"""Photo library sink: authorization-gated, atomic image saves."""

import asyncio
import io
import logging
import os
import tempfile
import time
from enum import Enum
from pathlib import Path
from typing import Callable
from uuid import uuid4

from PIL import Image

from photofilter.buffer import ImageBuffer
from photofilter.exceptions import LibraryError

logger = logging.getLogger(__name__)


class AuthorizationStatus(str, Enum):
    """Whether the user allowed adding photos to the library."""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class ImageFormat(str, Enum):
    """Encodings the library can store."""

    PNG = "png"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else "png"


Authorizer = Callable[[], AuthorizationStatus]


class PhotoLibrary:
    """Directory-backed photo library.

    Saves are written to a temporary file and renamed into place, so a
    failed or abandoned save never leaves a partial photo behind.
    """

    def __init__(
        self,
        path: str | Path,
        authorizer: Authorizer | None = None,
        image_format: ImageFormat | str = ImageFormat.PNG,
        jpeg_quality: int = 90,
    ):
        """Initialize the library.

        Args:
            path: Library directory (created on first save)
            authorizer: Asks the user for permission; local libraries are
                authorized when omitted
            image_format: Encoding for saved photos
            jpeg_quality: JPEG quality 1-100
        """
        self.path = Path(path)
        self.image_format = ImageFormat(image_format)
        self.jpeg_quality = max(1, min(100, int(jpeg_quality)))
        self._authorizer = authorizer
        self._status = AuthorizationStatus.NOT_DETERMINED
        self._saved_count = 0

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    def request_authorization(self) -> AuthorizationStatus:
        """Ask for permission once; later calls return the stored answer."""
        if self._status is AuthorizationStatus.NOT_DETERMINED:
            if self._authorizer is None:
                self._status = AuthorizationStatus.AUTHORIZED
            else:
                self._status = AuthorizationStatus(self._authorizer())
            logger.debug(f"Photo library authorization: {self._status.value}")
        return self._status

    def encode(self, image: ImageBuffer) -> bytes:
        """Encode image in the library's format."""
        if image.is_empty:
            raise LibraryError(f"Cannot save degenerate image {image.width}x{image.height}")

        pil_image = Image.fromarray(image.pixels)
        buffer = io.BytesIO()
        if self.image_format is ImageFormat.JPEG:
            # JPEG has no alpha channel
            pil_image.convert("RGB").save(buffer, format="JPEG", quality=self.jpeg_quality)
        else:
            pil_image.save(buffer, format="PNG")
        return buffer.getvalue()

    def save(self, image: ImageBuffer, name: str | None = None) -> Path | None:
        """Save image to the library.

        Args:
            image: Image to store
            name: File name; the format extension is added when it has none

        Returns:
            Path of the saved photo, or None if the user denied access

        Raises:
            LibraryError: If encoding or writing fails
        """
        if not self._check_authorized():
            return None
        return self._write(self.encode(image), name)

    async def save_async(self, image: ImageBuffer, name: str | None = None) -> Path | None:
        """Save image without blocking the event loop.

        Cancelling before the write starts leaves the library untouched.
        """
        if not self._check_authorized():
            return None
        data = await asyncio.to_thread(self.encode, image)
        return await asyncio.to_thread(self._write, data, name)

    def _check_authorized(self) -> bool:
        if self.request_authorization() is not AuthorizationStatus.AUTHORIZED:
            logger.warning("User has not authorized permissions for photo library usage")
            return False
        return True

    def _next_name(self) -> str:
        stamp = time.strftime("%Y%m%d-%H%M%S")
        return f"photo-{stamp}-{uuid4().hex[:8]}"

    def _write(self, data: bytes, name: str | None) -> Path:
        name = name or self._next_name()
        if Path(name).name != name or name in (".", ".."):
            raise LibraryError(f"Photo name must be a plain file name, got {name!r}")
        if not Path(name).suffix:
            name = f"{name}.{self.image_format.extension}"
        final_path = self.path / name

        try:
            self.path.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path, prefix=".saving-", suffix=".tmp")
        except OSError as e:
            raise LibraryError(f"Cannot write to photo library {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, final_path)
        except OSError as e:
            logger.error(f"Error saving photo {final_path}: {e}")
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise LibraryError(f"Failed to save photo: {e}") from e

        self._saved_count += 1
        logger.info(f"Saved photo: {final_path} ({len(data)} bytes)")
        return final_path

    @property
    def saved_count(self) -> int:
        """Number of photos saved through this instance."""
        return self._saved_count

    def __repr__(self) -> str:
        return f"PhotoLibrary(path={str(self.path)!r}, format={self.image_format.value})"
