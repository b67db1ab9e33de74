"""Tests for image sources and decoding."""

import io

import numpy as np
import pytest
from PIL import Image

from photofilter.buffer import ImageBuffer, PixelFormat
from photofilter.exceptions import DecodeError
from photofilter.inputs import (
    BytesInput,
    FileInput,
    create_input,
    decode_image,
    decode_source,
    from_pil,
    open_image,
)


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class TestDecode:
    """Test decoding encoded images."""

    def test_decode_png(self, png_bytes):
        """PNG data decodes to RGB pixels."""
        image = decode_image(png_bytes)

        assert image.size == (32, 16)
        assert image.mode is PixelFormat.RGB
        assert image.pixels[0, 0].tolist() == [255, 128, 0]

    def test_garbage_raises(self):
        """Data that is not an image raises DecodeError."""
        with pytest.raises(DecodeError) as exc_info:
            decode_image(b"\x00\x01garbage", name="upload")
        assert exc_info.value.source == "upload"

    def test_truncated_raises(self, png_bytes):
        """Truncated files raise DecodeError."""
        with pytest.raises(DecodeError):
            decode_image(png_bytes[: len(png_bytes) // 2])

    def test_sixteen_bit_grayscale_is_reduced(self):
        """16-bit samples are scaled down rather than clipped to white."""
        samples = np.full((4, 4), 32768, dtype=np.uint16)
        samples[0, 0] = 0
        samples[0, 1] = 65535

        image = decode_image(encode(Image.fromarray(samples)))

        assert image.mode is PixelFormat.RGB
        assert image.size == (4, 4)
        assert image.pixels[1, 1].tolist() == [127, 127, 127]
        assert image.pixels[0, 0].tolist() == [0, 0, 0]
        assert image.pixels[0, 1].tolist() == [255, 255, 255]

    def test_grayscale_becomes_rgb(self):
        """L images are expanded to RGB."""
        image = decode_image(encode(Image.new("L", (4, 4), 77)))

        assert image.mode is PixelFormat.RGB
        assert np.all(image.pixels == 77)

    def test_palette_with_transparency_becomes_rgba(self):
        """Palette images with a transparent index keep their alpha."""
        img = Image.new("P", (4, 4), 0)
        img.putpalette([255, 0, 0, 0, 255, 0] + [0] * 762)
        img.putpixel((1, 1), 1)
        img.info["transparency"] = 0

        image = from_pil(img)

        assert image.mode is PixelFormat.RGBA
        assert image.pixels[0, 0, 3] == 0
        assert image.pixels[1, 1].tolist() == [0, 255, 0, 255]

    def test_exif_orientation_applied(self):
        """Rotated JPEGs are returned upright."""
        img = Image.new("RGB", (8, 4), (10, 20, 30))
        exif = Image.Exif()
        exif[0x0112] = 6  # rotate 90 CW
        buffer = io.BytesIO()
        img.save(buffer, format="JPEG", exif=exif.tobytes())

        image = decode_image(buffer.getvalue())

        assert image.size == (4, 8)


class TestDecodeSource:
    """Test coercing supported source types."""

    def test_buffer_passthrough(self, gradient_image):
        """ImageBuffers are used as they are."""
        assert decode_source(gradient_image) is gradient_image

    def test_array(self):
        """numpy arrays are copied into a buffer."""
        image = decode_source(np.zeros((5, 6, 3), dtype=np.uint8))
        assert isinstance(image, ImageBuffer)
        assert image.size == (6, 5)

    def test_pil_image(self):
        """Pillow images are converted."""
        image = decode_source(Image.new("RGBA", (3, 2), (1, 2, 3, 4)))
        assert image.mode is PixelFormat.RGBA
        assert image.pixels[0, 0].tolist() == [1, 2, 3, 4]

    def test_path_and_string(self, png_file):
        """Paths and strings are read from disk."""
        assert decode_source(png_file).size == (32, 16)
        assert decode_source(str(png_file)).size == (32, 16)

    def test_missing_file(self, tmp_path):
        """A missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            decode_source(tmp_path / "missing.png")

    def test_image_source(self, png_bytes):
        """Unopened sources are opened and read."""
        assert decode_source(BytesInput(png_bytes)).size == (32, 16)

    def test_unsupported_type(self):
        """Anything else raises DecodeError."""
        with pytest.raises(DecodeError):
            decode_source(42)


class TestImageSources:
    """Test the source classes and registry."""

    def test_file_input_lifecycle(self, png_file):
        """FileInput decodes on open and releases on close."""
        source = FileInput(png_file)
        assert not source.is_opened
        assert source.read_image() is None

        with source:
            assert source.is_opened
            assert source.native_dimensions == (32, 16)
            assert source.read_image().size == (32, 16)

        assert not source.is_opened
        assert source.native_dimensions == (0, 0)

    def test_create_input(self, png_bytes):
        """Sources are created by type name."""
        source = create_input("bytes", data=png_bytes, name="picker")

        assert isinstance(source, BytesInput)
        assert "picker" in repr(source)

    def test_unknown_input_type(self):
        """Unknown type names raise ValueError."""
        with pytest.raises(ValueError):
            create_input("camera")

    def test_open_image(self, png_file, png_bytes):
        """open_image accepts paths and bytes."""
        assert open_image(png_file).size == (32, 16)
        assert open_image(png_bytes).size == (32, 16)
