"""Image source implementations."""

from photofilter.buffer import ImageBuffer
from photofilter.inputs.base import ImageSource
from photofilter.inputs.image import (
    BytesInput,
    FileInput,
    decode_image,
    decode_source,
    from_pil,
    load_image_file,
)

# Registry of input types
INPUT_TYPES = {
    "file": FileInput,
    "bytes": BytesInput,
}


def create_input(input_type: str, **kwargs) -> ImageSource:
    """Create an image source by type."""
    if input_type not in INPUT_TYPES:
        raise ValueError(f"Unknown input type: {input_type}. Available: {list(INPUT_TYPES.keys())}")
    return INPUT_TYPES[input_type](**kwargs)


def open_image(source) -> ImageBuffer:
    """Decode a path or encoded bytes into an ImageBuffer."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        image_source = create_input("bytes", data=bytes(source))
    else:
        image_source = create_input("file", path=source)
    with image_source:
        return image_source.read_image()


__all__ = [
    "ImageSource",
    "FileInput",
    "BytesInput",
    "INPUT_TYPES",
    "create_input",
    "decode_image",
    "decode_source",
    "from_pil",
    "load_image_file",
    "open_image",
]
