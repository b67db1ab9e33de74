"""Command-line interface for photofilter."""

import argparse
import logging
import sys
from pathlib import Path

from photofilter.buffer import ScaleTarget
from photofilter.config import PipelineConfig, load_config
from photofilter.exceptions import PhotoFilterError
from photofilter.outputs.library import ImageFormat, PhotoLibrary
from photofilter.pipeline import EditingPipeline


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="photofilter",
        description="Adjust brightness, contrast and saturation of a photo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Preview-sized, warmer and punchier
  photofilter photo.jpg -o preview.png --viewport 300x200 --density 2 --contrast 1.2

  # Full resolution export to the photo library
  photofilter photo.jpg --save --brightness 0.1 --saturation 1.4 --full-resolution
""",
    )

    parser.add_argument("input", type=Path, help="Source image (PNG, JPG, BMP, WebP)")

    output_group = parser.add_mutually_exclusive_group(required=True)
    output_group.add_argument(
        "--output",
        "-o",
        type=Path,
        metavar="PATH",
        help="Write the result to PATH (.png, .jpg or .jpeg)",
    )
    output_group.add_argument(
        "--save",
        action="store_true",
        help="Save the result to the configured photo library",
    )

    # Adjustments
    parser.add_argument(
        "--brightness",
        "-b",
        type=float,
        help="Brightness offset -1..1 (default: 0)",
    )
    parser.add_argument(
        "--contrast",
        "-c",
        type=float,
        help="Contrast 0..4 (default: 1)",
    )
    parser.add_argument(
        "--saturation",
        "-s",
        type=float,
        help="Saturation 0..2 (default: 1)",
    )

    # Display
    parser.add_argument(
        "--viewport",
        help="Viewport size in points as WxH (e.g., 300x200)",
    )
    parser.add_argument(
        "--density",
        type=float,
        help="Pixels per point of the display (default: 1.0)",
    )
    parser.add_argument(
        "--full-resolution",
        action="store_true",
        help="Filter the original instead of the viewport-sized preview",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file",
    )

    # Logging
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Debug output",
    )

    return parser.parse_args(argv)


OUTPUT_FORMATS = {
    "": ImageFormat.PNG,
    ".png": ImageFormat.PNG,
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
}


def format_for_path(path: Path) -> ImageFormat:
    """Pick the encoding from a file extension.

    Raises:
        ValueError: If the extension is not one the library can write
    """
    suffix = path.suffix.lower()
    if suffix not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format '{path.suffix}' (use .png, .jpg or .jpeg)")
    return OUTPUT_FORMATS[suffix]


def build_pipeline(args: argparse.Namespace, config: PipelineConfig) -> EditingPipeline:
    """Create a pipeline from the config with command-line overrides."""
    overrides = {
        name: getattr(args, name)
        for name in ("brightness", "contrast", "saturation")
        if getattr(args, name) is not None
    }
    params = config.default_parameters.replace(**overrides)

    density = args.density if args.density is not None else config.pixel_density
    if args.viewport:
        viewport = ScaleTarget.parse(args.viewport)
        target = ScaleTarget.from_viewport(viewport.width, viewport.height, density)
    elif config.viewport:
        target = ScaleTarget.from_viewport(config.viewport[0], config.viewport[1], density)
    else:
        target = None

    return EditingPipeline(params=params, target=target)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.debug else (logging.INFO if args.verbose else logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config(args.config) if args.config else PipelineConfig()
        pipeline = build_pipeline(args, config)
        output_format = config.image_format if args.save else format_for_path(args.output)
    except (FileNotFoundError, PhotoFilterError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        pipeline.load_image(args.input)
        image = pipeline.export_image() if args.full_resolution else pipeline.current_display_image()

        library = PhotoLibrary(
            config.library_path if args.save else args.output.parent,
            image_format=output_format,
            jpeg_quality=config.jpeg_quality,
        )
        saved = library.save(image, name=None if args.save else args.output.name)
    except (FileNotFoundError, PhotoFilterError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        pipeline.end_session()

    if saved is None:
        print("Error: photo library access was denied", file=sys.stderr)
        return 1

    print(f"Saved {image.width}x{image.height} image to {saved}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
