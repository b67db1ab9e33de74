"""Tests for the command-line interface."""

import numpy as np
import pytest
from PIL import Image

from photofilter.buffer import ScaleTarget
from photofilter.cli import build_pipeline, format_for_path, main, parse_args
from photofilter.config import PipelineConfig
from photofilter.outputs.library import ImageFormat


@pytest.fixture
def photo(tmp_path):
    """A 120x80 two-tone photo on disk."""
    pixels = np.zeros((80, 120, 3), dtype=np.uint8)
    pixels[:, :60] = (200, 40, 40)
    pixels[:, 60:] = (40, 40, 200)
    path = tmp_path / "photo.png"
    Image.fromarray(pixels).save(path)
    return path


class TestParseArgs:
    """Test argument parsing."""

    def test_output_required(self, photo):
        """Either --output or --save must be given."""
        with pytest.raises(SystemExit):
            parse_args([str(photo)])

    def test_build_pipeline_overrides(self, photo):
        """Command-line values override config defaults."""
        args = parse_args(
            [str(photo), "-o", "out.png", "-c", "1.5", "--viewport", "60x40", "--density", "2"]
        )
        config = PipelineConfig(default_parameters={"contrast": 0.5, "saturation": 0.2})

        pipeline = build_pipeline(args, config)

        assert pipeline.params.contrast == 1.5
        assert pipeline.params.saturation == 0.2
        assert pipeline.target == ScaleTarget(120, 80)

    def test_format_for_path(self, tmp_path):
        """The extension picks the encoding."""
        assert format_for_path(tmp_path / "a.JPG") is ImageFormat.JPEG
        assert format_for_path(tmp_path / "a.png") is ImageFormat.PNG
        assert format_for_path(tmp_path / "a") is ImageFormat.PNG

    @pytest.mark.parametrize("name", ["a.webp", "a.bmp", "a.tif"])
    def test_format_for_unsupported_path(self, tmp_path, name):
        """Extensions the library cannot write are rejected."""
        with pytest.raises(ValueError):
            format_for_path(tmp_path / name)


class TestMain:
    """Test running the CLI end to end."""

    def test_preview_output(self, photo, tmp_path, capsys):
        """The viewport-sized result is written."""
        out = tmp_path / "out" / "preview.png"

        code = main([str(photo), "-o", str(out), "--viewport", "30x30", "--saturation", "0"])

        assert code == 0
        assert "Saved 30x20" in capsys.readouterr().out
        with Image.open(out) as img:
            assert img.size == (30, 20)
            px = np.asarray(img)
        np.testing.assert_array_equal(px[:, :, 0], px[:, :, 2])

    def test_full_resolution(self, photo, tmp_path):
        """--full-resolution filters the original."""
        out = tmp_path / "full.jpeg"

        assert main([str(photo), "-o", str(out), "--viewport", "30x30", "--full-resolution"]) == 0
        with Image.open(out) as img:
            assert img.format == "JPEG"
            assert img.size == (120, 80)

    def test_save_to_library(self, photo, tmp_path):
        """--save writes into the configured library."""
        config = tmp_path / "config.yaml"
        library = tmp_path / "library"
        config.write_text(f"library:\n  path: {library}\n  format: jpg\n")

        assert main([str(photo), "--save", "--config", str(config), "-b", "0.1"]) == 0
        saved = list(library.glob("*.jpg"))
        assert len(saved) == 1

    def test_missing_input(self, tmp_path, capsys):
        """A missing input is reported and fails."""
        code = main([str(tmp_path / "missing.png"), "-o", str(tmp_path / "x.png")])

        assert code == 1
        assert "Error" in capsys.readouterr().err

    def test_bad_config(self, photo, tmp_path, capsys):
        """An invalid config file fails before loading the image."""
        config = tmp_path / "config.yaml"
        config.write_text("display:\n  pixel_density: -1\n")

        assert main([str(photo), "-o", str(tmp_path / "x.png"), "--config", str(config)]) == 1
        assert "Error" in capsys.readouterr().err

    def test_bad_viewport(self, photo, tmp_path):
        """Malformed viewports fail cleanly."""
        assert main([str(photo), "-o", str(tmp_path / "x.png"), "--viewport", "wide"]) == 1

    def test_unsupported_output_format(self, photo, tmp_path, capsys):
        """An output extension that cannot be written fails without writing."""
        out = tmp_path / "out.webp"

        assert main([str(photo), "-o", str(out)]) == 1
        assert "Unsupported output format" in capsys.readouterr().err
        assert not out.exists()
