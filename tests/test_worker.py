"""Tests for the asyncio background renderer."""

import asyncio

import pytest

from photofilter.buffer import ScaleTarget
from photofilter.params import FilterParameters
from photofilter.pipeline import EditingPipeline
from photofilter.processing.color import apply_color_adjustments
from photofilter.worker import BackgroundRenderer


@pytest.fixture
def renderer():
    """Renderer around a pipeline with a 32x32 target."""
    renderer = BackgroundRenderer(EditingPipeline(target=ScaleTarget(32, 32)))
    yield renderer
    renderer.close()


class TestBackgroundRenderer:
    """Test rendering off the event loop."""

    def test_load_and_set_parameters(self, renderer, gradient_image):
        """Work runs in the executor and updates the pipeline."""

        async def run():
            loaded = await renderer.load_image(gradient_image)
            adjusted = await renderer.set_parameters(FilterParameters(contrast=0.0))
            return loaded, adjusted

        loaded, adjusted = asyncio.run(run())

        assert loaded.size == (32, 24)
        assert adjusted.size == (32, 24)
        assert renderer.pipeline.current_display_image() is adjusted

    def test_superseded_render_returns_none(self, renderer, gradient_image):
        """Only the latest of several rapid changes is shown."""
        latest = FilterParameters(brightness=0.4)

        async def run():
            await renderer.load_image(gradient_image)
            return await asyncio.gather(
                renderer.set_parameters(FilterParameters(brightness=-0.4)),
                renderer.set_parameters(latest),
            )

        first, second = asyncio.run(run())

        assert first is None
        assert second is not None
        assert second == apply_color_adjustments(renderer.pipeline.scaled_image, latest)
        assert renderer.pipeline.params == latest
        stats = renderer.get_stats()
        assert stats["requested"] == 2
        assert stats["completed"] == 1
        assert stats["skipped"] == 1

    def test_set_parameters_before_load(self, renderer):
        """Nothing to render before a load."""
        result = asyncio.run(renderer.set_parameters(FilterParameters(saturation=0.0)))

        assert result is None
        assert renderer.pipeline.params.saturation == 0.0

    def test_loads_are_serialised(self, renderer, gradient_image, random_image):
        """Concurrent loads finish one after the other."""

        async def run():
            return await asyncio.gather(
                renderer.load_image(gradient_image),
                renderer.load_image(random_image),
            )

        asyncio.run(run())

        assert renderer.pipeline.version == 2
        assert renderer.pipeline.original_image is random_image

    def test_viewport_and_export(self, renderer, gradient_image):
        """Viewport changes and exports run in the worker too."""

        async def run():
            await renderer.load_image(gradient_image)
            resized = await renderer.set_viewport(ScaleTarget(16, 16))
            exported = await renderer.export_image()
            return resized, exported

        resized, exported = asyncio.run(run())

        assert resized.size == (16, 12)
        assert exported.size == (64, 48)

    def test_closed_renderer_rejects_work(self, gradient_image):
        """Work submitted after close() fails."""

        async def run():
            async with BackgroundRenderer() as renderer:
                await renderer.load_image(gradient_image)
            with pytest.raises(RuntimeError):
                await renderer.load_image(gradient_image)
            return renderer

        renderer = asyncio.run(run())
        assert renderer.get_stats()["closed"]
