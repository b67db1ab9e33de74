"""Asyncio front-end that renders off the event loop thread."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from photofilter.buffer import ImageBuffer, ScaleTarget
from photofilter.params import FilterParameters
from photofilter.pipeline import EditingPipeline, FilterTicket

logger = logging.getLogger(__name__)


class BackgroundRenderer:
    """Run pipeline work in a thread so input handling never blocks.

    Only the latest parameter change matters: a render that has been
    superseded before it starts is skipped, and one superseded while running
    is discarded. Loads are serialised.
    """

    def __init__(self, pipeline: EditingPipeline | None = None, max_workers: int = 1):
        self.pipeline = pipeline or EditingPipeline()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="photofilter-render"
        )
        self._load_lock = asyncio.Lock()
        self._closed = False

        # Statistics
        self._requested = 0
        self._skipped = 0
        self._completed = 0

    async def load_image(
        self, source: Any, target: ScaleTarget | None = None
    ) -> ImageBuffer:
        """Decode, scale and filter a new image in the worker thread."""
        async with self._load_lock:
            return await self._run(self.pipeline.load_image, source, target)

    async def set_viewport(self, target: ScaleTarget) -> ImageBuffer | None:
        """Rescale for a new viewport in the worker thread."""
        async with self._load_lock:
            return await self._run(self.pipeline.set_viewport, target)

    async def set_parameters(
        self, params: FilterParameters | dict[str, Any]
    ) -> ImageBuffer | None:
        """Render new parameters.

        Returns:
            The new display image, or None if nothing is loaded or a newer
            call superseded this one
        """
        self._requested += 1
        ticket = self.pipeline.prepare_filter(params)
        if ticket is None:
            return None

        display = await self._run(self._render, ticket)
        if display is None:
            self._skipped += 1
            return None

        if not self.pipeline.commit_filter(ticket, display):
            self._skipped += 1
            return None

        self._completed += 1
        return display

    async def export_image(self) -> ImageBuffer:
        """Filter the full-resolution original in the worker thread."""
        return await self._run(self.pipeline.export_image)

    def _render(self, ticket: FilterTicket) -> ImageBuffer | None:
        if not self.pipeline.is_current(ticket):
            logger.debug(f"Skipping superseded render (sequence {ticket.sequence})")
            return None
        return self.pipeline.run_filter(ticket)

    async def _run(self, func: Any, *args: Any) -> Any:
        if self._closed:
            raise RuntimeError("Renderer is closed")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    def close(self) -> None:
        """Stop the worker thread, dropping queued renders."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.debug("Background renderer closed")

    async def __aenter__(self) -> "BackgroundRenderer":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def get_stats(self) -> dict[str, Any]:
        """Get renderer statistics."""
        return {
            "closed": self._closed,
            "requested": self._requested,
            "skipped": self._skipped,
            "completed": self._completed,
            "pipeline": self.pipeline.get_stats(),
        }
