"""Editing session: scale once, filter on every parameter change."""

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable

from photofilter.buffer import ImageBuffer, ScaleTarget
from photofilter.exceptions import (
    DegenerateImageError,
    PipelineStateError,
    SessionClosedError,
)
from photofilter.inputs import decode_source
from photofilter.params import FilterParameters
from photofilter.processing.color import ColorAdjustmentFilter
from photofilter.processing.scaler import scale

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Lifecycle phase of an editing session."""

    EMPTY = "empty"  # nothing loaded yet
    LOADED = "loaded"  # scaled image cached, display current
    CLOSED = "closed"  # session ended, only load_image is accepted


@dataclass(frozen=True)
class PipelineState:
    """Snapshot of an editing session.

    ``display`` is always the filter applied to ``scaled`` with ``params``.
    """

    phase: Phase = Phase.EMPTY
    original: ImageBuffer | None = None
    scaled: ImageBuffer | None = None
    display: ImageBuffer | None = None
    params: FilterParameters = FilterParameters()
    target: ScaleTarget | None = None
    version: int = 0


@dataclass(frozen=True)
class FilterTicket:
    """A pending filter run against one image version."""

    version: int
    sequence: int
    scaled: ImageBuffer
    params: FilterParameters


DisplayCallback = Callable[[ImageBuffer | None], None]


class EditingPipeline:
    """Session-scoped scale-and-filter pipeline.

    The scaled working image is computed when an image is loaded or the
    viewport changes. Parameter changes only re-run the color filter on that
    cached image. All methods are thread-safe: loads and rescales are
    serialised, and a filter result is only committed if no newer parameter
    change or image replaced it in the meantime.
    """

    def __init__(
        self,
        params: FilterParameters | dict[str, Any] | None = None,
        target: ScaleTarget | None = None,
        color_filter: ColorAdjustmentFilter | None = None,
    ):
        self._default_params = FilterParameters.coerce(params)
        self._requested_params = self._default_params
        self._state = PipelineState(params=self._default_params, target=target)
        self._filter = color_filter or ColorAdjustmentFilter()

        self._lock = threading.RLock()
        self._load_lock = threading.Lock()
        self._sequence = 0
        self._listeners: list[DisplayCallback] = []

        # Statistics
        self._scale_count = 0
        self._filter_count = 0
        self._discarded_count = 0

    @classmethod
    def from_config(cls, config: Any) -> "EditingPipeline":
        """Create a pipeline from a PipelineConfig."""
        return cls(params=config.default_parameters, target=config.scale_target())

    # ------------------------------------------------------------------
    # State accessors

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def version(self) -> int:
        return self.state.version

    @property
    def params(self) -> FilterParameters:
        """Most recently requested parameters."""
        with self._lock:
            return self._requested_params

    @property
    def target(self) -> ScaleTarget | None:
        return self.state.target

    @property
    def scaled_image(self) -> ImageBuffer | None:
        return self.state.scaled

    @property
    def original_image(self) -> ImageBuffer | None:
        return self.state.original

    def current_display_image(self) -> ImageBuffer | None:
        """Filtered working image, for display or saving."""
        return self.state.display

    # ------------------------------------------------------------------
    # Listeners

    def add_display_listener(self, callback: DisplayCallback) -> None:
        """Register a callback invoked with every new display image."""
        with self._lock:
            self._listeners.append(callback)

    def remove_display_listener(self, callback: DisplayCallback) -> None:
        """Unregister a display callback."""
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify(self, image: ImageBuffer | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(image)
            except Exception as e:
                logger.warning(f"Display listener {callback!r} failed: {e}")

    # ------------------------------------------------------------------
    # Transitions

    def load_image(self, source: Any, target: ScaleTarget | None = None) -> ImageBuffer:
        """Start editing a new image.

        Args:
            source: ImageBuffer, Pillow image, numpy array, path, or bytes
            target: New scale target; keeps the current one if omitted

        Returns:
            The new display image

        Raises:
            DecodeError: If the source cannot be interpreted
            DegenerateImageError: If the image has zero width or height
        """
        image = decode_source(source)

        with self._load_lock:
            with self._lock:
                if target is None:
                    target = self._state.target

            scaled = self._scale(image, target)

            with self._lock:
                params = self._requested_params
                display = self._apply_filter(scaled, params)
                self._sequence += 1
                self._state = PipelineState(
                    phase=Phase.LOADED,
                    original=image,
                    scaled=scaled,
                    display=display,
                    params=params,
                    target=target,
                    version=self._state.version + 1,
                )
                version = self._state.version

        logger.info(
            f"Loaded image {image.width}x{image.height} "
            f"(working {scaled.width}x{scaled.height}, version {version})"
        )
        self._notify(display)
        return display

    def set_viewport(self, target: ScaleTarget) -> ImageBuffer | None:
        """Change the scale target, rescaling the loaded image if needed.

        Returns:
            The display image after the change (None if nothing is loaded)

        Raises:
            SessionClosedError: If the session has ended
        """
        with self._load_lock:
            with self._lock:
                self._check_open()
                state = self._state
                if target == state.target:
                    return state.display
                if state.phase is Phase.EMPTY:
                    self._state = replace(state, target=target)
                    return None
                original = state.original

            scaled = self._scale(original, target)

            with self._lock:
                params = self._requested_params
                display = self._apply_filter(scaled, params)
                self._sequence += 1
                self._state = replace(
                    self._state,
                    scaled=scaled,
                    display=display,
                    params=params,
                    target=target,
                    version=self._state.version + 1,
                )

        logger.debug(f"Viewport changed to {target}, working image {scaled.width}x{scaled.height}")
        self._notify(display)
        return display

    def set_parameters(
        self, params: FilterParameters | dict[str, Any]
    ) -> ImageBuffer | None:
        """Re-filter the cached scaled image with new parameters.

        Never rescales. Before an image is loaded the parameters are kept
        for the next load.

        Returns:
            The display image (None if nothing is loaded)

        Raises:
            SessionClosedError: If the session has ended
        """
        ticket = self.prepare_filter(params)
        if ticket is None:
            return None

        display = self.run_filter(ticket)
        if self.commit_filter(ticket, display):
            return display
        return self.current_display_image()

    def reset_parameters(self) -> ImageBuffer | None:
        """Restore the default parameters."""
        return self.set_parameters(self._default_params)

    def end_session(self) -> None:
        """Discard the image; only load_image is accepted afterwards."""
        with self._load_lock:
            with self._lock:
                if self._state.phase is Phase.CLOSED:
                    return
                self._sequence += 1
                self._state = PipelineState(
                    phase=Phase.CLOSED,
                    params=self._requested_params,
                    target=self._state.target,
                    version=self._state.version + 1,
                )

        logger.info("Editing session ended")
        self._notify(None)

    def export_image(self) -> ImageBuffer:
        """Filter the full-resolution original with the current parameters.

        The cached working image and the display are left untouched.

        Raises:
            PipelineStateError: If no image is loaded
        """
        with self._lock:
            self._check_open()
            state = self._state
            if state.phase is not Phase.LOADED:
                raise PipelineStateError("No image loaded")

        exported = self._filter.apply(state.original, state.params)
        logger.info(f"Exported {exported.width}x{exported.height} image")
        return exported

    # ------------------------------------------------------------------
    # Filter tickets

    def prepare_filter(
        self, params: FilterParameters | dict[str, Any]
    ) -> FilterTicket | None:
        """Record a parameter change and return a ticket to render it.

        Any earlier ticket becomes stale. Returns None if no image is loaded.
        """
        params = FilterParameters.coerce(params)
        with self._lock:
            self._check_open()
            self._sequence += 1
            self._requested_params = params

            if self._state.phase is Phase.EMPTY:
                self._state = replace(self._state, params=params)
                return None

            return FilterTicket(
                version=self._state.version,
                sequence=self._sequence,
                scaled=self._state.scaled,
                params=params,
            )

    def is_current(self, ticket: FilterTicket) -> bool:
        """True if no newer parameter change or image superseded ticket."""
        with self._lock:
            return (
                self._state.phase is Phase.LOADED
                and ticket.sequence == self._sequence
                and ticket.version == self._state.version
            )

    def run_filter(self, ticket: FilterTicket) -> ImageBuffer:
        """Render a ticket. Safe to call without holding any lock."""
        return self._apply_filter(ticket.scaled, ticket.params)

    def commit_filter(self, ticket: FilterTicket, display: ImageBuffer) -> bool:
        """Publish a rendered ticket unless it has been superseded.

        Returns:
            True if display became the current display image
        """
        with self._lock:
            if not self.is_current(ticket):
                self._discarded_count += 1
                logger.debug(f"Discarding stale render (sequence {ticket.sequence})")
                return False
            self._state = replace(self._state, params=ticket.params, display=display)

        self._notify(display)
        return True

    # ------------------------------------------------------------------
    # Internals

    def _check_open(self) -> None:
        if self._state.phase is Phase.CLOSED:
            raise SessionClosedError("Editing session has ended; load a new image")

    def _scale(self, image: ImageBuffer, target: ScaleTarget | None) -> ImageBuffer:
        if image.is_empty:
            raise DegenerateImageError(image.width, image.height)

        if target is None:
            return image

        scaled = scale(image, target)
        if scaled is not image:
            with self._lock:
                self._scale_count += 1
        return scaled

    def _apply_filter(self, image: ImageBuffer, params: FilterParameters) -> ImageBuffer:
        with self._lock:
            self._filter_count += 1
        return self._filter.apply(image, params)

    def get_stats(self) -> dict[str, Any]:
        """Get pipeline statistics."""
        with self._lock:
            state = self._state
            return {
                "phase": state.phase.value,
                "version": state.version,
                "original": list(state.original.size) if state.original else None,
                "scaled": list(state.scaled.size) if state.scaled else None,
                "display": list(state.display.size) if state.display else None,
                "target": list(state.target.size) if state.target else None,
                "params": self._requested_params.model_dump(),
                "scale_count": self._scale_count,
                "filter_count": self._filter_count,
                "discarded_count": self._discarded_count,
            }
