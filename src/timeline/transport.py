"""Transport clock: playhead seeking, scrubbing and loop-region editing.

Pointer input arrives as bar positions (see :meth:`TransportClock.pointer_to_bar`).
The clock is a small state machine; scrubbing and dragging a loop handle
are mutually exclusive, and any gesture ends on release or when the
pointer leaves the timeline. The loop region keeps a minimum length after
every single update.
"""
from __future__ import annotations

import enum
import logging

from domain.models import TransportState

from .config import TempoMap, TimelineConfig

logger = logging.getLogger(__name__)


class TransportMode(enum.Enum):
    IDLE = "idle"
    SCRUBBING = "scrubbing"
    DRAGGING_LOOP_START = "dragging_loop_start"
    DRAGGING_LOOP_END = "dragging_loop_end"


class LoopHandle(enum.Enum):
    START = "start"
    END = "end"


class TransportClock:
    """Owns the transport state and arbitrates between scrub and loop edits."""

    def __init__(
        self,
        state: TransportState | None = None,
        config: TimelineConfig | None = None,
    ) -> None:
        self._config = config or TimelineConfig()
        self._state = (state or TransportState()).model_copy()
        self._mode = TransportMode.IDLE
        # Re-apply the gap in case the configured minimum exceeds the model default.
        self._state = self._with_loop(self._state.loop_start, self._state.loop_end)

    @property
    def state(self) -> TransportState:
        """Return a snapshot of the current transport state."""

        return self._state.model_copy()

    @property
    def mode(self) -> TransportMode:
        return self._mode

    @property
    def playhead_bar(self) -> float:
        return self._state.playhead_bar

    @property
    def loop_enabled(self) -> bool:
        return self._state.loop_enabled

    @property
    def loop_start(self) -> float:
        return self._state.loop_start

    @property
    def loop_end(self) -> float:
        return self._state.loop_end

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------
    def pointer_to_bar(self, pointer_x: float, surface_left: float = 0.0) -> float:
        """Convert a pointer x coordinate on the timeline into a bar position."""

        relative = pointer_x - surface_left - self._config.ruler_offset_px
        return max(0.0, relative / self._config.cell_pixel_width)

    # ------------------------------------------------------------------
    # Seeking
    # ------------------------------------------------------------------
    def seek_to_bar(self, bar: float) -> TransportState:
        self._state = self._state.model_copy(update={"playhead_bar": max(0.0, float(bar))})
        return self.state

    def seek_seconds(self, tempo: TempoMap) -> float:
        """Return the playhead position in seconds for ``tempo``."""

        return tempo.bars_to_seconds(self._state.playhead_bar)

    def tick(
        self,
        bar: float,
        *,
        arrangement_length: float = 0.0,
        use_arrangement: bool = False,
    ) -> float:
        """Resolve the playhead for an elapsed position of ``bar`` bars.

        With looping on, positions at or past the loop end wrap back into
        the loop region. With looping off, in arrangement mode, playback wraps at
        the end of the arrangement.
        """

        bar = max(0.0, float(bar))
        state = self._state
        if state.loop_enabled and bar >= state.loop_end:
            bar = state.loop_start + (bar - state.loop_end) % state.loop_length
        elif not state.loop_enabled and use_arrangement and arrangement_length > 0:
            bar %= arrangement_length
        self.seek_to_bar(bar)
        return bar

    def stop(self) -> TransportState:
        """Return the playhead to the loop start when looping, otherwise to zero."""

        return self.seek_to_bar(self._state.loop_start if self._state.loop_enabled else 0.0)

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------
    def begin_scrub(self, bar: float) -> bool:
        """Start scrubbing at ``bar``; ignored unless the clock is idle."""

        if self._mode is not TransportMode.IDLE:
            logger.debug(f"begin_scrub ignored while {self._mode.value}")
            return False
        self._mode = TransportMode.SCRUBBING
        self.seek_to_bar(bar)
        return True

    def begin_loop_drag(self, handle: LoopHandle) -> bool:
        """Start dragging a loop handle; ignored unless idle with looping on."""

        if self._mode is not TransportMode.IDLE:
            logger.debug(f"begin_loop_drag ignored while {self._mode.value}")
            return False
        if not self._state.loop_enabled:
            logger.debug("begin_loop_drag ignored: loop disabled")
            return False
        self._mode = (
            TransportMode.DRAGGING_LOOP_START
            if handle is LoopHandle.START
            else TransportMode.DRAGGING_LOOP_END
        )
        return True

    def update_position(self, bar: float) -> TransportState:
        """Apply a pointer move according to the active gesture."""

        if self._mode is TransportMode.SCRUBBING:
            return self.seek_to_bar(bar)
        if self._mode is TransportMode.DRAGGING_LOOP_START:
            return self.set_loop_start(bar)
        if self._mode is TransportMode.DRAGGING_LOOP_END:
            return self.set_loop_end(bar)
        return self.state

    def release(self) -> None:
        self._mode = TransportMode.IDLE

    def leave(self) -> None:
        self._mode = TransportMode.IDLE

    # ------------------------------------------------------------------
    # Loop region
    # ------------------------------------------------------------------
    def set_loop_enabled(self, enabled: bool) -> TransportState:
        self._state = self._state.model_copy(update={"loop_enabled": bool(enabled)})
        return self.state

    def toggle_loop(self) -> TransportState:
        return self.set_loop_enabled(not self._state.loop_enabled)

    def set_loop_start(self, bar: float) -> TransportState:
        gap = self._config.min_loop_length
        start = max(0.0, min(float(bar), self._state.loop_end - gap))
        self._state = self._state.model_copy(update={"loop_start": start})
        return self.state

    def set_loop_end(self, bar: float) -> TransportState:
        gap = self._config.min_loop_length
        end = max(float(bar), self._state.loop_start + gap)
        self._state = self._state.model_copy(update={"loop_end": end})
        return self.state

    def fit_loop_to_arrangement(self, arrangement_length: float) -> TransportState:
        """Pull a loop that starts past the end of the arrangement back inside it."""

        if arrangement_length <= 0 or self._state.loop_start < arrangement_length:
            return self.state
        length = self._state.loop_length
        start = max(0.0, arrangement_length - self._config.min_loop_length)
        self._state = self._with_loop(start, start + length)
        return self.state

    def _with_loop(self, start: float, end: float) -> TransportState:
        start = max(0.0, start)
        end = max(end, start + self._config.min_loop_length)
        return self._state.model_copy(update={"loop_start": start, "loop_end": end})
