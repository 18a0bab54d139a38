"""Timeline geometry and tempo conversion."""
from __future__ import annotations

from dataclasses import dataclass

from domain.constants import MIN_LOOP_LENGTH


@dataclass(frozen=True)
class TimelineConfig:
    """Pixel geometry of the arrangement timeline and loop constraints."""

    cell_pixel_width: float = 32.0
    ruler_offset_px: float = 64.0
    bar_snap: float = 1.0
    min_loop_length: float = MIN_LOOP_LENGTH
    beats_per_bar: int = 4

    def __post_init__(self) -> None:
        if self.cell_pixel_width <= 0:
            raise ValueError("cell_pixel_width must be positive")
        if self.bar_snap <= 0:
            raise ValueError("bar_snap must be positive")
        if self.min_loop_length <= 0:
            raise ValueError("min_loop_length must be positive")


@dataclass
class TempoMap:
    """Simple tempo map for converting beats/bars to seconds."""

    tempo_bpm: float = 120.0
    beats_per_bar: int = 4

    def beats_to_seconds(self, beats: float) -> float:
        return (60.0 / self.tempo_bpm) * beats

    def bars_to_seconds(self, bars: float) -> float:
        return self.beats_to_seconds(bars * self.beats_per_bar)

    def seconds_to_bars(self, seconds: float) -> float:
        return seconds * (self.tempo_bpm / 60.0) / self.beats_per_bar
