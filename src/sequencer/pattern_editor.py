"""Pattern editing helpers for the step sequencer grid."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

from domain.constants import PATTERN_LENGTH_OPTIONS, SUBDIVISION_OPTIONS, cell_count
from domain.models import Pattern

from .resampler import resize_pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaintStroke:
    """Drag-painting state: every cell entered on ``row_type`` becomes ``value``."""

    row_type: str
    value: bool


def _next_option(options: Sequence[Any], current: Any) -> Any:
    try:
        index = list(options).index(current)
    except ValueError:
        index = -1
    return options[(index + 1) % len(options)]


class PatternEditor:
    """Produce edited copies of patterns while keeping rows and grids in sync.

    Every method takes a :class:`Pattern` snapshot and returns a new one;
    the snapshot passed in is never modified. Grid changes resize a row and
    record its new subdivision/base length in a single new pattern, so no
    caller can observe a row whose cell count disagrees with its grid.
    """

    def __init__(
        self,
        *,
        subdivision_options: Sequence[float] = SUBDIVISION_OPTIONS,
        length_options: Sequence[int] = PATTERN_LENGTH_OPTIONS,
    ) -> None:
        if not subdivision_options or not length_options:
            raise ValueError("subdivision and length options must not be empty")
        self._subdivision_options = tuple(float(option) for option in subdivision_options)
        self._length_options = tuple(int(option) for option in length_options)

    @property
    def subdivision_options(self) -> tuple[float, ...]:
        return self._subdivision_options

    @property
    def length_options(self) -> tuple[int, ...]:
        return self._length_options

    # ------------------------------------------------------------------
    # Cell edits
    # ------------------------------------------------------------------
    def toggle_cell(self, pattern: Pattern, row_type: str, index: int) -> Pattern:
        """Flip a single cell."""

        cells = self._cells(pattern, row_type)
        self._check_index(cells, row_type, index)
        return self.paint_cell(pattern, row_type, index, not cells[index])

    def paint_cell(self, pattern: Pattern, row_type: str, index: int, value: bool) -> Pattern:
        """Force a single cell to ``value``."""

        cells = self._cells(pattern, row_type)
        self._check_index(cells, row_type, index)
        if cells[index] == value:
            return pattern
        cells[index] = value
        return self._commit(pattern, rows={**pattern.rows, row_type: cells})

    def begin_stroke(
        self, pattern: Pattern, row_type: str, index: int
    ) -> tuple[Pattern, PaintStroke]:
        """Toggle the pressed cell and remember the value to paint while dragging."""

        updated = self.toggle_cell(pattern, row_type, index)
        return updated, PaintStroke(row_type=row_type, value=updated.rows[row_type][index])

    def continue_stroke(
        self, pattern: Pattern, stroke: PaintStroke | None, row_type: str, index: int
    ) -> Pattern:
        """Paint the entered cell if it lies on the stroke's row."""

        if stroke is None or stroke.row_type != row_type:
            return pattern
        return self.paint_cell(pattern, row_type, index, stroke.value)

    def clear_row(self, pattern: Pattern, row_type: str) -> Pattern:
        cells = self._cells(pattern, row_type)
        return self._commit(pattern, rows={**pattern.rows, row_type: [False] * len(cells)})

    def set_bars(self, pattern: Pattern, bars: int) -> Pattern:
        return self._commit(pattern, bars=bars)

    # ------------------------------------------------------------------
    # Grid edits
    # ------------------------------------------------------------------
    def cycle_subdivision(self, pattern: Pattern, row_type: str) -> Pattern:
        """Advance the row to the next subdivision option, resampling its cells."""

        subdivision = _next_option(self._subdivision_options, pattern.subdivisions[row_type])
        return self.set_subdivision(pattern, row_type, subdivision)

    def cycle_pattern_length(self, pattern: Pattern, row_type: str) -> Pattern:
        """Advance the row to the next base length option, resampling its cells."""

        base_length = _next_option(self._length_options, pattern.pattern_lengths[row_type])
        return self.set_pattern_length(pattern, row_type, base_length)

    def set_subdivision(self, pattern: Pattern, row_type: str, subdivision: float) -> Pattern:
        return self._regrid(pattern, row_type, pattern.pattern_lengths[row_type], float(subdivision))

    def set_pattern_length(self, pattern: Pattern, row_type: str, base_length: int) -> Pattern:
        return self._regrid(pattern, row_type, int(base_length), pattern.subdivisions[row_type])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _cells(pattern: Pattern, row_type: str) -> List[bool]:
        if row_type not in pattern.rows:
            raise KeyError(f"Pattern {pattern.id!r} has no row {row_type!r}")
        return pattern.cells(row_type)

    @staticmethod
    def _check_index(cells: Sequence[bool], row_type: str, index: int) -> None:
        if index < 0 or index >= len(cells):
            raise IndexError(f"Cell index {index} out of range for row {row_type!r} of length {len(cells)}")

    def _regrid(self, pattern: Pattern, row_type: str, base_length: int, subdivision: float) -> Pattern:
        cells = self._cells(pattern, row_type)
        target = cell_count(base_length, subdivision)
        logger.debug(
            f"Regridding {row_type!r} of pattern {pattern.id!r}: "
            f"{len(cells)} -> {target} cells (base {base_length}, subdivision {subdivision:g})"
        )
        return self._commit(
            pattern,
            rows={**pattern.rows, row_type: resize_pattern(cells, target)},
            subdivisions={**pattern.subdivisions, row_type: subdivision},
            pattern_lengths={**pattern.pattern_lengths, row_type: base_length},
        )

    @staticmethod
    def _commit(pattern: Pattern, **update: Any) -> Pattern:
        # Re-validate so the cell-count invariant is checked on the new snapshot.
        return Pattern.model_validate({**pattern.model_dump(), **update})
