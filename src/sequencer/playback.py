"""Cell-position arithmetic used when a pattern is played back.

Time is measured in half-rotations of the orbit. A row completes its base
length in half-rotations regardless of subdivision, so a row at
subdivision 2 steps through its cells twice as fast.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from domain.constants import DEFAULT_PATTERN_LENGTH, DEFAULT_SUBDIVISION
from domain.models import Pattern


@dataclass(frozen=True)
class CellPosition:
    index: int
    progress: float


def _scale(pattern_length: int, base_length: float) -> float:
    if pattern_length <= 0 or base_length <= 0:
        return 0.0
    return pattern_length / base_length


def pattern_position(pattern_length: int, total_half_rotations: float, base_length: float) -> CellPosition:
    """Return the active cell and the progress through it."""

    scaled = total_half_rotations * _scale(pattern_length, base_length)
    if pattern_length <= 0:
        return CellPosition(index=0, progress=0.0)
    return CellPosition(index=math.floor(scaled) % pattern_length, progress=scaled % 1.0)


def passed_cell_count(pattern_length: int, total_half_rotations: float, base_length: float) -> int:
    return math.floor(total_half_rotations * _scale(pattern_length, base_length))


def count_toggles(pattern: Sequence[bool], passed_cells: int) -> int:
    """Count hits crossed after ``passed_cells`` cells of a looping pattern."""

    length = len(pattern)
    if length == 0 or passed_cells <= 0:
        return 0
    cycles, remainder = divmod(passed_cells, length)
    hits_per_cycle = sum(1 for cell in pattern if cell)
    return cycles * hits_per_cycle + sum(1 for cell in pattern[:remainder] if cell)


@dataclass(frozen=True)
class RowGrid:
    """Hit cells of one row together with the grid they were written on."""

    cells: Tuple[bool, ...]
    subdivision: float = DEFAULT_SUBDIVISION
    base_length: int = DEFAULT_PATTERN_LENGTH

    @classmethod
    def from_pattern(cls, pattern: Pattern, row_type: str) -> RowGrid:
        return cls(
            cells=tuple(pattern.rows[row_type]),
            subdivision=pattern.subdivisions[row_type],
            base_length=pattern.pattern_lengths[row_type],
        )

    def position(self, total_half_rotations: float) -> CellPosition:
        return pattern_position(len(self.cells), total_half_rotations, self.base_length)

    def toggles(self, total_half_rotations: float) -> int:
        passed = passed_cell_count(len(self.cells), total_half_rotations, self.base_length)
        return count_toggles(self.cells, passed)


SILENT_ROW = RowGrid(cells=(False,) * DEFAULT_PATTERN_LENGTH)
