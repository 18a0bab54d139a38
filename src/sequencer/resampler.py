"""Nearest-neighbour resampling of boolean hit patterns."""
from __future__ import annotations

from typing import List, Sequence

import numpy as np


def _index_map(old_length: int, new_length: int) -> np.ndarray:
    # Integer arithmetic keeps floor(i / new * old) exact for every i.
    return (np.arange(new_length, dtype=np.int64) * old_length) // new_length


def resize_pattern(pattern: Sequence[bool], new_length: int) -> List[bool]:
    """Resample ``pattern`` to exactly ``new_length`` cells.

    Target cell ``i`` copies source cell ``floor(i / new_length * old_length)``.
    Shrinking can drop hits for good and growing repeats neighbouring
    cells, so a shrink followed by a grow is generally not reversible.
    Negative lengths are treated as zero; an empty source yields all-off
    cells.
    """

    new_length = max(0, int(new_length))
    old_length = len(pattern)
    if new_length == 0:
        return []
    if old_length == 0:
        return [False] * new_length
    source = np.asarray(pattern, dtype=bool)
    return [bool(cell) for cell in source[_index_map(old_length, new_length)]]


def source_indices(old_length: int, new_length: int) -> List[int]:
    """Return the source cell each target cell samples."""

    if old_length <= 0 or new_length <= 0:
        return []
    return [int(index) for index in _index_map(old_length, new_length)]
