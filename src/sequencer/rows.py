"""Ordered management of the sequencer rows shown in the pattern editor."""
from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from domain.constants import EFFECT_INFO
from domain.models import EffectRow, InstrumentRow, generate_id

logger = logging.getLogger(__name__)

Row = InstrumentRow | EffectRow


class RowConfigManager:
    """Add, remove and reorder rows, returning a new ordered row list each time.

    ``order`` values are sparse: removing a row never renumbers the others,
    and moving a row swaps its order value with its neighbour's.
    """

    def __init__(self, id_factory: Callable[[], str] = generate_id) -> None:
        self._id_factory = id_factory

    @staticmethod
    def ordered(rows: Sequence[Row]) -> List[Row]:
        """Return ``rows`` sorted by their order key."""

        return sorted(rows, key=lambda row: row.order)

    @staticmethod
    def next_order(rows: Sequence[Row]) -> int:
        return max((row.order for row in rows), default=-1) + 1

    def add_row(self, rows: Sequence[Row], row_type: str) -> List[Row]:
        """Append an instrument row of ``row_type``."""

        row = InstrumentRow(id=self._id_factory(), type=row_type, order=self.next_order(rows))
        return self.ordered([*rows, row])

    def add_effect_row(self, rows: Sequence[Row], row_type: str) -> List[Row]:
        """Append an effect row of ``row_type``."""

        row = EffectRow(id=self._id_factory(), type=row_type, order=self.next_order(rows))
        return self.ordered([*rows, row])

    def add_effect(self, rows: Sequence[Row], effect: str) -> List[Row]:
        """Append every row belonging to the ``effect`` group."""

        updated: List[Row] = list(rows)
        for row_type in EFFECT_INFO[effect].rows:
            updated = self.add_effect_row(updated, row_type)
        return updated

    def remove_row(self, rows: Sequence[Row], row_id: str) -> List[Row]:
        remaining = [row for row in rows if row.id != row_id]
        if len(remaining) == len(rows):
            logger.debug(f"remove_row ignored: unknown row {row_id!r}")
        return self.ordered(remaining)

    def move_row_up(self, rows: Sequence[Row], row_id: str) -> List[Row]:
        return self._swap_with_neighbour(rows, row_id, -1)

    def move_row_down(self, rows: Sequence[Row], row_id: str) -> List[Row]:
        return self._swap_with_neighbour(rows, row_id, 1)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _swap_with_neighbour(self, rows: Sequence[Row], row_id: str, step: int) -> List[Row]:
        ordered = self.ordered(rows)
        index = next((i for i, row in enumerate(ordered) if row.id == row_id), -1)
        neighbour = index + step
        if index < 0 or not 0 <= neighbour < len(ordered):
            return ordered
        current, other = ordered[index], ordered[neighbour]
        ordered[index] = other.model_copy(update={"order": current.order})
        ordered[neighbour] = current.model_copy(update={"order": other.order})
        return self.ordered(ordered)
