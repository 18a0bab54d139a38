"""Multi-stack arrangement of pattern clips.

Clips reference patterns by id only. A clip whose pattern has been deleted
stays in the arrangement; lookups for it simply find nothing. Clips on the
same stack are allowed to overlap: no operation here moves or trims other
clips to make room, and :meth:`ArrangementManager.overlapping_clips`
reports such pairs for renderers that want to flag them.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from domain.constants import DEFAULT_PATTERN_LENGTH
from domain.models import ArrangementClip, Pattern, StackSettings, generate_id
from sequencer.playback import SILENT_ROW, RowGrid

from .config import TimelineConfig

logger = logging.getLogger(__name__)

MISSING_PATTERN_LABEL = "?"


def find_pattern(patterns: Iterable[Pattern], pattern_id: str) -> Pattern | None:
    for pattern in patterns:
        if pattern.id == pattern_id:
            return pattern
    return None


class ArrangementManager:
    """Place, move, duplicate and remove clips across parallel stacks.

    Mutating operations take the current clip list and return a new list.
    Requests naming an unknown clip (or, for :meth:`add_clip`, an unknown
    pattern) return the clips unchanged.
    """

    def __init__(
        self,
        config: TimelineConfig | None = None,
        *,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._config = config or TimelineConfig()
        self._id_factory = id_factory

    @property
    def config(self) -> TimelineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Bar/pixel mapping
    # ------------------------------------------------------------------
    def bar_from_pixels(self, pixel_offset: float, grab_offset: float = 0.0) -> int:
        """Convert a drop position inside a stack lane into a whole bar."""

        bar = math.floor((pixel_offset - grab_offset) / self._config.cell_pixel_width + 0.5)
        return max(0, bar)

    def bar_to_pixels(self, bar: float) -> float:
        return bar * self._config.cell_pixel_width

    def snap_bar(self, bar: float) -> float:
        """Clamp ``bar`` to zero or later and round it to the nearest timeline cell."""

        snap = self._config.bar_snap
        snapped = math.floor(max(0.0, bar) / snap + 0.5) * snap
        return float(snapped)

    # ------------------------------------------------------------------
    # Clip operations
    # ------------------------------------------------------------------
    def add_clip(
        self,
        clips: Sequence[ArrangementClip],
        pattern_id: str,
        stack: int = 0,
        *,
        patterns: Iterable[Pattern],
    ) -> List[ArrangementClip]:
        """Append a clip for ``pattern_id`` after the last clip on ``stack``.

        Addressing a stack beyond the current count creates it.
        """

        pattern = find_pattern(patterns, pattern_id)
        if pattern is None:
            logger.debug(f"add_clip ignored: unknown pattern {pattern_id!r}")
            return list(clips)
        stack = max(0, int(stack))
        if stack >= self.get_stack_count(clips) and clips:
            logger.info(f"Creating arrangement stack {stack}")
        start_bar = max((clip.end_bar for clip in clips if clip.stack == stack), default=0.0)
        clip = ArrangementClip(
            id=self._new_clip_id(clips),
            pattern_id=pattern_id,
            start_bar=start_bar,
            length=pattern.bars,
            stack=stack,
        )
        return [*clips, clip]

    def remove_clip(self, clips: Sequence[ArrangementClip], clip_id: str) -> List[ArrangementClip]:
        remaining = [clip for clip in clips if clip.id != clip_id]
        if len(remaining) == len(clips):
            logger.debug(f"remove_clip ignored: unknown clip {clip_id!r}")
        return remaining

    def move_clip(
        self,
        clips: Sequence[ArrangementClip],
        clip_id: str,
        new_start_bar: float,
        new_stack: int | None = None,
    ) -> List[ArrangementClip]:
        """Relocate a clip; its length never changes and overlaps are left alone."""

        index = self._index_of(clips, clip_id)
        if index < 0:
            logger.debug(f"move_clip ignored: unknown clip {clip_id!r}")
            return list(clips)
        source = clips[index]
        moved = source.model_copy(
            update={
                "start_bar": self.snap_bar(new_start_bar),
                "stack": source.stack if new_stack is None else max(0, int(new_stack)),
            }
        )
        updated = list(clips)
        updated[index] = moved
        return updated

    def duplicate_clip(
        self,
        clips: Sequence[ArrangementClip],
        clip_id: str,
        new_start_bar: float,
        new_stack: int | None = None,
    ) -> List[ArrangementClip]:
        """Place a copy of a clip under a new identity, leaving the source untouched."""

        index = self._index_of(clips, clip_id)
        if index < 0:
            logger.debug(f"duplicate_clip ignored: unknown clip {clip_id!r}")
            return list(clips)
        source = clips[index]
        copy = ArrangementClip(
            id=self._new_clip_id(clips),
            pattern_id=source.pattern_id,
            start_bar=self.snap_bar(new_start_bar),
            length=source.length,
            stack=source.stack if new_stack is None else max(0, int(new_stack)),
        )
        return [*clips, copy]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @staticmethod
    def get_stack_count(clips: Sequence[ArrangementClip]) -> int:
        """Return the highest stack index in use plus one, never less than one."""

        return max((clip.stack for clip in clips), default=0) + 1

    @staticmethod
    def arrangement_length(clips: Sequence[ArrangementClip]) -> float:
        """Return the bar at which the last clip ends (0 for an empty arrangement)."""

        return max((clip.end_bar for clip in clips), default=0.0)

    @staticmethod
    def clips_on_stack(clips: Sequence[ArrangementClip], stack: int) -> List[ArrangementClip]:
        return sorted((clip for clip in clips if clip.stack == stack), key=lambda clip: clip.start_bar)

    @staticmethod
    def active_clip(
        clips: Sequence[ArrangementClip], bar: float, stack: int | None = None
    ) -> ArrangementClip | None:
        """Return the first clip covering ``bar``, optionally limited to one stack."""

        for clip in clips:
            if stack is not None and clip.stack != stack:
                continue
            if clip.covers(bar):
                return clip
        return None

    @staticmethod
    def overlapping_clips(
        clips: Sequence[ArrangementClip],
    ) -> List[Tuple[ArrangementClip, ArrangementClip]]:
        """Return pairs of clips on the same stack whose bar ranges intersect."""

        pairs: List[Tuple[ArrangementClip, ArrangementClip]] = []
        for i, first in enumerate(clips):
            for second in clips[i + 1 :]:
                if first.stack != second.stack:
                    continue
                if first.start_bar < second.end_bar and second.start_bar < first.end_bar:
                    pairs.append((first, second))
        return pairs

    @staticmethod
    def resolve_pattern(clip: ArrangementClip, patterns: Iterable[Pattern]) -> Pattern | None:
        return find_pattern(patterns, clip.pattern_id)

    def clip_label(self, clip: ArrangementClip, patterns: Iterable[Pattern]) -> str:
        pattern = self.resolve_pattern(clip, patterns)
        return pattern.name if pattern is not None else MISSING_PATTERN_LABEL

    def active_row_pattern(
        self,
        clips: Sequence[ArrangementClip],
        patterns: Iterable[Pattern],
        row_type: str,
        bar: float,
        editor_cells: Sequence[bool],
        *,
        use_arrangement: bool = True,
    ) -> List[bool]:
        """Return the hit pattern a row should play at ``bar``.

        Outside arrangement mode, or with no clips, the editor's cells play.
        Gaps, dangling clips and patterns lacking the row play silence.
        """

        if not use_arrangement or not clips:
            return list(editor_cells)
        pattern = self._pattern_at(clips, patterns, bar)
        if pattern is None or row_type not in pattern.rows:
            return [False] * DEFAULT_PATTERN_LENGTH
        return pattern.cells(row_type)

    def active_row_grid(
        self,
        clips: Sequence[ArrangementClip],
        patterns: Iterable[Pattern],
        row_type: str,
        bar: float,
        editor_grid: RowGrid,
        *,
        use_arrangement: bool = True,
    ) -> RowGrid:
        """Return the cells of ``row_type`` at ``bar`` along with their subdivision and base length.

        Gaps and dangling clips fall back to sixteen silent cells at
        subdivision 1.
        """

        if not use_arrangement or not clips:
            return editor_grid
        pattern = self._pattern_at(clips, patterns, bar)
        if pattern is None or row_type not in pattern.rows:
            return SILENT_ROW
        return RowGrid.from_pattern(pattern, row_type)

    # ------------------------------------------------------------------
    # Stack settings
    # ------------------------------------------------------------------
    @staticmethod
    def get_stack_settings(settings: Mapping[int, StackSettings], stack: int) -> StackSettings:
        """Return the settings for ``stack`` or a fresh default record."""

        current = settings.get(stack)
        return current.model_copy() if current is not None else StackSettings()

    def update_stack_settings(
        self,
        settings: Mapping[int, StackSettings],
        stack: int,
        **changes: object,
    ) -> Dict[int, StackSettings]:
        """Merge ``changes`` into a stack's settings, clamping to valid ranges."""

        current = self.get_stack_settings(settings, stack)
        payload: Dict[str, object] = current.model_dump()
        for key, value in changes.items():
            if key not in payload:
                raise KeyError(f"Unknown stack setting {key!r}")
            payload[key] = value
        payload["opacity"] = min(1.0, max(0.0, float(payload["opacity"])))
        payload["rotation"] = min(360.0, max(0.0, float(payload["rotation"])))
        if float(payload["scale"]) <= 0.0:
            logger.debug(f"Ignoring non-positive scale for stack {stack}")
            payload["scale"] = current.scale
        return {**settings, stack: StackSettings.model_validate(payload)}

    @staticmethod
    def reset_stack_settings(settings: Mapping[int, StackSettings], stack: int) -> Dict[int, StackSettings]:
        return {**settings, stack: StackSettings()}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _pattern_at(
        self, clips: Sequence[ArrangementClip], patterns: Iterable[Pattern], bar: float
    ) -> Pattern | None:
        clip = self.active_clip(clips, bar)
        return self.resolve_pattern(clip, patterns) if clip is not None else None

    @staticmethod
    def _index_of(clips: Sequence[ArrangementClip], clip_id: str) -> int:
        for index, clip in enumerate(clips):
            if clip.id == clip_id:
                return index
        return -1

    def _new_clip_id(self, clips: Sequence[ArrangementClip]) -> str:
        taken = {clip.id for clip in clips}
        clip_id: Optional[str] = None
        while clip_id is None or clip_id in taken:
            clip_id = self._id_factory()
        return clip_id
