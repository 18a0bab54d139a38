"""Session controller owning the editable song.

The controller is the only place holding mutable song state. Each call
hands the relevant slice to the pure editors/managers and stores the
returned next state, so the UI layer only ever talks to this object.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from domain.models import (
    ArrangementClip,
    ChannelState,
    Pattern,
    RowConfig,
    Song,
    StackSettings,
    create_default_pattern,
)
from sequencer.channels import is_channel_active, toggle_mute, toggle_solo
from sequencer.midi import MidiNote, MidiPattern, notes_to_pattern, pattern_to_midi
from sequencer.pattern_editor import PaintStroke, PatternEditor
from sequencer.playback import SILENT_ROW, RowGrid
from sequencer.quantizer import quantize_parameter
from sequencer.rows import RowConfigManager

from .arrangement import ArrangementManager
from .config import TempoMap, TimelineConfig
from .transport import LoopHandle, TransportClock

logger = logging.getLogger(__name__)


class SessionController:
    """Coordinate pattern, row, arrangement and transport edits for one song."""

    def __init__(
        self,
        song: Song | None = None,
        *,
        config: TimelineConfig | None = None,
        editor: PatternEditor | None = None,
        rows: RowConfigManager | None = None,
        arrangement: ArrangementManager | None = None,
    ) -> None:
        self._song = song.model_copy(deep=True) if song is not None else Song()
        if not self._song.patterns:
            self._song.add_pattern(create_default_pattern("Pattern 1"))
        self._config = config or TimelineConfig()
        self._editor = editor or PatternEditor()
        self._rows = rows or RowConfigManager()
        self._arrangement = arrangement or ArrangementManager(self._config)
        self._clock = TransportClock(self._song.transport, self._config)
        self._stroke: PaintStroke | None = None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    @property
    def song(self) -> Song:
        """Return a deep snapshot of the song including the live transport state."""

        snapshot = self._song.model_copy(deep=True)
        snapshot.transport = self._clock.state
        return snapshot

    @property
    def clock(self) -> TransportClock:
        return self._clock

    @property
    def arrangement_manager(self) -> ArrangementManager:
        return self._arrangement

    @property
    def current_pattern(self) -> Pattern:
        pattern = self._song.get_pattern(self._song.current_pattern_id or "")
        if pattern is None:
            pattern = self._song.patterns[0]
        return pattern

    @property
    def clips(self) -> List[ArrangementClip]:
        return list(self._song.arrangement)

    @property
    def visible_rows(self) -> List[RowConfig]:
        return self._rows.ordered(self._song.visible_rows)

    # ------------------------------------------------------------------
    # Pattern library
    # ------------------------------------------------------------------
    def add_pattern(self, name: str | None = None) -> Pattern:
        pattern = create_default_pattern(name or f"Pattern {len(self._song.patterns) + 1}")
        self._save_rows()
        self._song.add_pattern(pattern)
        self._song.current_pattern_id = pattern.id
        return pattern

    def duplicate_pattern(self, pattern_id: str | None = None) -> Pattern | None:
        self._save_rows()
        copy = self._song.duplicate_pattern(pattern_id or self.current_pattern.id)
        if copy is not None:
            self._song.current_pattern_id = copy.id
        return copy

    def rename_pattern(self, pattern_id: str, name: str) -> bool:
        return self._song.rename_pattern(pattern_id, name)

    def delete_pattern(self, pattern_id: str) -> bool:
        """Delete a pattern; clips that referenced it stay and resolve to nothing."""

        removed = self._song.remove_pattern(pattern_id)
        if not removed:
            logger.debug(f"delete_pattern ignored for {pattern_id!r}")
            return False
        orphaned = sum(1 for clip in self._song.arrangement if clip.pattern_id == pattern_id)
        if orphaned:
            logger.info(f"Pattern {pattern_id!r} deleted, {orphaned} clip(s) now reference a missing pattern")
        return True

    def switch_to_pattern(self, pattern_id: str) -> Pattern | None:
        pattern = self._song.get_pattern(pattern_id)
        if pattern is None:
            logger.debug(f"switch_to_pattern ignored: unknown pattern {pattern_id!r}")
            return None
        self._save_rows()
        self._song.current_pattern_id = pattern_id
        if pattern.visible_rows:
            self._song.visible_rows = list(pattern.visible_rows)
        return self.current_pattern

    # ------------------------------------------------------------------
    # Pattern editing
    # ------------------------------------------------------------------
    def toggle_cell(self, row_type: str, index: int) -> Pattern:
        return self._store(self._editor.toggle_cell(self.current_pattern, row_type, index))

    def press_cell(self, row_type: str, index: int) -> Pattern:
        """Start a paint stroke on a cell, toggling it."""

        pattern, self._stroke = self._editor.begin_stroke(self.current_pattern, row_type, index)
        return self._store(pattern)

    def enter_cell(self, row_type: str, index: int) -> Pattern:
        """Continue the active paint stroke over another cell."""

        return self._store(
            self._editor.continue_stroke(self.current_pattern, self._stroke, row_type, index)
        )

    def release_cells(self) -> None:
        self._stroke = None

    def cycle_subdivision(self, row_type: str) -> Pattern:
        return self._store(self._editor.cycle_subdivision(self.current_pattern, row_type))

    def cycle_pattern_length(self, row_type: str) -> Pattern:
        return self._store(self._editor.cycle_pattern_length(self.current_pattern, row_type))

    def clear_row(self, row_type: str) -> Pattern:
        return self._store(self._editor.clear_row(self.current_pattern, row_type))

    def set_bars(self, bars: int) -> Pattern:
        """Change the current pattern's length in bars; placed clips keep their length."""

        return self._store(self._editor.set_bars(self.current_pattern, bars))

    def update_visual_settings(self, **settings: float) -> Dict[str, float]:
        """Quantize and merge visual parameters into the current pattern."""

        merged = dict(self.current_pattern.visual_settings or {})
        for name, value in settings.items():
            merged[name] = quantize_parameter(name, value)
        self._store(self.current_pattern.model_copy(update={"visual_settings": merged}))
        return dict(merged)

    def export_midi(self) -> MidiPattern:
        return pattern_to_midi(self.current_pattern)

    def import_midi(self, notes: Iterable[MidiNote]) -> Pattern:
        """Replace the current pattern's hits with the given piano-roll notes."""

        return self._store(notes_to_pattern(self.current_pattern, notes))

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------
    def add_row(self, row_type: str) -> List[RowConfig]:
        return self._store_rows(self._rows.add_row(self._song.visible_rows, row_type))

    def add_effect_row(self, row_type: str) -> List[RowConfig]:
        return self._store_rows(self._rows.add_effect_row(self._song.visible_rows, row_type))

    def add_effect(self, effect: str) -> List[RowConfig]:
        return self._store_rows(self._rows.add_effect(self._song.visible_rows, effect))

    def remove_row(self, row_id: str) -> List[RowConfig]:
        return self._store_rows(self._rows.remove_row(self._song.visible_rows, row_id))

    def move_row_up(self, row_id: str) -> List[RowConfig]:
        return self._store_rows(self._rows.move_row_up(self._song.visible_rows, row_id))

    def move_row_down(self, row_id: str) -> List[RowConfig]:
        return self._store_rows(self._rows.move_row_down(self._song.visible_rows, row_id))

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------
    def toggle_mute(self, channel: str) -> Dict[str, ChannelState]:
        self._song.channel_states = toggle_mute(self._song.channel_states, channel)
        return dict(self._song.channel_states)

    def toggle_solo(self, channel: str) -> Dict[str, ChannelState]:
        self._song.channel_states = toggle_solo(self._song.channel_states, channel)
        return dict(self._song.channel_states)

    def is_channel_active(self, channel: str) -> bool:
        return is_channel_active(self._song.channel_states, channel)

    # ------------------------------------------------------------------
    # Arrangement
    # ------------------------------------------------------------------
    def add_clip(self, pattern_id: str, stack: int = 0) -> List[ArrangementClip]:
        return self._store_clips(
            self._arrangement.add_clip(
                self._song.arrangement, pattern_id, stack, patterns=self._song.patterns
            )
        )

    def add_stack(self, pattern_id: str | None = None) -> List[ArrangementClip]:
        """Open a new stack holding one clip of ``pattern_id`` (default: first pattern)."""

        stack = self._arrangement.get_stack_count(self._song.arrangement)
        return self.add_clip(pattern_id or self._song.patterns[0].id, stack)

    def remove_clip(self, clip_id: str) -> List[ArrangementClip]:
        return self._store_clips(self._arrangement.remove_clip(self._song.arrangement, clip_id))

    def move_clip(
        self, clip_id: str, new_start_bar: float, new_stack: int | None = None
    ) -> List[ArrangementClip]:
        return self._store_clips(
            self._arrangement.move_clip(self._song.arrangement, clip_id, new_start_bar, new_stack)
        )

    def duplicate_clip(
        self, clip_id: str, new_start_bar: float, new_stack: int | None = None
    ) -> List[ArrangementClip]:
        return self._store_clips(
            self._arrangement.duplicate_clip(self._song.arrangement, clip_id, new_start_bar, new_stack)
        )

    def drop_clip(
        self,
        clip_id: str,
        drop_x: float,
        grab_offset: float,
        stack: int,
        *,
        duplicate: bool = False,
    ) -> List[ArrangementClip]:
        """Move (or duplicate) a clip dropped at ``drop_x`` pixels within a stack lane."""

        bar = self._arrangement.bar_from_pixels(drop_x, grab_offset)
        if duplicate:
            return self.duplicate_clip(clip_id, bar, stack)
        return self.move_clip(clip_id, bar, stack)

    def get_stack_count(self) -> int:
        return self._arrangement.get_stack_count(self._song.arrangement)

    def arrangement_length(self) -> float:
        return self._arrangement.arrangement_length(self._song.arrangement)

    def set_use_arrangement(self, enabled: bool) -> None:
        self._song.use_arrangement = bool(enabled)

    def active_row_pattern(self, row_type: str, bar: float) -> List[bool]:
        """Return the cells ``row_type`` should play at ``bar``."""

        return self._arrangement.active_row_pattern(
            self._song.arrangement,
            self._song.patterns,
            row_type,
            bar,
            self.current_pattern.rows.get(row_type, []),
            use_arrangement=self._song.use_arrangement,
        )

    def active_row_grid(self, row_type: str, bar: float) -> RowGrid:
        """Return the cells and grid ``row_type`` should play at ``bar``."""

        current = self.current_pattern
        editor_grid = RowGrid.from_pattern(current, row_type) if row_type in current.rows else SILENT_ROW
        return self._arrangement.active_row_grid(
            self._song.arrangement,
            self._song.patterns,
            row_type,
            bar,
            editor_grid,
            use_arrangement=self._song.use_arrangement,
        )

    def get_stack_settings(self, stack: int) -> StackSettings:
        return self._arrangement.get_stack_settings(self._song.stack_settings, stack)

    def update_stack_settings(self, stack: int, **changes: object) -> StackSettings:
        self._song.stack_settings = self._arrangement.update_stack_settings(
            self._song.stack_settings, stack, **changes
        )
        return self.get_stack_settings(stack)

    def reset_stack_settings(self, stack: int) -> StackSettings:
        self._song.stack_settings = self._arrangement.reset_stack_settings(self._song.stack_settings, stack)
        return self.get_stack_settings(stack)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def press_ruler(self, pointer_x: float, surface_left: float = 0.0) -> bool:
        return self._clock.begin_scrub(self._clock.pointer_to_bar(pointer_x, surface_left))

    def press_loop_handle(self, handle: LoopHandle) -> bool:
        return self._clock.begin_loop_drag(handle)

    def move_pointer(self, pointer_x: float, surface_left: float = 0.0) -> None:
        self._clock.update_position(self._clock.pointer_to_bar(pointer_x, surface_left))

    def release_pointer(self) -> None:
        self._clock.release()

    def pointer_left(self) -> None:
        self._clock.leave()

    def tick(self, elapsed_bars: float) -> float:
        """Advance the playhead for the audio/animation driver."""

        return self._clock.tick(
            elapsed_bars,
            arrangement_length=self.arrangement_length(),
            use_arrangement=self._song.use_arrangement,
        )

    def tick_seconds(self, elapsed_seconds: float) -> float:
        """Advance the playhead for a driver that counts elapsed seconds."""

        return self.tick(self._tempo().seconds_to_bars(elapsed_seconds))

    def seek_seconds(self) -> float:
        return self._clock.seek_seconds(self._tempo())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _store(self, pattern: Pattern) -> Pattern:
        self._song.add_pattern(pattern)
        return pattern

    def _store_rows(self, rows: List[RowConfig]) -> List[RowConfig]:
        self._song.visible_rows = list(rows)
        self._save_rows()
        return list(rows)

    def _save_rows(self) -> None:
        # The row layout belongs to the pattern being edited.
        self._store(self.current_pattern.model_copy(update={"visible_rows": list(self._song.visible_rows)}))

    def _tempo(self) -> TempoMap:
        return TempoMap(self._song.bpm, self._config.beats_per_bar)

    def _store_clips(self, clips: List[ArrangementClip]) -> List[ArrangementClip]:
        self._song.arrangement = list(clips)
        self._clock.fit_loop_to_arrangement(self.arrangement_length())
        return list(clips)
