"""Conversion between hit patterns and MIDI note lists for piano-roll editing.

Every row type owns one drum-mode pitch starting at C2. A row's base length
is measured in beats, so a cell spans ``base_length * ticks_per_beat / cells``
ticks whatever the subdivision.
"""
from __future__ import annotations

import logging
import math
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Literal, Mapping, Union

from pydantic import BaseModel, Field

from domain.constants import ALL_EFFECT_ROW_TYPES, ALL_ROW_TYPES
from domain.models import RECORD_CONFIG, Pattern, generate_id

logger = logging.getLogger(__name__)

TICKS_PER_BEAT = 480
DEFAULT_VELOCITY = 100
NOTE_LENGTH_RATIO = 0.9
FIRST_DRUM_NOTE = 36  # C2

ROW_TO_MIDI_NOTE: Mapping[str, int] = MappingProxyType(
    {
        row_type: FIRST_DRUM_NOTE + offset
        for offset, row_type in enumerate(ALL_ROW_TYPES + ALL_EFFECT_ROW_TYPES)
    }
)
MIDI_NOTE_TO_ROW: Mapping[int, str] = MappingProxyType(
    {note: row_type for row_type, note in ROW_TO_MIDI_NOTE.items()}
)

QuantizeValue = Union[Literal[1, 2, 4, 8, 16, 32], Literal["off", "triplet-8", "triplet-16"]]


class MidiNote(BaseModel):
    """A single note event on the piano roll."""

    model_config = RECORD_CONFIG

    id: str = Field(default_factory=generate_id)
    pitch: int = Field(..., ge=0, le=127)
    start_tick: int = Field(..., ge=0)
    duration: int = Field(..., ge=0)
    velocity: int = Field(DEFAULT_VELOCITY, ge=0, le=127)


class MidiPattern(BaseModel):
    """Notes of one pattern plus the timing resolution they were written at."""

    model_config = RECORD_CONFIG

    id: str = Field(default_factory=generate_id)
    name: str = "Pattern"
    notes: List[MidiNote] = Field(default_factory=list)
    bars: int = Field(4, gt=0)
    ticks_per_beat: int = Field(TICKS_PER_BEAT, gt=0)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def quantize_ticks(quantize: QuantizeValue, ticks_per_beat: int = TICKS_PER_BEAT) -> int:
    """Return the grid size in ticks for a note division (4 = quarter note)."""

    if quantize == "off":
        return 1
    if quantize == "triplet-8":
        return _round_half_up(ticks_per_beat / 3)
    if quantize == "triplet-16":
        return _round_half_up(ticks_per_beat / 6)
    return _round_half_up(ticks_per_beat * 4 / quantize)


def quantize_tick(tick: float, quantize: QuantizeValue, ticks_per_beat: int = TICKS_PER_BEAT) -> int:
    grid = quantize_ticks(quantize, ticks_per_beat)
    return _round_half_up(tick / grid) * grid


def ticks_per_cell(base_length: int, cells: int, ticks_per_beat: int = TICKS_PER_BEAT) -> float:
    return base_length * ticks_per_beat / max(1, cells)


def pattern_to_notes(
    pattern: Pattern,
    *,
    ticks_per_beat: int = TICKS_PER_BEAT,
    id_factory: Callable[[], str] = generate_id,
) -> List[MidiNote]:
    """Turn every hit into a short note on its row's pitch."""

    notes: List[MidiNote] = []
    for row_type, pitch in ROW_TO_MIDI_NOTE.items():
        cells = pattern.rows.get(row_type)
        if cells is None:
            continue
        span = ticks_per_cell(pattern.pattern_lengths[row_type], len(cells), ticks_per_beat)
        for index, hit in enumerate(cells):
            if hit:
                notes.append(
                    MidiNote(
                        id=id_factory(),
                        pitch=pitch,
                        start_tick=_round_half_up(index * span),
                        duration=_round_half_up(span * NOTE_LENGTH_RATIO),
                    )
                )
    return notes


def pattern_to_midi(
    pattern: Pattern,
    *,
    ticks_per_beat: int = TICKS_PER_BEAT,
    id_factory: Callable[[], str] = generate_id,
) -> MidiPattern:
    return MidiPattern(
        id=id_factory(),
        name=pattern.name,
        notes=pattern_to_notes(pattern, ticks_per_beat=ticks_per_beat, id_factory=id_factory),
        bars=pattern.bars,
        ticks_per_beat=ticks_per_beat,
    )


def notes_to_pattern(
    pattern: Pattern,
    notes: Iterable[MidiNote],
    *,
    ticks_per_beat: int = TICKS_PER_BEAT,
) -> Pattern:
    """Rebuild the hit rows of ``pattern`` from ``notes``.

    Each note lands on the cell nearest its start tick. Rows keep their
    grid; notes outside a row's cells or on unmapped pitches are dropped.
    """

    by_row: Dict[str, List[MidiNote]] = {}
    unmapped = 0
    for note in notes:
        row_type = MIDI_NOTE_TO_ROW.get(note.pitch)
        if row_type is None or row_type not in pattern.rows:
            unmapped += 1
            continue
        by_row.setdefault(row_type, []).append(note)

    rows: Dict[str, List[bool]] = {}
    dropped = 0
    for row_type, cells in pattern.rows.items():
        total = len(cells)
        span = ticks_per_cell(pattern.pattern_lengths[row_type], total, ticks_per_beat)
        rebuilt = [False] * total
        for note in by_row.get(row_type, []):
            index = _round_half_up(note.start_tick / span)
            if 0 <= index < total:
                rebuilt[index] = True
            else:
                dropped += 1
        rows[row_type] = rebuilt

    if unmapped or dropped:
        logger.debug(
            f"Ignored {unmapped} note(s) on unmapped pitches and {dropped} outside the grid "
            f"for pattern {pattern.id!r}"
        )
    return Pattern.model_validate({**pattern.model_dump(), "rows": rows})
