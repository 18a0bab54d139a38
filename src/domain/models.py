"""Pydantic-powered domain models for orbit sequencer songs.

A song is a library of patterns, an arrangement of clips that reference
those patterns by id, per-stack visual settings and the transport state.
Models validate the invariants that must hold for any stored record;
the editors in :mod:`sequencer` and :mod:`timeline` produce new model
instances rather than mutating the ones they are given.
"""
from __future__ import annotations

import uuid
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .constants import (
    ALL_EFFECT_ROW_TYPES,
    ALL_ROW_TYPES,
    DEFAULT_LOOP_END,
    DEFAULT_LOOP_START,
    DEFAULT_ON_ROWS,
    DEFAULT_PATTERN_BARS,
    DEFAULT_PATTERN_LENGTH,
    DEFAULT_SUBDIVISION,
    EFFECT_ROW_TYPE_INFO,
    MIN_LOOP_LENGTH,
    ROW_TYPE_INFO,
    EffectRowType,
    InstrumentRowType,
    InstrumentType,
    RowTypeInfo,
    cell_count,
)


# Boundary records use camelCase keys; Python code uses field names.
RECORD_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def generate_id() -> str:
    """Return a short random identifier suitable for patterns, rows and clips."""

    return uuid.uuid4().hex[:9]


class InstrumentRow(BaseModel):
    """Sequencer row driving one aspect of the instrument itself."""

    kind: Literal["instrument"] = "instrument"
    id: str
    type: InstrumentRowType
    order: int = Field(..., ge=0, description="Sparse sort key; only relative order matters")

    @property
    def is_effect(self) -> bool:
        return False


class EffectRow(BaseModel):
    """Sequencer row driving an effect applied to the whole instrument."""

    kind: Literal["effect"] = "effect"
    id: str
    type: EffectRowType
    order: int = Field(..., ge=0, description="Sparse sort key; only relative order matters")

    @property
    def is_effect(self) -> bool:
        return True


RowConfig = Annotated[Union[InstrumentRow, EffectRow], Field(discriminator="kind")]


def row_info(row: InstrumentRow | EffectRow) -> RowTypeInfo:
    """Return display metadata for a row variant."""

    match row:
        case InstrumentRow(type=row_type):
            return ROW_TYPE_INFO[row_type]
        case EffectRow(type=row_type):
            return EFFECT_ROW_TYPE_INFO[row_type]
    raise TypeError(f"Unsupported row variant {type(row).__name__}")


def default_visible_rows() -> List[InstrumentRow]:
    """Return one row per instrument row type in declaration order."""

    return [
        InstrumentRow(id=generate_id(), type=row_type, order=index)
        for index, row_type in enumerate(ALL_ROW_TYPES)
    ]


class Pattern(BaseModel):
    """Hit patterns for every row plus the per-row grid resolution."""

    id: str
    name: str
    bars: int = Field(DEFAULT_PATTERN_BARS, gt=0, description="Length in bars when arranged")
    instrument: InstrumentType = "orbital"
    rows: Dict[str, List[bool]] = Field(default_factory=dict)
    subdivisions: Dict[str, float] = Field(default_factory=dict)
    pattern_lengths: Dict[str, int] = Field(default_factory=dict)
    visible_rows: Optional[List[RowConfig]] = None
    visual_settings: Optional[Dict[str, float]] = None

    @model_validator(mode="after")
    def validate_cell_counts(self) -> Pattern:  # type: ignore[override]
        known = set(ALL_ROW_TYPES) | set(ALL_EFFECT_ROW_TYPES)
        for row_type, cells in self.rows.items():
            if row_type not in known:
                raise ValueError(f"Unknown row type {row_type!r}")
            if row_type not in self.subdivisions or row_type not in self.pattern_lengths:
                raise ValueError(f"Row {row_type!r} is missing its subdivision or base length")
            expected = cell_count(self.pattern_lengths[row_type], self.subdivisions[row_type])
            if len(cells) != expected:
                raise ValueError(
                    f"Row {row_type!r} has {len(cells)} cells, expected {expected} "
                    f"for base length {self.pattern_lengths[row_type]} "
                    f"at subdivision {self.subdivisions[row_type]}"
                )
        return self

    def cells(self, row_type: str) -> List[bool]:
        """Return a copy of the hit pattern for ``row_type``."""

        return list(self.rows[row_type])

    def hit_count(self, row_type: str) -> int:
        return sum(1 for cell in self.rows[row_type] if cell)


def create_default_pattern(
    name: str = "Pattern 1", instrument: InstrumentType = "orbital"
) -> Pattern:
    """Build a fresh four-bar pattern with sixteen cells per row."""

    row_types = ALL_ROW_TYPES + ALL_EFFECT_ROW_TYPES
    return Pattern(
        id=generate_id(),
        name=name,
        bars=DEFAULT_PATTERN_BARS,
        instrument=instrument,
        rows={
            row_type: [row_type in DEFAULT_ON_ROWS] * DEFAULT_PATTERN_LENGTH
            for row_type in row_types
        },
        subdivisions={row_type: DEFAULT_SUBDIVISION for row_type in row_types},
        pattern_lengths={row_type: DEFAULT_PATTERN_LENGTH for row_type in row_types},
    )


class ArrangementClip(BaseModel):
    """Placed, non-owning reference to a pattern on one arrangement stack."""

    model_config = RECORD_CONFIG

    id: str
    pattern_id: str
    start_bar: float = Field(0.0, ge=0.0)
    length: float = Field(..., gt=0.0, description="Clip length in bars")
    stack: int = Field(0, ge=0)

    @property
    def end_bar(self) -> float:
        return self.start_bar + self.length

    def covers(self, bar: float) -> bool:
        return self.start_bar <= bar < self.end_bar


class StackSettings(BaseModel):
    """Visual transform applied by the renderer to every clip on a stack."""

    model_config = RECORD_CONFIG

    flip_y: bool = False
    scale: float = Field(1.0, gt=0.0)
    offset_x: float = 0.0
    offset_y: float = 0.0
    opacity: float = Field(1.0, ge=0.0, le=1.0)
    rotation: float = Field(0.0, ge=0.0, le=360.0)


class ChannelState(BaseModel):
    """Mute/solo flags for a single row type."""

    model_config = RECORD_CONFIG

    mute: bool = False
    solo: bool = False


def default_channel_states() -> Dict[str, ChannelState]:
    return {row_type: ChannelState() for row_type in ALL_ROW_TYPES}


class TransportState(BaseModel):
    """Playhead and loop region, expressed in bars."""

    model_config = RECORD_CONFIG

    playhead_bar: float = Field(0.0, ge=0.0)
    loop_enabled: bool = False
    loop_start: float = Field(DEFAULT_LOOP_START, ge=0.0)
    loop_end: float = DEFAULT_LOOP_END

    @model_validator(mode="after")
    def enforce_minimum_loop_length(self) -> TransportState:  # type: ignore[override]
        if self.loop_end < self.loop_start + MIN_LOOP_LENGTH:
            self.loop_end = self.loop_start + MIN_LOOP_LENGTH
        return self

    @property
    def loop_length(self) -> float:
        return self.loop_end - self.loop_start


class Song(BaseModel):
    """Top-level container storing patterns, arrangement and transport."""

    id: str = Field(default_factory=generate_id)
    name: str = "Untitled"
    bpm: float = Field(76.0, gt=0)
    patterns: List[Pattern] = Field(default_factory=list)
    current_pattern_id: Optional[str] = None
    visible_rows: List[RowConfig] = Field(default_factory=default_visible_rows)
    arrangement: List[ArrangementClip] = Field(default_factory=list)
    use_arrangement: bool = True
    stack_settings: Dict[int, StackSettings] = Field(default_factory=dict)
    channel_states: Dict[str, ChannelState] = Field(default_factory=default_channel_states)
    transport: TransportState = Field(default_factory=TransportState)

    @model_validator(mode="after")
    def select_first_pattern(self) -> Song:  # type: ignore[override]
        if self.patterns and self.get_pattern(self.current_pattern_id or "") is None:
            self.current_pattern_id = self.patterns[0].id
        return self

    def get_pattern(self, pattern_id: str) -> Pattern | None:
        """Return the pattern with ``pattern_id`` or ``None`` for dangling references."""

        for pattern in self.patterns:
            if pattern.id == pattern_id:
                return pattern
        return None

    def pattern_index(self, pattern_id: str) -> int:
        for index, pattern in enumerate(self.patterns):
            if pattern.id == pattern_id:
                return index
        return -1

    def add_pattern(self, pattern: Pattern) -> None:
        """Insert or replace a pattern, keeping library order stable."""

        index = self.pattern_index(pattern.id)
        if index >= 0:
            self.patterns[index] = pattern
        else:
            self.patterns.append(pattern)
        if self.current_pattern_id is None:
            self.current_pattern_id = pattern.id

    def duplicate_pattern(self, pattern_id: str) -> Pattern | None:
        """Append a deep copy of ``pattern_id`` under a new identity."""

        source = self.get_pattern(pattern_id)
        if source is None:
            return None
        copy = source.model_copy(
            deep=True, update={"id": generate_id(), "name": f"{source.name} (copy)"}
        )
        self.patterns.append(copy)
        return copy

    def rename_pattern(self, pattern_id: str, name: str) -> bool:
        index = self.pattern_index(pattern_id)
        if index < 0:
            return False
        self.patterns[index] = self.patterns[index].model_copy(update={"name": name})
        return True

    def remove_pattern(self, pattern_id: str) -> bool:
        """Delete a pattern; clips referencing it are left dangling.

        The last remaining pattern cannot be removed.
        """

        index = self.pattern_index(pattern_id)
        if index < 0 or len(self.patterns) <= 1:
            return False
        del self.patterns[index]
        if self.current_pattern_id == pattern_id:
            self.current_pattern_id = self.patterns[0].id
        return True

    def dangling_clips(self) -> List[ArrangementClip]:
        """Return clips whose pattern no longer exists."""

        return [clip for clip in self.arrangement if self.get_pattern(clip.pattern_id) is None]
