"""Conversion between songs and the camelCase records stored by the host app.

Patterns flatten their per-row hit lists into ``<rowType>Pattern`` keys;
every other record is a straightforward camelCase rendering of the model.
Older records are accepted: clips without ``stack`` land on stack 0 and
patterns without effect rows gain empty sixteen-cell rows.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping

from .constants import (
    ALL_EFFECT_ROW_TYPES,
    ALL_ROW_TYPES,
    DEFAULT_PATTERN_LENGTH,
    DEFAULT_SUBDIVISION,
    is_effect_row_type,
)
from .models import (
    ArrangementClip,
    ChannelState,
    EffectRow,
    InstrumentRow,
    Pattern,
    Song,
    StackSettings,
    TransportState,
)

logger = logging.getLogger(__name__)

PATTERN_KEY_SUFFIX = "Pattern"


class SongFormatError(ValueError):
    """Raised when a stored record cannot be turned into a valid song."""


def row_to_record(row: InstrumentRow | EffectRow) -> Dict[str, Any]:
    return {"id": row.id, "type": row.type, "isEffect": row.is_effect, "order": row.order}


def record_to_row(record: Mapping[str, Any], default_order: int = 0) -> InstrumentRow | EffectRow:
    is_effect = record.get("isEffect")
    if is_effect is None:
        is_effect = is_effect_row_type(record["type"])
    row_class = EffectRow if is_effect else InstrumentRow
    return row_class(
        id=record["id"],
        type=record["type"],
        order=record.get("order", default_order),
    )


def records_to_rows(records: Iterable[Mapping[str, Any]]) -> List[InstrumentRow | EffectRow]:
    """Decode a row list; records without ``order`` keep their list position."""

    return [record_to_row(record, default_order=index) for index, record in enumerate(records)]


def clip_to_record(clip: ArrangementClip) -> Dict[str, Any]:
    return clip.model_dump(mode="json", by_alias=True)


def record_to_clip(record: Mapping[str, Any]) -> ArrangementClip:
    payload = dict(record)
    if payload.get("stack") is None:
        payload["stack"] = 0
    return ArrangementClip.model_validate(payload)


def pattern_to_record(pattern: Pattern) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": pattern.id,
        "name": pattern.name,
        "bars": pattern.bars,
        "instrument": pattern.instrument,
    }
    for row_type, cells in pattern.rows.items():
        record[f"{row_type}{PATTERN_KEY_SUFFIX}"] = list(cells)
    record["subdivisions"] = dict(pattern.subdivisions)
    record["patternLengths"] = dict(pattern.pattern_lengths)
    if pattern.visible_rows is not None:
        record["visibleRows"] = [row_to_record(row) for row in pattern.visible_rows]
    if pattern.visual_settings is not None:
        record["visualSettings"] = dict(pattern.visual_settings)
    return record


def record_to_pattern(record: Mapping[str, Any]) -> Pattern:
    subdivisions: Dict[str, float] = {
        **record.get("subdivisions", {}),
        **record.get("effectSubdivisions", {}),
    }
    lengths: Dict[str, int] = {
        **record.get("patternLengths", {}),
        **record.get("effectPatternLengths", {}),
    }
    rows: Dict[str, List[bool]] = {}
    for row_type in ALL_ROW_TYPES + ALL_EFFECT_ROW_TYPES:
        cells = record.get(f"{row_type}{PATTERN_KEY_SUFFIX}")
        if cells is None:
            if row_type in ALL_EFFECT_ROW_TYPES:
                rows[row_type] = [False] * DEFAULT_PATTERN_LENGTH
                subdivisions[row_type] = DEFAULT_SUBDIVISION
                lengths[row_type] = DEFAULT_PATTERN_LENGTH
            continue
        rows[row_type] = [bool(cell) for cell in cells]
        subdivision = subdivisions.setdefault(row_type, DEFAULT_SUBDIVISION)
        if subdivision <= 0:
            raise ValueError(f"Row {row_type!r} has non-positive subdivision {subdivision}")
        lengths.setdefault(row_type, int(len(cells) / subdivision + 0.5))

    visible_rows = record.get("visibleRows")
    return Pattern(
        id=record["id"],
        name=record.get("name", "Pattern"),
        bars=record.get("bars", 4),
        instrument=record.get("instrument") or "orbital",
        rows=rows,
        subdivisions={key: value for key, value in subdivisions.items() if key in rows},
        pattern_lengths={key: value for key, value in lengths.items() if key in rows},
        visible_rows=records_to_rows(visible_rows) if visible_rows else None,
        visual_settings=record.get("visualSettings"),
    )


class SongSerializer:
    """Serialize :class:`Song` instances to/from JSON-compatible dicts."""

    @staticmethod
    def to_dict(song: Song) -> Dict[str, Any]:
        """Convert a song to a JSON-ready dictionary."""

        return {
            "id": song.id,
            "name": song.name,
            "bpm": song.bpm,
            "patterns": [pattern_to_record(pattern) for pattern in song.patterns],
            "currentPatternId": song.current_pattern_id,
            "visibleRows": [row_to_record(row) for row in song.visible_rows],
            "arrangement": [clip_to_record(clip) for clip in song.arrangement],
            "useArrangement": song.use_arrangement,
            "stackSettings": {
                str(stack): settings.model_dump(mode="json", by_alias=True)
                for stack, settings in sorted(song.stack_settings.items())
            },
            "channelStates": {
                channel: state.model_dump(mode="json", by_alias=True)
                for channel, state in song.channel_states.items()
            },
            "transport": song.transport.model_dump(mode="json", by_alias=True),
        }

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> Song:
        """Rehydrate a song, raising :class:`SongFormatError` for invalid records."""

        try:
            fields: Dict[str, Any] = {
                "patterns": [record_to_pattern(record) for record in payload.get("patterns", [])],
                "arrangement": [record_to_clip(record) for record in payload.get("arrangement", [])],
                "stack_settings": {
                    int(stack): StackSettings.model_validate(settings)
                    for stack, settings in payload.get("stackSettings", {}).items()
                },
                "current_pattern_id": payload.get("currentPatternId"),
                "use_arrangement": payload.get("useArrangement", True),
            }
            for key in ("id", "name", "bpm"):
                if key in payload:
                    fields[key] = payload[key]
            if payload.get("visibleRows"):
                fields["visible_rows"] = records_to_rows(payload["visibleRows"])
            if "channelStates" in payload:
                fields["channel_states"] = {
                    channel: ChannelState.model_validate(state)
                    for channel, state in payload["channelStates"].items()
                }
            if "transport" in payload:
                fields["transport"] = TransportState.model_validate(payload["transport"])
            song = Song(**fields)
        except (AttributeError, KeyError, TypeError, ValueError, ZeroDivisionError) as exc:
            raise SongFormatError(f"Invalid song record: {exc}") from exc

        dangling = song.dangling_clips()
        if dangling:
            logger.info(f"Loaded song {song.id!r} with {len(dangling)} clip(s) referencing missing patterns")
        return song
