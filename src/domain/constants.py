"""Static sequencer tables shared by the domain models and editors.

Row types come in two families: instrument rows drive the orbit
visualisation itself, effect rows transform the whole instrument. Both
families share the same pattern/subdivision/length bookkeeping.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping, Tuple

InstrumentRowType = Literal[
    "direction",
    "circles1Visible",
    "circles2Visible",
    "circles1Position",
    "circles2Position",
    "circlesGrowth",
    "tilt3D",
]
EffectRowType = Literal["rotationEnabled", "rotationDirection", "flipY"]
InstrumentType = Literal["orbital", "concentric"]
EffectType = Literal["rotation", "flip"]

ALL_ROW_TYPES: Tuple[str, ...] = (
    "direction",
    "circles1Visible",
    "circles2Visible",
    "circles1Position",
    "circles2Position",
    "circlesGrowth",
    "tilt3D",
)
ALL_EFFECT_ROW_TYPES: Tuple[str, ...] = ("rotationEnabled", "rotationDirection", "flipY")

SUBDIVISION_OPTIONS: Tuple[float, ...] = (0.25, 0.5, 1.0, 2.0, 4.0)
PATTERN_LENGTH_OPTIONS: Tuple[int, ...] = (4, 8, 16, 32, 64)

DEFAULT_PATTERN_LENGTH = 16
DEFAULT_SUBDIVISION = 1.0
DEFAULT_PATTERN_BARS = 4

DEFAULT_LOOP_START = 0.0
DEFAULT_LOOP_END = 4.0
MIN_LOOP_LENGTH = 0.5


@dataclass(frozen=True)
class RowTypeInfo:
    """Display metadata for a sequencer row."""

    label: str
    hit_symbol: str
    description: str


@dataclass(frozen=True)
class EffectInfo:
    label: str
    description: str
    rows: Tuple[str, ...]


ROW_TYPE_INFO: Mapping[str, RowTypeInfo] = MappingProxyType(
    {
        "direction": RowTypeInfo("Direction", "↺", "Reverse orbit direction"),
        "circles1Visible": RowTypeInfo("C1 Vis", "●", "Toggle circle set 1 visibility"),
        "circles2Visible": RowTypeInfo("C2 Vis", "●", "Toggle circle set 2 visibility"),
        "circles1Position": RowTypeInfo("C1 Pos", "⇄", "Toggle circle set 1 position"),
        "circles2Position": RowTypeInfo("C2 Pos", "⇄", "Toggle circle set 2 position"),
        "circlesGrowth": RowTypeInfo("Growth", "↗", "Toggle expanding circles"),
        "tilt3D": RowTypeInfo("3D Rotate", "◇", "Toggle 3D rotation"),
    }
)

EFFECT_ROW_TYPE_INFO: Mapping[str, RowTypeInfo] = MappingProxyType(
    {
        "rotationEnabled": RowTypeInfo("Rot On", "⟳", "Toggle rotation effect on/off"),
        "rotationDirection": RowTypeInfo("Rot Dir", "↻", "Toggle rotation direction"),
        "flipY": RowTypeInfo("Flip Y", "⇿", "Mirror instrument over Y axis"),
    }
)

EFFECT_INFO: Mapping[str, EffectInfo] = MappingProxyType(
    {
        "rotation": EffectInfo(
            "Rotation",
            "Rotates the entire instrument around the center",
            ("rotationEnabled", "rotationDirection"),
        ),
        "flip": EffectInfo("Flip", "Mirrors the instrument over the Y axis", ("flipY",)),
    }
)

# Rows that start switched on in a fresh pattern.
DEFAULT_ON_ROWS: Tuple[str, ...] = ("circles1Visible", "circles2Visible")


def is_effect_row_type(row_type: str) -> bool:
    return row_type in ALL_EFFECT_ROW_TYPES


def cell_count(base_length: float, subdivision: float) -> int:
    """Return ``round(base_length * subdivision)`` rounding halves upward."""

    return max(0, int(base_length * subdivision + 0.5))
