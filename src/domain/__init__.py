"""Domain package exposing song data models and record serialisation."""
from .constants import (
    ALL_EFFECT_ROW_TYPES,
    ALL_ROW_TYPES,
    PATTERN_LENGTH_OPTIONS,
    SUBDIVISION_OPTIONS,
    cell_count,
)
from .models import (
    ArrangementClip,
    ChannelState,
    EffectRow,
    InstrumentRow,
    Pattern,
    RowConfig,
    Song,
    StackSettings,
    TransportState,
    create_default_pattern,
    default_visible_rows,
    generate_id,
    row_info,
)
from .persistence import SongFormatError, SongSerializer

__all__ = [
    "ALL_EFFECT_ROW_TYPES",
    "ALL_ROW_TYPES",
    "PATTERN_LENGTH_OPTIONS",
    "SUBDIVISION_OPTIONS",
    "cell_count",
    "ArrangementClip",
    "ChannelState",
    "EffectRow",
    "InstrumentRow",
    "Pattern",
    "RowConfig",
    "Song",
    "StackSettings",
    "TransportState",
    "create_default_pattern",
    "default_visible_rows",
    "generate_id",
    "row_info",
    "SongFormatError",
    "SongSerializer",
]
