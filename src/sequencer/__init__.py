"""Step-sequencer utilities: grid editing, resampling, rows, quantization and MIDI."""

from .channels import is_channel_active, toggle_mute, toggle_solo
from .midi import (
    ROW_TO_MIDI_NOTE,
    MidiNote,
    MidiPattern,
    notes_to_pattern,
    pattern_to_midi,
    quantize_tick,
)
from .pattern_editor import PaintStroke, PatternEditor
from .playback import SILENT_ROW, CellPosition, RowGrid, count_toggles, passed_cell_count, pattern_position
from .quantizer import (
    MUSICAL_PARAMETERS,
    MusicalParameterConfig,
    format_parameter,
    quantize_parameter,
    smart_quantize,
)
from .resampler import resize_pattern
from .rows import RowConfigManager

__all__ = [
    "PatternEditor",
    "PaintStroke",
    "RowConfigManager",
    "resize_pattern",
    "MusicalParameterConfig",
    "MUSICAL_PARAMETERS",
    "smart_quantize",
    "quantize_parameter",
    "format_parameter",
    "is_channel_active",
    "toggle_mute",
    "toggle_solo",
    "CellPosition",
    "pattern_position",
    "passed_cell_count",
    "count_toggles",
    "RowGrid",
    "SILENT_ROW",
    "MidiNote",
    "MidiPattern",
    "ROW_TO_MIDI_NOTE",
    "pattern_to_midi",
    "notes_to_pattern",
    "quantize_tick",
]
