"""Musical quantization for continuous controls.

Each tunable parameter declares the values a musician would actually want
(tempo markings, note divisions, clean multipliers and percentages) or, for
plain geometric controls, a step size. :func:`smart_quantize` clamps a raw
control value to the requested range and snaps it to that universe.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Sequence, Tuple

from domain.constants import SUBDIVISION_OPTIONS

FULL_TURN = math.pi * 2

# Maelzel metronome markings.
METRONOME_MARKINGS: Tuple[float, ...] = (
    40, 42, 44, 46, 48, 50, 52, 54, 56, 58, 60, 63, 66, 69, 72, 76, 80, 84, 88,
    92, 96, 100, 104, 108, 112, 116, 120, 126, 132, 138, 144, 152, 160, 168,
    176, 184, 192, 200, 208,
)

VALID_MULTIPLIERS: Tuple[float, ...] = (0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 4.0, 6.0, 8.0)
VALID_OSCILLATOR_SPEEDS: Tuple[float, ...] = (0.03125, 0.0625, 0.125, 0.25, 0.5, 1.0, 2.0)
VALID_PERCENTAGES: Tuple[float, ...] = (0.0, 0.1, 0.25, 0.5, 0.75, 1.0)

# Fraction of a full rotation per bar for each note division.
NOTE_DIVISIONS: Mapping[str, float] = MappingProxyType(
    {
        "1/1": 1.0,
        "1/2": 1 / 2,
        "1/3": 1 / 3,
        "1/4": 1 / 4,
        "1/6": 1 / 6,
        "1/8": 1 / 8,
        "1/12": 1 / 12,
        "1/16": 1 / 16,
        "1/24": 1 / 24,
        "1/32": 1 / 32,
    }
)
VALID_ROTATION_RADIANS: Tuple[float, ...] = tuple(
    sorted(fraction * FULL_TURN for fraction in NOTE_DIVISIONS.values())
)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def closest_note_division(radians: float) -> str:
    """Return the note-division label nearest to ``radians``."""

    if not 0.0 <= radians <= FULL_TURN:
        radians %= FULL_TURN
    closest = "1/1"
    best = math.inf
    for label, fraction in NOTE_DIVISIONS.items():
        distance = abs(radians - fraction * FULL_TURN)
        if distance < best:
            best = distance
            closest = label
    return closest


def format_bpm(value: float) -> str:
    return f"{_round_half_up(value)} BPM"


def format_multiplier(value: float) -> str:
    return f"{value:.2f}x"


def format_subdivision(value: float) -> str:
    return f"{value:g}x"


def format_percent(value: float) -> str:
    return f"{_round_half_up(value * 100)}%"


def format_pixels(value: float) -> str:
    return f"{_round_half_up(value)}px"


def format_count(value: float) -> str:
    return str(_round_half_up(value))


def format_degrees(value: float) -> str:
    return f"{_round_half_up(value)}°"


def format_scale(value: float) -> str:
    return f"{value:.1f}x"


format_rotation_as_note = closest_note_division


@dataclass(frozen=True)
class MusicalParameterConfig:
    """Declarative snapping rules and display format for one parameter."""

    name: str
    formatter: Callable[[float], str]
    valid_values: Tuple[float, ...] | None = None
    snap_interval: float | None = None
    minimum: float = 0.0
    maximum: float = 1.0
    label: str = ""

    def format(self, value: float) -> str:
        return self.formatter(value)


def _snap_to_values(value: float, candidates: Sequence[float]) -> float:
    closest = candidates[0]
    best = abs(value - closest)
    for candidate in candidates[1:]:
        distance = abs(value - candidate)
        if distance < best:
            best = distance
            closest = candidate
    return closest


def _snap_to_interval(value: float, interval: float, minimum: float, maximum: float) -> float:
    snapped = round(_round_half_up(value / interval) * interval, 10)
    return min(maximum, max(minimum, snapped))


def smart_quantize(
    raw: float,
    config: MusicalParameterConfig,
    minimum: float,
    maximum: float,
) -> float:
    """Clamp ``raw`` into ``[minimum, maximum]`` and snap it musically.

    The nearest configured value inside the range wins, ties going to the
    lower value. Without usable snap values the result is rounded to the
    step size; without either it is just clamped. The result always lies
    in range and quantizing it again returns it unchanged.
    """

    if minimum > maximum:
        minimum, maximum = maximum, minimum
    if math.isnan(raw):
        raw = minimum
    clamped = min(maximum, max(minimum, raw))

    if config.valid_values:
        candidates = sorted(v for v in config.valid_values if minimum <= v <= maximum)
        if candidates:
            return _snap_to_values(clamped, candidates)
    if config.snap_interval:
        return _snap_to_interval(clamped, config.snap_interval, minimum, maximum)
    return clamped


def _parameter(name: str, formatter: Callable[[float], str], **kwargs) -> MusicalParameterConfig:
    return MusicalParameterConfig(name=name, formatter=formatter, **kwargs)


MUSICAL_PARAMETERS: Mapping[str, MusicalParameterConfig] = MappingProxyType(
    {
        config.name: config
        for config in (
            # Visualisation settings
            _parameter(
                "bpm",
                format_bpm,
                valid_values=METRONOME_MARKINGS,
                snap_interval=1,
                minimum=20,
                maximum=300,
                label="Tempo",
            ),
            _parameter(
                "subdivision",
                format_subdivision,
                valid_values=SUBDIVISION_OPTIONS,
                minimum=SUBDIVISION_OPTIONS[0],
                maximum=SUBDIVISION_OPTIONS[-1],
                label="Subdivision",
            ),
            _parameter("orbitRadius", format_pixels, snap_interval=10, minimum=50, maximum=400),
            _parameter("circleRadius", format_pixels, snap_interval=10, minimum=20, maximum=300),
            _parameter("circleSpacing", format_pixels, snap_interval=5, minimum=10, maximum=200),
            _parameter("dotSize", format_pixels, snap_interval=1, minimum=4, maximum=40),
            _parameter("numCircles", format_count, snap_interval=1, minimum=1, maximum=30),
            _parameter(
                "growthRate", format_multiplier, valid_values=VALID_MULTIPLIERS, minimum=0.5, maximum=8
            ),
            _parameter("tiltAmount", format_degrees, snap_interval=5, minimum=0, maximum=90),
            # Synth settings
            _parameter("petalCount", format_count, snap_interval=1, minimum=1, maximum=16),
            _parameter("openness", format_percent, valid_values=VALID_PERCENTAGES),
            _parameter(
                "rotation",
                format_rotation_as_note,
                valid_values=VALID_ROTATION_RADIANS,
                maximum=FULL_TURN,
            ),
            _parameter("lineWidth", format_pixels, snap_interval=0.5, minimum=0.5, maximum=10),
            _parameter("lineSoftness", format_percent, valid_values=VALID_PERCENTAGES),
            _parameter(
                "rotationAmount", format_multiplier, valid_values=VALID_MULTIPLIERS, minimum=0.5, maximum=8
            ),
            # Oscillator settings
            _parameter("orbitOscillatorAmount", format_percent, valid_values=VALID_PERCENTAGES),
            _parameter(
                "orbitOscillatorMinRadius",
                format_multiplier,
                valid_values=VALID_MULTIPLIERS,
                minimum=0.5,
                maximum=8,
            ),
            _parameter(
                "orbitOscillatorMaxRadius",
                format_multiplier,
                valid_values=VALID_MULTIPLIERS,
                minimum=0.5,
                maximum=8,
            ),
            _parameter(
                "orbitOscillatorPhaseOffset",
                format_rotation_as_note,
                valid_values=VALID_ROTATION_RADIANS,
                maximum=FULL_TURN,
            ),
            _parameter(
                "polarOscillatorSpeed",
                format_multiplier,
                valid_values=VALID_OSCILLATOR_SPEEDS,
                minimum=VALID_OSCILLATOR_SPEEDS[0],
                maximum=VALID_OSCILLATOR_SPEEDS[-1],
            ),
            # Stack settings
            _parameter("stackScale", format_scale, snap_interval=0.1, minimum=0.1, maximum=2),
            _parameter("stackOffset", format_pixels, snap_interval=10, minimum=-200, maximum=200),
            _parameter("stackOpacity", format_percent, snap_interval=0.1, minimum=0, maximum=1),
            _parameter("stackRotation", format_degrees, snap_interval=15, minimum=0, maximum=360),
        )
    }
)


def quantize_parameter(name: str, raw: float) -> float:
    """Quantize ``raw`` using the named parameter's own range."""

    config = MUSICAL_PARAMETERS[name]
    return smart_quantize(raw, config, config.minimum, config.maximum)


def format_parameter(name: str, value: float) -> str:
    return MUSICAL_PARAMETERS[name].format(value)
