"""Arrangement timeline, transport clock and the session controller."""

from .arrangement import ArrangementManager
from .config import TempoMap, TimelineConfig
from .session import SessionController
from .transport import LoopHandle, TransportClock, TransportMode

__all__ = [
    "ArrangementManager",
    "TimelineConfig",
    "TempoMap",
    "TransportClock",
    "TransportMode",
    "LoopHandle",
    "SessionController",
]
