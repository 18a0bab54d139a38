import itertools
import sys
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from domain.models import ArrangementClip, Song, create_default_pattern  # noqa: E402


@pytest.fixture()
def id_factory() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"id{next(counter)}"


@pytest.fixture()
def example_song() -> Song:
    intro = create_default_pattern("Intro").model_copy(update={"id": "p1"})
    verse = create_default_pattern("Verse").model_copy(update={"id": "p2", "bars": 2})
    return Song(
        id="song",
        name="Example",
        bpm=120.0,
        patterns=[intro, verse],
        arrangement=[
            ArrangementClip(id="c1", pattern_id="p1", start_bar=0, length=4, stack=0),
            ArrangementClip(id="c2", pattern_id="p2", start_bar=4, length=2, stack=0),
            ArrangementClip(id="c3", pattern_id="p1", start_bar=0, length=4, stack=1),
        ],
    )
