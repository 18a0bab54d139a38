import pytest
from pydantic import ValidationError

from domain.constants import ALL_EFFECT_ROW_TYPES, ALL_ROW_TYPES, cell_count
from domain.models import (
    ArrangementClip,
    Pattern,
    Song,
    StackSettings,
    TransportState,
    create_default_pattern,
    default_visible_rows,
)


def test_default_pattern_has_every_row():
    pattern = create_default_pattern("Intro")

    assert set(pattern.rows) == set(ALL_ROW_TYPES) | set(ALL_EFFECT_ROW_TYPES)
    assert all(len(cells) == 16 for cells in pattern.rows.values())
    assert pattern.hit_count("circles1Visible") == 16
    assert pattern.hit_count("direction") == 0
    assert pattern.bars == 4


def test_pattern_rejects_mismatched_cell_count():
    with pytest.raises(ValidationError):
        Pattern(
            id="p",
            name="Broken",
            rows={"direction": [False] * 8},
            subdivisions={"direction": 1.0},
            pattern_lengths={"direction": 16},
        )


def test_pattern_rejects_row_without_grid():
    with pytest.raises(ValidationError):
        Pattern(id="p", name="Broken", rows={"direction": [False] * 16})


def test_pattern_cells_returns_copy():
    pattern = create_default_pattern()
    cells = pattern.cells("direction")
    cells[0] = True

    assert pattern.rows["direction"][0] is False


def test_cell_count_rounds_half_up():
    assert cell_count(16, 1.0) == 16
    assert cell_count(4, 2.0) == 8
    assert cell_count(6, 0.25) == 2
    assert cell_count(4, 0.25) == 1


def test_transport_enforces_minimum_loop_length():
    state = TransportState(loop_start=2.0, loop_end=2.3)

    assert state.loop_end == pytest.approx(2.5)
    assert state.loop_length >= 0.5


def test_clip_geometry_and_aliases():
    clip = ArrangementClip.model_validate({"id": "c", "patternId": "p", "startBar": 2, "length": 4})

    assert clip.pattern_id == "p"
    assert clip.stack == 0
    assert clip.end_bar == 6
    assert clip.covers(2) and clip.covers(5.9)
    assert not clip.covers(6)
    with pytest.raises(ValidationError):
        ArrangementClip(id="c", pattern_id="p", length=0)


def test_stack_settings_validate_ranges():
    with pytest.raises(ValidationError):
        StackSettings(opacity=1.5)
    with pytest.raises(ValidationError):
        StackSettings(rotation=400)
    assert StackSettings.model_validate({"flipY": True}).flip_y


def test_song_selects_first_pattern():
    song = Song(patterns=[_make_pattern("a"), _make_pattern("b")], current_pattern_id="missing")

    assert song.current_pattern_id == "a"
    assert [row.order for row in song.visible_rows] == list(range(len(ALL_ROW_TYPES)))
    assert len({row.id for row in default_visible_rows()}) == len(ALL_ROW_TYPES)


def test_song_pattern_library_operations():
    song = Song(patterns=[_make_pattern("a")])

    copy = song.duplicate_pattern("a")
    assert copy is not None
    assert copy.id != "a"
    assert copy.name == "a (copy)"
    assert copy.rows == song.get_pattern("a").rows

    assert song.rename_pattern("a", "Intro")
    assert song.get_pattern("a").name == "Intro"
    assert not song.rename_pattern("missing", "x")
    assert song.duplicate_pattern("missing") is None


def test_remove_pattern_leaves_clips_dangling():
    song = Song(
        patterns=[_make_pattern("a"), _make_pattern("b")],
        current_pattern_id="b",
        arrangement=[ArrangementClip(id="c", pattern_id="b", length=4)],
    )

    assert song.remove_pattern("b")
    assert song.current_pattern_id == "a"
    assert [clip.id for clip in song.dangling_clips()] == ["c"]
    assert not song.remove_pattern("a")
    assert not song.remove_pattern("missing")


def _make_pattern(pattern_id):
    return create_default_pattern(pattern_id).model_copy(update={"id": pattern_id})
