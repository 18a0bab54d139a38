import logging

import pytest

from domain.models import ArrangementClip, StackSettings, create_default_pattern
from sequencer.playback import SILENT_ROW, RowGrid
from timeline.arrangement import MISSING_PATTERN_LABEL, ArrangementManager
from timeline.config import TimelineConfig


def test_add_clip_appends_to_end_of_stack(id_factory):
    manager = ArrangementManager(id_factory=id_factory)
    patterns = [_make_pattern("p1", bars=4)]

    clips = manager.add_clip([], "p1", 0, patterns=patterns)
    clips = manager.add_clip(clips, "p1", 0, patterns=patterns)

    assert [(clip.start_bar, clip.length, clip.stack) for clip in clips] == [(0, 4, 0), (4, 4, 0)]
    assert clips[0].id != clips[1].id


def test_add_clip_on_new_stack_expands_stack_count(id_factory, caplog):
    manager = ArrangementManager(id_factory=id_factory)
    patterns = [_make_pattern("p1", bars=2)]
    clips = manager.add_clip([], "p1", 0, patterns=patterns)

    with caplog.at_level(logging.INFO, logger="timeline.arrangement"):
        clips = manager.add_clip(clips, "p1", 3, patterns=patterns)

    assert clips[-1].start_bar == 0
    assert manager.get_stack_count(clips) == 4
    assert "Creating arrangement stack 3" in caplog.text


def test_add_clip_for_unknown_pattern_is_noop(id_factory):
    manager = ArrangementManager(id_factory=id_factory)
    clips = _make_clips()

    assert manager.add_clip(clips, "missing", 0, patterns=[]) == clips


def test_stack_count_is_at_least_one():
    assert ArrangementManager.get_stack_count([]) == 1
    assert ArrangementManager.get_stack_count(_make_clips()) == 2


def test_move_clip_keeps_length_and_snaps_start():
    manager = ArrangementManager()
    clips = _make_clips()

    moved = manager.move_clip(clips, "c2", 7.4)

    assert moved[1].start_bar == 7
    assert moved[1].length == clips[1].length
    assert moved[1].stack == 0
    assert manager.move_clip(clips, "c2", -3, new_stack=1)[1].start_bar == 0
    assert manager.move_clip(clips, "c2", 2, new_stack=1)[1].stack == 1


def test_move_clip_allows_overlap():
    manager = ArrangementManager()

    moved = manager.move_clip(_make_clips(), "c2", 1)

    pairs = manager.overlapping_clips(moved)
    assert [(first.id, second.id) for first, second in pairs] == [("c1", "c2")]
    assert manager.active_clip(moved, 2.0, stack=0).id == "c1"


def test_unknown_clip_operations_are_noops():
    manager = ArrangementManager()
    clips = _make_clips()

    assert manager.move_clip(clips, "nonexistent", 5) == clips
    assert manager.duplicate_clip(clips, "nonexistent", 5) == clips
    assert manager.remove_clip(clips, "nonexistent") == clips


def test_duplicate_clip_creates_new_identity(id_factory):
    manager = ArrangementManager(id_factory=id_factory)
    clips = _make_clips()

    duplicated = manager.duplicate_clip(clips, "c1", 12, new_stack=2)

    assert len(duplicated) == 4
    copy = duplicated[-1]
    assert copy.id not in {clip.id for clip in clips}
    assert (copy.pattern_id, copy.length, copy.start_bar, copy.stack) == ("p1", 4, 12, 2)
    assert duplicated[:3] == clips


def test_duplicate_clip_skips_taken_ids():
    ids = iter(["c1", "c2", "fresh"])
    manager = ArrangementManager(id_factory=lambda: next(ids))

    duplicated = manager.duplicate_clip(_make_clips(), "c1", 0)

    assert duplicated[-1].id == "fresh"


def test_remove_clip_leaves_others_untouched():
    manager = ArrangementManager()
    clips = _make_clips()

    remaining = manager.remove_clip(clips, "c2")

    assert remaining == [clips[0], clips[2]]


def test_bar_from_pixels_rounds_and_clamps():
    manager = ArrangementManager(TimelineConfig(cell_pixel_width=32))

    assert manager.bar_from_pixels(100, grab_offset=10) == 3
    assert manager.bar_from_pixels(48) == 2
    assert manager.bar_from_pixels(5, grab_offset=64) == 0
    assert manager.bar_to_pixels(3) == 96


def test_arrangement_length_and_stack_listing():
    clips = _make_clips()

    assert ArrangementManager.arrangement_length(clips) == 6
    assert ArrangementManager.arrangement_length([]) == 0
    assert [clip.id for clip in ArrangementManager.clips_on_stack(clips, 0)] == ["c1", "c2"]


def test_active_row_pattern_resolves_clip_and_gaps():
    manager = ArrangementManager()
    intro = _make_pattern("p1")
    intro = intro.model_copy(update={"rows": {**intro.rows, "direction": [True] * 16}})
    clips = _make_clips()
    editor_cells = [True, False] * 8

    assert manager.active_row_pattern(clips, [intro], "direction", 1.0, editor_cells) == [True] * 16
    assert manager.active_row_pattern(clips, [intro], "direction", 5.0, editor_cells) == [False] * 16
    assert manager.active_row_pattern(clips, [intro], "direction", 9.0, editor_cells) == [False] * 16
    assert (
        manager.active_row_pattern(clips, [intro], "direction", 1.0, editor_cells, use_arrangement=False)
        == editor_cells
    )
    assert manager.active_row_pattern([], [intro], "direction", 1.0, editor_cells) == editor_cells


def test_clip_label_for_missing_pattern():
    manager = ArrangementManager()
    clips = _make_clips()

    assert manager.clip_label(clips[0], [_make_pattern("p1")]) == "p1"
    assert manager.clip_label(clips[1], [_make_pattern("p1")]) == MISSING_PATTERN_LABEL


def test_stack_settings_update_and_clamp():
    manager = ArrangementManager()

    settings = manager.update_stack_settings({}, 1, opacity=1.7, rotation=-20, flip_y=True)
    settings = manager.update_stack_settings(settings, 1, scale=0)

    stack = manager.get_stack_settings(settings, 1)
    assert stack.opacity == 1.0
    assert stack.rotation == 0.0
    assert stack.flip_y
    assert stack.scale == 1.0
    assert manager.get_stack_settings(settings, 0) == StackSettings()
    assert manager.reset_stack_settings(settings, 1)[1] == StackSettings()
    with pytest.raises(KeyError):
        manager.update_stack_settings(settings, 1, hue=3)


def test_active_row_grid_carries_clip_grid():
    manager = ArrangementManager()
    intro = _make_pattern("p1")
    intro = intro.model_copy(
        update={
            "rows": {**intro.rows, "direction": [True, False] * 16},
            "subdivisions": {**intro.subdivisions, "direction": 2.0},
        }
    )
    clips = _make_clips()
    editor_grid = RowGrid(cells=(True,) * 8, subdivision=0.5, base_length=16)

    grid = manager.active_row_grid(clips, [intro], "direction", 2.5, editor_grid)
    assert grid == RowGrid(cells=(True, False) * 16, subdivision=2.0, base_length=16)
    assert manager.active_row_grid(clips, [intro], "direction", 5.0, editor_grid) == SILENT_ROW
    assert manager.active_row_grid(clips, [intro], "direction", 7.0, editor_grid) == SILENT_ROW
    assert (
        manager.active_row_grid(clips, [intro], "direction", 1.0, editor_grid, use_arrangement=False)
        == editor_grid
    )
    assert manager.active_row_grid([], [intro], "direction", 1.0, editor_grid) == editor_grid


def _make_pattern(pattern_id, bars=4):
    return create_default_pattern(pattern_id).model_copy(update={"id": pattern_id, "bars": bars})


def _make_clips():
    return [
        ArrangementClip(id="c1", pattern_id="p1", start_bar=0, length=4, stack=0),
        ArrangementClip(id="c2", pattern_id="p2", start_bar=4, length=2, stack=0),
        ArrangementClip(id="c3", pattern_id="p1", start_bar=0, length=4, stack=1),
    ]
