import pytest

from domain.models import create_default_pattern
from sequencer.playback import SILENT_ROW, RowGrid, count_toggles, passed_cell_count, pattern_position


def test_position_at_base_subdivision():
    position = pattern_position(16, 5.25, 16)

    assert position.index == 5
    assert position.progress == pytest.approx(0.25)


def test_position_scales_with_subdivision():
    position = pattern_position(32, 5.25, 16)

    assert position.index == 10
    assert position.progress == pytest.approx(0.5)


def test_position_wraps_around_pattern():
    assert pattern_position(16, 17.0, 16).index == 1
    assert pattern_position(0, 3.0, 16).index == 0


def test_passed_cells_and_toggle_counts():
    pattern = [True, False, True, False]

    assert passed_cell_count(4, 8.0, 16) == 2
    assert count_toggles(pattern, 0) == 0
    assert count_toggles(pattern, 3) == 2
    assert count_toggles(pattern, 9) == 5
    assert count_toggles([], 9) == 0


def test_row_grid_drives_position_and_toggles():
    grid = RowGrid(cells=(True, False) * 16, subdivision=2.0, base_length=16)

    assert grid.position(5.25) == pattern_position(32, 5.25, 16)
    assert grid.position(5.25).index == 10
    assert grid.toggles(8.0) == 8


def test_row_grid_from_pattern_and_silent_default():
    pattern = create_default_pattern()

    grid = RowGrid.from_pattern(pattern, "circles1Visible")

    assert grid.cells == (True,) * 16
    assert (grid.subdivision, grid.base_length) == (1.0, 16)
    assert SILENT_ROW == RowGrid(cells=(False,) * 16, subdivision=1.0, base_length=16)
