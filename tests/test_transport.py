import pytest

from domain.models import TransportState
from timeline.config import TempoMap, TimelineConfig
from timeline.transport import LoopHandle, TransportClock, TransportMode


def test_scrub_seeks_on_every_update():
    clock = TransportClock()

    assert clock.begin_scrub(1.0)
    clock.update_position(2.25)
    clock.update_position(0.75)

    assert clock.mode is TransportMode.SCRUBBING
    assert clock.playhead_bar == 0.75
    clock.release()
    assert clock.mode is TransportMode.IDLE


def test_scrub_clamps_negative_positions():
    clock = TransportClock()
    clock.begin_scrub(-4.0)

    assert clock.playhead_bar == 0.0


def test_loop_end_drag_is_clamped_to_minimum_gap():
    clock = _make_clock(loop_start=2.0, loop_end=3.0)

    assert clock.begin_loop_drag(LoopHandle.END)
    clock.update_position(2.3)
    assert clock.loop_end == pytest.approx(2.5)
    clock.update_position(2.0)

    assert clock.loop_end == pytest.approx(2.5)


def test_loop_start_drag_is_clamped_to_minimum_gap():
    clock = _make_clock(loop_start=1.0, loop_end=4.0)

    clock.begin_loop_drag(LoopHandle.START)
    clock.update_position(3.9)
    assert clock.loop_start == pytest.approx(3.5)
    clock.update_position(-2.0)
    assert clock.loop_start == 0.0


@pytest.mark.parametrize("handle", [LoopHandle.START, LoopHandle.END])
def test_minimum_gap_holds_after_every_drag_update(handle):
    clock = _make_clock(loop_start=3.0, loop_end=5.0)
    clock.begin_loop_drag(handle)

    for bar in (0.0, 2.9, 3.2, 4.8, 5.0, 5.1, 9.0, 3.0, 4.6):
        clock.update_position(bar)
        assert clock.loop_end - clock.loop_start >= 0.5


def test_scrub_is_ignored_while_dragging_loop():
    clock = _make_clock(loop_start=0.0, loop_end=4.0)
    clock.begin_loop_drag(LoopHandle.END)

    assert not clock.begin_scrub(3.0)
    assert clock.mode is TransportMode.DRAGGING_LOOP_END
    assert clock.playhead_bar == 0.0


def test_loop_drag_is_ignored_while_scrubbing_or_disabled():
    clock = _make_clock(loop_start=0.0, loop_end=4.0)
    clock.begin_scrub(1.0)
    assert not clock.begin_loop_drag(LoopHandle.START)

    clock.leave()
    clock.set_loop_enabled(False)
    assert not clock.begin_loop_drag(LoopHandle.START)
    assert clock.mode is TransportMode.IDLE


def test_leaving_surface_keeps_partial_motion():
    clock = _make_clock(loop_start=0.0, loop_end=4.0)
    clock.begin_loop_drag(LoopHandle.END)
    clock.update_position(6.0)

    clock.leave()
    clock.update_position(8.0)

    assert clock.mode is TransportMode.IDLE
    assert clock.loop_end == 6.0


def test_pointer_to_bar_uses_ruler_offset():
    clock = TransportClock(config=TimelineConfig(cell_pixel_width=32, ruler_offset_px=64))

    assert clock.pointer_to_bar(64 + 80, surface_left=0) == 2.5
    assert clock.pointer_to_bar(10, surface_left=0) == 0.0
    assert clock.pointer_to_bar(200, surface_left=100) == pytest.approx(36 / 32)


def test_tick_wraps_inside_loop():
    clock = _make_clock(loop_start=2.0, loop_end=4.0)

    assert clock.tick(3.0) == 3.0
    assert clock.tick(4.5) == pytest.approx(2.5)
    assert clock.tick(7.0) == pytest.approx(3.0)


def test_tick_wraps_at_arrangement_end_without_loop():
    clock = TransportClock()

    assert clock.tick(9.0, arrangement_length=6.0, use_arrangement=True) == pytest.approx(3.0)
    assert clock.tick(9.0) == 9.0


def test_stop_returns_to_loop_start_or_zero():
    clock = _make_clock(loop_start=2.0, loop_end=4.0)
    clock.seek_to_bar(3.0)

    assert clock.stop().playhead_bar == 2.0
    clock.toggle_loop()
    assert clock.stop().playhead_bar == 0.0


def test_fit_loop_to_arrangement_pulls_loop_back():
    clock = _make_clock(loop_start=8.0, loop_end=10.0)

    state = clock.fit_loop_to_arrangement(4.0)

    assert state.loop_start == pytest.approx(3.5)
    assert state.loop_length == pytest.approx(2.0)
    assert clock.fit_loop_to_arrangement(0.0) == state


def test_state_snapshot_is_detached():
    clock = TransportClock()
    snapshot = clock.state
    clock.seek_to_bar(5.0)

    assert snapshot.playhead_bar == 0.0
    assert TempoMap(tempo_bpm=120).bars_to_seconds(1) == 2.0
    assert clock.seek_seconds(TempoMap(tempo_bpm=120)) == 10.0


def test_stored_loop_shorter_than_gap_is_widened():
    clock = _make_clock(loop_start=2.0, loop_end=2.3)

    assert clock.loop_end == pytest.approx(2.5)


def test_loop_longer_than_arrangement_does_not_wrap_early():
    clock = _make_clock(loop_start=0.0, loop_end=12.0)

    assert clock.tick(10.0, arrangement_length=8.0, use_arrangement=True) == 10.0
    assert clock.tick(13.0, arrangement_length=8.0, use_arrangement=True) == pytest.approx(1.0)


def _make_clock(loop_start, loop_end):
    state = TransportState(loop_enabled=True, loop_start=loop_start, loop_end=loop_end)
    return TransportClock(state)
