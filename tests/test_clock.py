from __future__ import annotations

import pytest

from terminal_karaoke.sync.clock import PlaybackClock


def test_now_advances_with_instant_source(fake_time):
    clock = PlaybackClock(now_fn=fake_time)
    assert clock.now() == 0.0
    fake_time.advance(2.5)
    assert clock.now() == 2.5


def test_start_position_added_without_consuming_time(fake_time):
    clock = PlaybackClock(start_position=10.0, now_fn=fake_time)
    assert clock.now() == 10.0
    fake_time.advance(1.0)
    assert clock.now() == 11.0


def test_now_frozen_while_paused(fake_time):
    clock = PlaybackClock(now_fn=fake_time)
    fake_time.advance(1.0)
    assert clock.toggle_pause() is True
    frozen = clock.now()
    for _ in range(3):
        fake_time.advance(5.0)
        assert clock.now() == frozen


def test_double_toggle_excludes_pause_interval(fake_time):
    clock = PlaybackClock(now_fn=fake_time)
    fake_time.advance(3.0)
    before = clock.now()
    clock.toggle_pause()
    fake_time.advance(2.0)
    assert clock.toggle_pause() is False
    assert clock.now() == before
    assert clock.state.accumulated_pause_duration == 2.0
    assert clock.state.pause_began_instant is None
    fake_time.advance(1.0)
    assert clock.now() == before + 1.0


def test_restart_discards_offset_and_pause(fake_time):
    clock = PlaybackClock(start_position=4.0, now_fn=fake_time)
    fake_time.advance(7.0)
    clock.adjust_offset(3.0)
    clock.toggle_pause()
    fake_time.advance(1.0)

    clock.restart()
    assert clock.now() == 4.0
    assert clock.is_paused is False
    assert clock.time_offset == 0.0
    assert clock.state.accumulated_pause_duration == 0.0


def test_ten_small_nudges_make_exactly_one_second(fake_time):
    clock = PlaybackClock(now_fn=fake_time)
    fake_time.advance(2.0)
    baseline = clock.now()
    for _ in range(10):
        clock.adjust_offset(+0.1)
    assert clock.time_offset == 1.0
    assert clock.now() - baseline == 1.0


def test_offset_applies_while_paused(fake_time):
    clock = PlaybackClock(now_fn=fake_time)
    fake_time.advance(2.0)
    clock.toggle_pause()
    clock.adjust_offset(-0.5)
    assert clock.now() == 1.5


def test_negative_offset_clamps_to_zero(fake_time):
    clock = PlaybackClock(now_fn=fake_time)
    fake_time.advance(1.0)
    clock.adjust_offset(-5.0)
    assert clock.now() == 0.0
    assert clock.time_offset == -5.0


def test_duration_caps_now(fake_time):
    clock = PlaybackClock(duration=5.0, now_fn=fake_time)
    fake_time.advance(4.0)
    clock.adjust_offset(+30.0)
    assert clock.now() == 5.0


def test_start_resets_state(fake_time):
    clock = PlaybackClock(now_fn=fake_time)
    fake_time.advance(3.0)
    clock.adjust_offset(1.0)
    clock.start(2.0)
    assert clock.start_position == 2.0
    assert clock.now() == pytest.approx(2.0)
