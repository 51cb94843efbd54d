"""Tests for PlaybackClock: frame arithmetic, pause/seek and end-of-data halt."""

from __future__ import annotations

import logging

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from robotreplay.movement import MovementStore, Series
from robotreplay.playback import PlaybackClock


class _Now:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


class TestIdle:
    """Behaviour without data and while idle."""

    def test_start_without_data_is_noop(self, clock):
        clock.start()
        assert not clock.is_running
        assert clock.current_frame() == 0

    def test_start_with_zero_length_series_is_noop(self, clock, store, series_factory):
        store.add(0, series_factory(0))
        clock.start()
        assert not clock.is_running

    def test_idle_frame_is_offset(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(50))
        clock.seek(12)
        fake_time.advance(5.0)
        assert clock.current_frame() == 12
        assert clock.origin_wall_time is None

    def test_invalid_interval_raises(self, store):
        with pytest.raises(ValueError, match=r"\[E3001\]"):
            PlaybackClock(store, sample_interval_s=0.0)


class TestRunning:
    """Frame arithmetic while running."""

    def test_frame_advances_with_wall_time(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        assert clock.current_frame() == 0
        fake_time.advance(0.5)
        assert clock.current_frame() == 5
        fake_time.advance(0.25)
        assert clock.current_frame() == 7

    def test_start_is_idempotent(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        origin = clock.origin_wall_time
        fake_time.advance(1.0)
        clock.start()
        assert clock.origin_wall_time == origin
        assert clock.current_frame() == 10

    def test_pause_freezes_frame(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        fake_time.advance(1.0)
        clock.pause()
        assert not clock.is_running
        assert clock.frame_offset == 10
        fake_time.advance(3.0)
        assert clock.current_frame() == 10

    def test_resume_continues_from_pause(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        fake_time.advance(1.0)
        clock.pause()
        fake_time.advance(10.0)
        clock.start()
        assert clock.current_frame() == 10
        fake_time.advance(0.5)
        assert clock.current_frame() == 15

    def test_pause_when_idle_is_noop(self, clock, store, series_factory):
        store.add(0, series_factory(100))
        clock.seek(4)
        clock.pause()
        assert clock.frame_offset == 4

    def test_stop_behaves_like_pause(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        fake_time.advance(2.0)
        clock.stop()
        assert not clock.is_running
        assert clock.current_frame() == 20


class TestSeek:
    """Tests for seek()."""

    def test_seek_while_running_reanchors(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        fake_time.advance(3.0)
        clock.seek(40)
        assert clock.is_running
        assert clock.current_frame() == 40
        fake_time.advance(1.0)
        assert clock.current_frame() == 50

    def test_seek_clamps_to_data(self, clock, store, series_factory):
        store.add(0, series_factory(30))
        clock.seek(500)
        assert clock.current_frame() == 29
        clock.seek(-5)
        assert clock.current_frame() == 0

    def test_seek_without_data_is_zero(self, clock):
        clock.seek(10)
        assert clock.current_frame() == 0


class TestEndOfData:
    """End of the shortest series clamps and halts."""

    def test_two_robots_halt_at_shortest(self, clock, store, series_factory, fake_time):
        store.add(1, series_factory(300))
        store.add(2, series_factory(200))
        assert store.min_length() == 200

        clock.start()
        fake_time.advance(200 * 0.1)
        assert clock.current_frame() == 199
        assert not clock.is_running

    def test_end_is_idempotent(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(10))
        clock.start()
        fake_time.advance(50.0)
        assert clock.current_frame() == 9
        fake_time.advance(50.0)
        assert clock.current_frame() == 9
        assert clock.frame_offset == 9

    def test_last_frame_reached_without_halting(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(10))
        clock.start()
        fake_time.advance(0.95)
        assert clock.current_frame() == 9
        assert clock.is_running

    def test_end_of_data_logged(self, clock, store, series_factory, fake_time, caplog):
        store.add(0, series_factory(10))
        clock.start()
        fake_time.advance(5.0)
        with caplog.at_level(logging.INFO, logger="robotreplay.playback.clock"):
            clock.current_frame()
        assert "End of data at frame 9" in caplog.text

    def test_restart_after_end_stays_at_last(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(10))
        clock.start()
        fake_time.advance(5.0)
        clock.current_frame()
        clock.start()
        fake_time.advance(1.0)
        assert clock.current_frame() == 9
        assert not clock.is_running

    def test_shorter_robot_added_while_running(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        fake_time.advance(3.0)
        store.add(1, series_factory(20))
        assert clock.current_frame() == 19
        assert not clock.is_running

    def test_all_robots_removed_while_running(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        clock.start()
        fake_time.advance(1.0)
        store.remove(0)
        assert clock.current_frame() == 0
        assert not clock.is_running

    @given(
        n_frames=st.integers(min_value=1, max_value=200),
        steps=st.lists(st.floats(min_value=0.0, max_value=2.0), max_size=25),
    )
    def test_frame_monotonic_and_in_range(self, n_frames, steps):
        """Without seeks the frame never decreases and stays in range."""
        now = _Now()
        store = MovementStore()
        store.add(0, Series(np.zeros((n_frames, 1)), ["j"]))
        clock = PlaybackClock(store, sample_interval_s=0.1, time_func=now)
        clock.start()
        previous = clock.current_frame()
        for step in steps:
            now.t += step
            frame = clock.current_frame()
            assert 0 <= frame < n_frames
            assert frame >= previous
            previous = frame


class TestTick:
    """Tests for on_tick()/tick()."""

    def test_tick_delivers_current_frame(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(100))
        received = []
        clock.on_tick(received.append)
        clock.start()
        fake_time.advance(0.3)
        assert clock.tick() == 3
        assert received == [3]

    def test_on_tick_replaces_previous(self, clock):
        first, second = [], []
        old = clock.on_tick(first.append)
        new = clock.on_tick(second.append)
        clock.tick()
        assert first == []
        assert second == [0]
        assert not old.active
        assert new.active

    def test_dispose_unregisters(self, clock):
        received = []
        subscription = clock.on_tick(received.append)
        subscription.dispose()
        clock.tick()
        assert received == []
        assert not subscription.active

    def test_disposing_stale_handle_keeps_current(self, clock):
        received = []
        old = clock.on_tick(lambda frame: None)
        clock.on_tick(received.append)
        old.dispose()
        clock.tick()
        assert received == [0]


class TestAtEnd:
    def test_at_end_after_halt(self, clock, store, series_factory, fake_time):
        store.add(0, series_factory(10))
        assert not clock.at_end
        clock.start()
        fake_time.advance(5.0)
        clock.current_frame()
        assert clock.at_end

    def test_not_at_end_without_data(self, clock):
        assert not clock.at_end

    def test_seek_to_last_frame_is_at_end(self, clock, store, series_factory):
        store.add(0, series_factory(10))
        clock.seek(9)
        assert clock.at_end
        clock.seek(8)
        assert not clock.at_end
