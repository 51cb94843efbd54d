"""Tests for PlaybackDriver: level-triggered control and the two pump cadences."""

from __future__ import annotations

from unittest.mock import MagicMock, call

import pytest

from robotreplay.movement import MovementStore
from robotreplay.playback import AnimationControl, PlaybackClock, PlaybackDriver
from robotreplay.pose import PoseSink, Vector3


@pytest.fixture
def sink():
    return MagicMock(spec=PoseSink)


@pytest.fixture
def control():
    return AnimationControl()


@pytest.fixture
def driver(store, clock, control, sink, fake_time):
    return PlaybackDriver(
        store,
        clock,
        control,
        sink,
        display_interval_s=0.05,
        tick_interval_s=0.1,
        time_func=fake_time,
    )


class TestSyncControl:
    """The control is level-triggered."""

    def test_checked_without_data_does_not_start(self, driver, control, clock):
        control.check()
        driver.sync_control()
        assert not clock.is_running

    def test_checked_starts_clock(self, driver, control, clock, store, series_factory):
        store.add(0, series_factory(100))
        control.check()
        driver.sync_control()
        assert clock.is_running

    def test_unchecked_pauses_clock(
        self, driver, control, clock, store, series_factory, fake_time
    ):
        store.add(0, series_factory(100))
        control.check()
        driver.sync_control()
        fake_time.advance(1.0)
        control.uncheck()
        driver.sync_control()
        assert not clock.is_running
        assert clock.current_frame() == 10

    def test_checked_after_end_does_not_advance(
        self, driver, control, clock, store, series_factory, fake_time
    ):
        store.add(0, series_factory(10))
        control.check()
        driver.sync_control()
        fake_time.advance(5.0)
        assert clock.current_frame() == 9
        driver.sync_control()
        assert not control.is_checked()
        assert not clock.is_running
        fake_time.advance(1.0)
        assert clock.current_frame() == 9


class TestPushPoses:
    """Pose pushes at display cadence."""

    def test_no_sink_or_data_pushes_nothing(self, driver, sink):
        assert driver.push_poses() is None
        sink.set_joint_value.assert_not_called()

    def test_pushes_joints_and_base(self, driver, sink, store, pose_series):
        store.add(4, pose_series)
        assert driver.push_poses() == 0
        sink.set_joint_value.assert_has_calls(
            [call(4, "hip", 0.0), call(4, "knee", 0.0)]
        )
        sink.set_robot_position.assert_called_once_with(4, Vector3(0.0, 1.0, 2.0))
        sink.set_robot_rotation.assert_called_once_with(4, Vector3(0.0, 0.0, 0.5))

    def test_unparseable_sample_pushed_as_zero(self, driver, sink, store, clock, pose_series):
        store.add(0, pose_series)
        clock.seek(3)
        driver.push_poses()
        sink.set_joint_value.assert_any_call(0, "knee", 0.0)
        sink.set_joint_value.assert_any_call(0, "hip", pytest.approx(0.3))

    def test_every_robot_gets_base_pose(self, driver, sink, store, pose_series):
        store.add(0, pose_series)
        store.add(1, pose_series)
        driver.push_poses()
        sink.set_robot_position.assert_has_calls(
            [call(0, Vector3(0.0, 1.0, 2.0)), call(1, Vector3(0.0, 1.0, 2.0))]
        )
        assert sink.set_robot_rotation.call_count == 2

    def test_explicit_frame(self, driver, sink, store, clock, series_factory):
        store.add(0, series_factory(20, channels=("a",)))
        clock.seek(2)
        assert driver.push_poses(11) == 11
        sink.set_joint_value.assert_called_once_with(0, "a", 11.0)

    def test_all_robots_receive_same_frame(self, driver, sink, store, clock, series_factory):
        store.add(0, series_factory(20, channels=("a",)))
        store.add(1, series_factory(30, channels=("a",), offset=100.0))
        clock.seek(7)
        driver.push_poses()
        sink.set_joint_value.assert_has_calls([call(0, "a", 7.0), call(1, "a", 107.0)])


class TestAdvance:
    """advance() runs each pump on its own cadence."""

    def test_first_advance_runs_both(self, driver):
        result = driver.advance()
        assert result.frame and result.tick

    def test_cadences_are_independent(self, driver, fake_time):
        driver.advance()
        fake_time.advance(0.06)
        assert tuple(driver.advance()) == (True, False)
        fake_time.advance(0.05)
        assert tuple(driver.advance()) == (True, True)
        assert tuple(driver.advance()) == (False, False)

    def test_explicit_now(self, driver, fake_time):
        driver.advance(now=0.0)
        assert tuple(driver.advance(now=0.01)) == (False, False)
        assert tuple(driver.advance(now=0.2)) == (True, True)

    def test_tick_pump_runs_clock_callback(self, driver, clock, store, series_factory):
        store.add(0, series_factory(10))
        frames = []
        clock.on_tick(frames.append)
        clock.seek(4)
        driver.advance()
        assert frames == [4]

    def test_reset_schedule(self, driver):
        driver.advance(now=0.0)
        driver.reset_schedule()
        assert tuple(driver.advance(now=0.001)) == (True, True)

    def test_advance_starts_playback_from_control(
        self, driver, control, clock, store, series_factory, fake_time
    ):
        store.add(0, series_factory(100))
        control.check()
        driver.advance()
        assert clock.is_running
        fake_time.advance(0.5)
        driver.advance()
        assert clock.current_frame() == 5

    def test_pose_and_tick_share_one_frame(self, series_factory):
        class CreepingTime:
            """Wall clock that moves forward on every read."""

            def __init__(self):
                self.now = 0.0

            def __call__(self):
                self.now += 0.06
                return self.now

        store = MovementStore()
        store.add(0, series_factory(100, channels=("a",)))
        clock = PlaybackClock(store, sample_interval_s=0.1, time_func=CreepingTime())
        control = AnimationControl()
        control.check()
        sink = MagicMock(spec=PoseSink)
        driver = PlaybackDriver(
            store, clock, control, sink, display_interval_s=0.0, tick_interval_s=0.0
        )
        ticks = []
        clock.on_tick(ticks.append)
        for step in range(10):
            assert tuple(driver.advance(now=float(step))) == (True, True)
            assert sink.set_joint_value.call_args == call(0, "a", float(ticks[-1]))
        assert ticks[-1] > 0
