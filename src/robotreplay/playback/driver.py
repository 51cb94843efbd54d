"""Host-pumped driver tying the animation control, clock and pose sink together."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import NamedTuple

from robotreplay.config import DEFAULT_DISPLAY_INTERVAL_S, DEFAULT_SAMPLE_INTERVAL_S
from robotreplay.movement.store import MovementStore
from robotreplay.playback.clock import PlaybackClock
from robotreplay.playback.control import AnimationControl
from robotreplay.pose import PoseSink, push_frame_to_sink

logger = logging.getLogger(__name__)


class PumpResult(NamedTuple):
    """Which pumps ran during :meth:`PlaybackDriver.advance`."""

    frame: bool
    tick: bool


class PlaybackDriver:
    """Cooperative pump for one replay session.

    Two cadences run independently. The display pump (:meth:`pump_frame`)
    reconciles the clock with the :class:`AnimationControl` and pushes the
    current pose of every loaded robot to the sink. The tick pump
    (:meth:`pump_tick`) runs the clock's tick callback, which redraws charts.
    Hosts either call the pumps directly from their own loop or call
    :meth:`advance` as often as they like and let the driver decide which
    pumps are due.

    Parameters
    ----------
    store : MovementStore
        Loaded movement.
    clock : PlaybackClock
        Shared playback clock.
    control : AnimationControl
        Animate toggle, polled on every display pump.
    sink : PoseSink, optional
        Viewer receiving poses. Without one only the clock is driven.
    display_interval_s : float, default=1/60
        Period of :meth:`pump_frame` under :meth:`advance`.
    tick_interval_s : float, default=1/30
        Period of :meth:`pump_tick` under :meth:`advance`.
    time_func : callable, default=time.perf_counter
        Clock used by :meth:`advance` when ``now`` is not given.
    """

    def __init__(
        self,
        store: MovementStore,
        clock: PlaybackClock,
        control: AnimationControl,
        sink: PoseSink | None = None,
        *,
        display_interval_s: float = DEFAULT_DISPLAY_INTERVAL_S,
        tick_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S,
        time_func: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.store = store
        self.clock = clock
        self.control = control
        self.sink = sink
        self.display_interval_s = display_interval_s
        self.tick_interval_s = tick_interval_s
        self._time = time_func

        self._next_frame_at: float | None = None
        self._next_tick_at: float | None = None

    def sync_control(self) -> None:
        """Drive the clock toward the control's level.

        Checked and data loaded starts the clock; unchecked pauses it if it
        is running. Without data nothing changes. A checked control with the
        clock halted on the last frame is unchecked, so playback that reached
        the end of data stays stopped.
        """
        if not self.store.has_any():
            return
        if self.control.is_checked():
            if self.clock.at_end:
                logger.debug("Clock at end of data; unchecking animation")
                self.control.uncheck()
                return
            self.clock.start()
        elif self.clock.is_running:
            self.clock.pause()

    def push_poses(self, frame: int | None = None) -> int | None:
        """Send one frame of every loaded robot to the sink.

        Every robot receives its joint values, base position and base
        rotation. Whether the base actually moves is up to the viewer; see
        :meth:`RobotDisplaySink.set_robot_stand_still`.

        Parameters
        ----------
        frame : int, optional
            Frame to push. Defaults to the clock's current frame.

        Returns
        -------
        int or None
            Frame that was pushed, or None if there was nothing to push.
        """
        if self.sink is None or not self.store.has_any():
            return None
        frame_idx = self.clock.current_frame() if frame is None else frame
        for robot_id in self.store.robot_ids():
            series = self.store.get(robot_id)
            if frame_idx >= len(series):
                continue
            push_frame_to_sink(
                self.sink, robot_id, series[frame_idx], series.joint_channels
            )
        return frame_idx

    def pump_frame(self) -> None:
        """Display-cadence pump: reconcile control, then push poses."""
        self.sync_control()
        self.push_poses()

    def pump_tick(self, frame: int | None = None) -> int:
        """Tick-cadence pump: run the clock's tick callback."""
        return self.clock.tick(frame)

    def advance(self, now: float | None = None) -> PumpResult:
        """Run whichever pumps are due at ``now``.

        A pump that is late runs once and is rescheduled from ``now``; missed
        periods are not replayed in a burst. When both pumps are due they
        share a single frame read, so the sink and the tick callback see the
        same frame.
        """
        if now is None:
            now = self._time()
        frame_due = self._next_frame_at is None or now >= self._next_frame_at
        tick_due = self._next_tick_at is None or now >= self._next_tick_at
        if not (frame_due or tick_due):
            return PumpResult(False, False)
        if frame_due:
            self.sync_control()
        frame = self.clock.current_frame()
        if frame_due:
            self.push_poses(frame)
            self._next_frame_at = now + self.display_interval_s
        if tick_due:
            self.pump_tick(frame)
            self._next_tick_at = now + self.tick_interval_s
        return PumpResult(frame_due, tick_due)

    def reset_schedule(self) -> None:
        """Make both pumps due on the next :meth:`advance`."""
        self._next_frame_at = None
        self._next_tick_at = None


__all__ = ["PlaybackDriver", "PumpResult"]
