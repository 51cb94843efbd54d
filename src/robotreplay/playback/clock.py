"""Shared playback clock.

One :class:`PlaybackClock` per session maps wall-clock time to the frame
index read by every consumer (pose sink, line charts, heatmap cursor). The
clock never schedules itself; a host driver pumps :meth:`PlaybackClock.tick`
at its own cadence, so the data rate stays fixed at one frame per
``sample_interval_s`` however fast the host renders.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable

from robotreplay.config import DEFAULT_SAMPLE_INTERVAL_S
from robotreplay.movement.store import MovementStore

logger = logging.getLogger(__name__)

# Absorbs float error when elapsed time lands exactly on a sample boundary
_FRAME_EPSILON: float = 1e-9

TickCallback = Callable[[int], None]


class TickSubscription:
    """Handle for the clock's tick callback; :meth:`dispose` unregisters it."""

    __slots__ = ("_clock", "callback")

    def __init__(self, clock: PlaybackClock, callback: TickCallback) -> None:
        self._clock = clock
        self.callback = callback

    @property
    def active(self) -> bool:
        return self._clock._subscription is self

    def dispose(self) -> None:
        if self.active:
            self._clock._subscription = None


class PlaybackClock:
    """Wall-time to frame-index clock with pause, seek and end-of-data halt.

    States are Idle and Running. While idle the current frame is exactly
    ``frame_offset``. While running it is
    ``floor((now - origin_wall_time) / sample_interval_s) + frame_offset``.
    The current frame is always inside ``[0, store.min_length())``; reaching
    the minimum length clamps to the last common frame and stops playback.

    Parameters
    ----------
    store : MovementStore
        Source of the data guard (``has_any``) and end-of-data bound
        (``min_length``).
    sample_interval_s : float, default=1/30
        Wall-clock seconds per frame.
    time_func : callable, default=time.perf_counter
        Monotonic clock returning seconds. Inject a fake in tests.

    Examples
    --------
    >>> now = [0.0]
    >>> store = MovementStore()
    >>> clock = PlaybackClock(store, sample_interval_s=0.1, time_func=lambda: now[0])
    >>> clock.start()  # no data loaded: no-op
    >>> clock.is_running
    False
    """

    def __init__(
        self,
        store: MovementStore,
        sample_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S,
        time_func: Callable[[], float] = time.perf_counter,
    ) -> None:
        if not sample_interval_s > 0:
            raise ValueError(
                f"[E3001] sample_interval_s must be positive (got {sample_interval_s})."
            )
        self.store = store
        self.sample_interval_s = sample_interval_s
        self._time = time_func

        self._origin_wall_time: float | None = None
        self._frame_offset: int = 0
        self._running: bool = False
        self._subscription: TickSubscription | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def frame_offset(self) -> int:
        """Frame playback resumes from (the frozen frame while idle)."""
        return self._frame_offset

    @property
    def origin_wall_time(self) -> float | None:
        """Wall time playback was last anchored at; None while idle."""
        return self._origin_wall_time

    @property
    def at_end(self) -> bool:
        """True while idle on the last frame common to every loaded robot."""
        last = self._last_frame()
        return last is not None and not self._running and self._frame_offset == last

    def start(self) -> None:
        """Enter Running from the current offset; no-op if running or no data."""
        if self._running or self._last_frame() is None:
            return
        self._clamp_offset()
        self._origin_wall_time = self._time()
        self._running = True
        logger.debug("Playback started at frame %d", self._frame_offset)

    def pause(self) -> None:
        """Freeze the current frame into ``frame_offset`` and go idle."""
        if not self._running:
            return
        frame = self.current_frame()
        # current_frame() may already have stopped us at end of data
        self._frame_offset = frame
        self._running = False
        self._origin_wall_time = None
        logger.debug("Playback paused at frame %d", frame)

    def stop(self) -> None:
        """Alias of :meth:`pause` used for the end-of-data transition."""
        self.pause()

    def seek(self, frame: int) -> None:
        """Jump to ``frame`` (clamped); keeps playing from there if running."""
        self._frame_offset = self._clamp(int(frame))
        if self._running:
            self._origin_wall_time = self._time()
        logger.debug("Seek to frame %d (running=%s)", self._frame_offset, self._running)

    def current_frame(self) -> int:
        """Frame index for the current wall time.

        Reaching the end of the shortest loaded series halts playback at its
        last frame; playback never wraps.
        """
        last = self._last_frame()
        if last is None:
            if self._running:
                logger.info("No playable movement left; playback stopped")
                self._halt(0)
            self._frame_offset = 0
            return 0

        if not self._running or self._origin_wall_time is None:
            self._clamp_offset()
            return self._frame_offset

        elapsed = self._time() - self._origin_wall_time
        frame = int(math.floor(elapsed / self.sample_interval_s + _FRAME_EPSILON))
        frame = max(frame, 0) + self._frame_offset
        if frame > last:
            logger.info("End of data at frame %d; playback stopped", last)
            self._halt(last)
            return last
        return frame

    def on_tick(self, callback: TickCallback) -> TickSubscription:
        """Register the tick callback, replacing any previous one.

        The callback receives the current frame each time the driver calls
        :meth:`tick`.
        """
        self._subscription = TickSubscription(self, callback)
        return self._subscription

    def tick(self, frame: int | None = None) -> int:
        """Hand a frame to the tick callback.

        Parameters
        ----------
        frame : int, optional
            Frame already read from this clock. Defaults to
            :meth:`current_frame`.

        Returns
        -------
        int
            Frame passed to the callback.
        """
        if frame is None:
            frame = self.current_frame()
        if self._subscription is not None:
            self._subscription.callback(frame)
        return frame

    def _last_frame(self) -> int | None:
        """Last frame common to every loaded robot; None without playable data."""
        if not self.store.has_any():
            return None
        n = int(self.store.min_length())
        return n - 1 if n > 0 else None

    def _clamp(self, frame: int) -> int:
        last = self._last_frame()
        if last is None:
            return 0
        return max(0, min(frame, last))

    def _clamp_offset(self) -> None:
        self._frame_offset = self._clamp(self._frame_offset)

    def _halt(self, frame: int) -> None:
        self._frame_offset = frame
        self._running = False
        self._origin_wall_time = None

    def __repr__(self) -> str:
        state = "Running" if self._running else "Idle"
        return f"PlaybackClock({state}, frame_offset={self._frame_offset})"


__all__ = ["PlaybackClock", "TickCallback", "TickSubscription"]
