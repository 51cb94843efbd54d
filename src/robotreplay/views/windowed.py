"""Sliding-window projection of a series into chart pixel space.

A line chart shows a window of frames around the playback position. Every
build recomputes the frame-to-pixel scale because the window's frame extent
moves with each tick. A brush selection pins the chart to an explicit frame
range until cleared.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import cached_property
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from robotreplay._timing import timing
from robotreplay.config import Margins, ReplayConfig
from robotreplay.movement.series import Series

logger = logging.getLogger(__name__)


class LinearScale:
    """Continuous linear map from a data domain to a pixel range.

    A zero-width domain maps everything to the middle of the range.

    Examples
    --------
    >>> scale = LinearScale((0, 10), (30, 130))
    >>> float(scale(5))
    80.0
    >>> float(scale.invert(80))
    5.0
    """

    __slots__ = ("domain", "range")

    def __init__(
        self,
        domain: tuple[float, float],
        range: tuple[float, float],  # noqa: A002
    ) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range[0]), float(range[1]))

    def __call__(self, value: float | NDArray[np.float64]) -> NDArray[np.float64]:
        d0, d1 = self.domain
        r0, r1 = self.range
        value = np.asarray(value, dtype=np.float64)
        if d1 == d0:
            return np.full_like(value, (r0 + r1) / 2)
        return r0 + (value - d0) * (r1 - r0) / (d1 - d0)

    def invert(self, pixel: float | NDArray[np.float64]) -> NDArray[np.float64]:
        d0, d1 = self.domain
        r0, r1 = self.range
        pixel = np.asarray(pixel, dtype=np.float64)
        if r1 == r0:
            return np.full_like(pixel, (d0 + d1) / 2)
        return d0 + (pixel - r0) * (d1 - d0) / (r1 - r0)

    def __repr__(self) -> str:
        return f"LinearScale(domain={self.domain}, range={self.range})"


class ChartPoint(NamedTuple):
    """One plotted sample in pixel space, labelled with its channel."""

    frame: int
    value: float
    channel: str
    x: float
    y: float


@dataclass(frozen=True)
class SeriesWindow:
    """Frames ``[start, stop)`` of a series, projected for one chart.

    Attributes
    ----------
    start, stop : int
        Half-open frame range, always inside ``[0, len(series))``.
    values : dict[str, ndarray]
        Per-channel display values for the range; NaN samples read as 0.
    x_scale, y_scale : LinearScale
        Frame-to-pixel and value-to-pixel scales for this window.
    pinned : bool
        True if the range comes from a brush selection rather than playback.
    """

    start: int
    stop: int
    values: dict[str, NDArray[np.float64]]
    x_scale: LinearScale
    y_scale: LinearScale
    pinned: bool = False
    _channels: tuple[str, ...] = field(default=(), repr=False)

    @property
    def channels(self) -> tuple[str, ...]:
        return self._channels

    @property
    def frames(self) -> NDArray[np.int64]:
        return np.arange(self.start, self.stop, dtype=np.int64)

    @property
    def is_empty(self) -> bool:
        """True if there is nothing to draw; renderers skip empty windows."""
        return not self._channels or self.stop <= self.start

    def __len__(self) -> int:
        return max(self.stop - self.start, 0)

    def pairs(self, channel: str) -> list[tuple[int, float]]:
        """Ordered ``(frame_index, value)`` pairs for ``channel``."""
        return [
            (int(f), float(v))
            for f, v in zip(self.frames, self.values[channel], strict=True)
        ]

    def pixels(self, channel: str) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Pixel coordinates ``(xs, ys)`` of ``channel``'s line."""
        return self.x_scale(self.frames), self.y_scale(self.values[channel])

    @cached_property
    def points(self) -> list[ChartPoint]:
        """Every sample of every channel as a :class:`ChartPoint`."""
        out: list[ChartPoint] = []
        frames = self.frames
        xs = self.x_scale(frames)
        for channel in self._channels:
            vals = self.values[channel]
            ys = self.y_scale(vals)
            out.extend(
                ChartPoint(int(f), float(v), channel, float(x), float(y))
                for f, v, x, y in zip(frames, vals, xs, ys, strict=True)
            )
        return out


def nearest_point(
    points: Sequence[ChartPoint], x: float, y: float
) -> ChartPoint | None:
    """Return the point closest to pixel ``(x, y)``, or None if there are none.

    Ties resolve to the earliest point in ``points``.
    """
    if not points:
        return None
    coords = np.array([(p.x, p.y) for p in points], dtype=np.float64)
    distances = np.hypot(coords[:, 0] - x, coords[:, 1] - y)
    return points[int(np.argmin(distances))]


class WindowedSeriesView:
    """Builds chart windows and answers hit-testing queries for one chart.

    Parameters
    ----------
    config : ReplayConfig, optional
        Supplies chart size, margins and the default window size.
    window_size : int, optional
        Frames per playback window; overrides ``config.window_size``.

    Attributes
    ----------
    current : SeriesWindow or None
        Window produced by the most recent :meth:`refresh` or
        :meth:`rescale_to_selection`.
    selection : tuple of int or None
        Pinned ``[start, end)`` brush range, if any.

    Examples
    --------
    >>> import numpy as np
    >>> series = Series(np.zeros((50, 1)), ["a"])
    >>> window = WindowedSeriesView().build_window(series, 5, 20, ["a"])
    >>> window.start, window.stop
    (0, 15)
    """

    def __init__(
        self,
        config: ReplayConfig | None = None,
        window_size: int | None = None,
    ) -> None:
        config = config or ReplayConfig()
        self.width: float = config.chart_width_px
        self.height: float = config.chart_height_px
        self.margins: Margins = config.margins
        self.window_size: int = window_size if window_size is not None else config.window_size
        self.current: SeriesWindow | None = None
        self.selection: tuple[int, int] | None = None

    @property
    def x_range(self) -> tuple[float, float]:
        return (self.margins.left, self.width - self.margins.right)

    @property
    def y_range(self) -> tuple[float, float]:
        # Pixel y grows downward
        return (self.height - self.margins.bottom, self.margins.top)

    def update_window_size(self, window_size: int) -> None:
        """Change the number of frames shown around the playback frame."""
        if window_size < 2:
            raise ValueError(f"[E3002] window_size must be at least 2 (got {window_size}).")
        self.window_size = int(window_size)

    def build_window(
        self,
        series: Series,
        center: int,
        window_size: int,
        channels: Sequence[str],
    ) -> SeriesWindow:
        """Project the frames around ``center`` for ``channels``.

        The range is ``[center - window_size // 2, center + window_size // 2)``
        clamped to ``[0, len(series))``; a series shorter than the window
        degenerates to the whole series.
        """
        half = int(window_size) // 2
        start = max(0, int(center) - half)
        stop = max(0, min(len(series), int(center) + half))
        start = min(start, stop)
        return self._project(series, start, stop, channels, pinned=False)

    def rescale_to_selection(
        self,
        series: Series,
        start: float,
        end: float,
        channels: Sequence[str],
    ) -> SeriesWindow | None:
        """Pin the chart to the brushed frame range ``[start, end)``.

        Selections spanning one frame or less are ignored: nothing is
        computed, the view keeps its current window and None is returned.
        """
        lo, hi = sorted((int(np.floor(start)), int(np.floor(end))))
        if hi - lo <= 1:
            logger.debug("Ignoring degenerate brush selection [%s, %s)", start, end)
            return None
        lo = max(0, lo)
        hi = min(len(series), hi)
        if hi - lo <= 1:
            logger.debug(
                "Brush selection [%s, %s) falls outside series of length %d",
                start,
                end,
                len(series),
            )
            return None
        self.selection = (lo, hi)
        self.current = self._project(series, lo, hi, channels, pinned=True)
        return self.current

    def clear_selection(self) -> None:
        """Return the chart to playback-driven windows."""
        self.selection = None

    def refresh(
        self,
        series: Series,
        center: int,
        channels: Sequence[str],
    ) -> SeriesWindow:
        """Rebuild :attr:`current` for a new playback position.

        A pinned selection takes precedence over ``center``.
        """
        if self.selection is not None:
            lo, hi = self.selection
            hi = min(hi, len(series))
            lo = min(lo, hi)
            self.current = self._project(series, lo, hi, channels, pinned=True)
        else:
            self.current = self.build_window(series, center, self.window_size, channels)
        return self.current

    def nearest_point(
        self,
        points: Sequence[ChartPoint],
        x: float,
        y: float,
    ) -> ChartPoint | None:
        """See :func:`nearest_point`."""
        return nearest_point(points, x, y)

    def frame_at(self, x: float, window: SeriesWindow | None = None) -> int | None:
        """Frame under pixel column ``x`` in ``window`` (default :attr:`current`).

        Returns None when there is no window to hit-test.
        """
        window = window if window is not None else self.current
        if window is None or len(window) == 0:
            return None
        frame = int(np.floor(float(window.x_scale.invert(x))))
        return max(window.start, min(frame, window.stop - 1))

    def _project(
        self,
        series: Series,
        start: int,
        stop: int,
        channels: Sequence[str],
        *,
        pinned: bool,
    ) -> SeriesWindow:
        with timing("WindowedSeriesView._project"):
            present = tuple(c for c in channels if series.has_channel(c))
            if len(present) != len(channels):
                logger.debug(
                    "Skipping channels missing from series: %s",
                    [c for c in channels if not series.has_channel(c)],
                )
            values = {
                c: np.nan_to_num(series.column(c)[start:stop], nan=0.0) for c in present
            }
            x_scale = LinearScale((start, max(stop - 1, start)), self.x_range)
            y_scale = LinearScale(_value_domain(values), self.y_range)
            return SeriesWindow(
                start=start,
                stop=stop,
                values=values,
                x_scale=x_scale,
                y_scale=y_scale,
                pinned=pinned,
                _channels=present,
            )


def _value_domain(values: dict[str, NDArray[np.float64]]) -> tuple[float, float]:
    """Y domain covering every value with a 5% margin."""
    non_empty = [v for v in values.values() if v.size]
    if not non_empty:
        return (-1.0, 1.0)
    stacked = np.concatenate(non_empty)
    vmin, vmax = float(stacked.min()), float(stacked.max())
    span = vmax - vmin
    margin = span * 0.05 if span > 0 else 0.5
    return (vmin - margin, vmax + margin)


__all__ = [
    "ChartPoint",
    "LinearScale",
    "SeriesWindow",
    "WindowedSeriesView",
    "nearest_point",
]
