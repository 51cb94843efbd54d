"""Replay session: one store, one clock, many synchronized consumers.

A :class:`ReplaySession` owns every piece of a replay for one user session:
the movement store, the playback clock and its driver, the animate toggle,
one chart per robot or per channel, the heatmap of a selected robot, and a
typed :class:`RobotController` per robot. Host UIs translate their events
into the methods here and pump :meth:`ReplaySession.pump` from their frame
loop.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Literal

import numpy as np

from robotreplay.config import ReplayConfig
from robotreplay.movement.io import read_movement_csv
from robotreplay.movement.series import Series, is_joint_channel
from robotreplay.movement.store import MovementStore, RobotNotFoundError
from robotreplay.playback.clock import PlaybackClock
from robotreplay.playback.control import AnimationControl
from robotreplay.playback.driver import PlaybackDriver, PumpResult
from robotreplay.playback.subscriptions import OneShotEvent, SubscriptionHandle
from robotreplay.pose import PoseSink, RobotDisplaySink, Vector3
from robotreplay.rendering.heatmap import HeatmapRenderer
from robotreplay.rendering.line_chart import LineChartRenderer
from robotreplay.views.heatmap import DivergingColorScale, HeatmapAggregator, HeatmapResult
from robotreplay.views.windowed import ChartPoint, SeriesWindow, WindowedSeriesView

logger = logging.getLogger(__name__)

GroupMode = Literal["robot", "channel"]
"""Chart grouping: one chart per robot, or one chart per channel."""

ChartKey = int | str


def robot_label(robot_id: int) -> str:
    return f"Robot {robot_id}"


@dataclass
class RobotController:
    """Per-robot state created once when the robot is added.

    Attributes
    ----------
    robot_id : int
        Session-unique id, assigned in creation order.
    visible : bool
        Whether the viewer shows the robot.
    highlight : bool
        Whether the viewer highlights the robot.
    update_position : bool
        If False the viewer is told to keep the robot standing still: joints
        play but the viewer does not apply the recorded base pose.
    initial_position : Vector3
        Base position before any movement is applied.
    file_name : str or None
        Name of the loaded movement file.
    ready : bool
        True once the viewer reported the robot model loaded.
    """

    robot_id: int
    visible: bool = True
    highlight: bool = False
    update_position: bool = False
    initial_position: Vector3 = field(default_factory=lambda: Vector3(0.0, 0.0, 0.0))
    file_name: str | None = None
    ready: bool = False
    model_loaded: SubscriptionHandle | None = field(default=None, repr=False)


@dataclass
class Chart:
    """One line chart: its data source, view state and renderer."""

    key: ChartKey
    series: Series
    channels: tuple[str, ...]
    view: WindowedSeriesView
    renderer: LineChartRenderer | None = None
    hovered: str | None = None

    @property
    def window(self) -> SeriesWindow | None:
        return self.view.current


class ReplaySession:
    """Synchronized multi-robot replay.

    Parameters
    ----------
    config : ReplayConfig, optional
        Session configuration.
    sink : PoseSink, optional
        3D viewer receiving poses. If it also implements
        :class:`~robotreplay.pose.RobotDisplaySink`, robot toggles are
        forwarded to it.
    render : bool, default=True
        Create matplotlib renderers for charts and the heatmap. Set False for
        headless use where only the views are needed.
    time_func : callable, default=time.perf_counter
        Wall clock shared by the playback clock and driver.

    Examples
    --------
    >>> import io
    >>> session = ReplaySession(render=False)
    >>> robot = session.add_robot()
    >>> session.notify_model_loaded()
    1
    >>> _ = session.load_movement(robot.robot_id, io.StringIO("hip\\n0.1\\n0.2\\n"))
    >>> session.store.min_length()
    2
    """

    def __init__(
        self,
        config: ReplayConfig | None = None,
        sink: PoseSink | None = None,
        *,
        render: bool = True,
        time_func: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config or ReplayConfig()
        self.sink = sink
        self.render = render

        self.store = MovementStore()
        self.control = AnimationControl()
        self.clock = PlaybackClock(
            self.store, self.config.sample_interval_s, time_func=time_func
        )
        self.driver = PlaybackDriver(
            self.store,
            self.clock,
            self.control,
            sink,
            display_interval_s=self.config.display_interval_s,
            tick_interval_s=self.config.effective_tick_interval_s,
            time_func=time_func,
        )
        self.model_loaded = OneShotEvent("model-loaded")

        self.robots: dict[int, RobotController] = {}
        self._next_robot_id = 0

        self.group_mode: GroupMode = "robot"
        self.checked_robots: list[int] = []
        self.checked_channels: list[str] = []
        self.hovered_joint: str | None = None
        self.window_size = self.config.window_size
        self.charts: dict[ChartKey, Chart] = {}

        self.aggregator = HeatmapAggregator(self.config.heatmap_grid_columns)
        self.heatmap_robot: int | None = None
        self.heatmap: HeatmapResult | None = None
        self.heatmap_renderer: HeatmapRenderer | None = (
            HeatmapRenderer(
                DivergingColorScale(self.config.color_domain),
                width_px=self.config.chart_width_px,
            )
            if render
            else None
        )

        self.last_tick_frame: int | None = None
        self._tick = self.clock.on_tick(self._on_tick)

    # ------------------------------------------------------------------
    # Robot lifecycle
    # ------------------------------------------------------------------

    @property
    def can_add_robot(self) -> bool:
        """False while a previously added robot model is still loading."""
        return self.model_loaded.n_pending == 0

    def add_robot(self) -> RobotController:
        """Create the next robot and wait for its model to load.

        Animation is unchecked while the model loads; the controller becomes
        ready on the next :meth:`notify_model_loaded`.
        """
        robot_id = self._next_robot_id
        self._next_robot_id += 1
        controller = RobotController(
            robot_id, initial_position=Vector3(0.0, float(robot_id), 0.0)
        )
        self.robots[robot_id] = controller
        self.control.uncheck()
        controller.model_loaded = self.model_loaded.register(
            lambda: self._robot_ready(robot_id)
        )
        logger.debug("Added robot %d; waiting for its model", robot_id)
        return controller

    def notify_model_loaded(self) -> int:
        """Called by the viewer once robot models finish loading."""
        return self.model_loaded.fire()

    def _robot_ready(self, robot_id: int) -> None:
        controller = self.robots.get(robot_id)
        if controller is None:
            return
        controller.ready = True
        self._apply_display_state(controller)
        logger.debug("Robot %d ready", robot_id)

    def robot(self, robot_id: int) -> RobotController:
        """Return the controller of ``robot_id``.

        Raises
        ------
        RobotNotFoundError
            If the robot was never added or has been deleted.
        """
        try:
            return self.robots[robot_id]
        except KeyError:
            raise RobotNotFoundError(robot_id, tuple(self.robots)) from None

    def delete_robot(self, robot_id: int) -> None:
        """Remove a robot, its movement, its charts and its heatmap."""
        controller = self.robot(robot_id)
        if controller.model_loaded is not None:
            controller.model_loaded.dispose()
        self.store.remove(robot_id)
        del self.robots[robot_id]
        if robot_id in self.checked_robots:
            self.checked_robots.remove(robot_id)

        if self.heatmap_robot == robot_id:
            remaining = self.heatmap_options()
            self.select_heatmap_robot(remaining[0] if remaining else None)
        self._rebuild_charts()
        logger.info("Deleted robot %d", robot_id)

    # ------------------------------------------------------------------
    # Movement loading
    # ------------------------------------------------------------------

    def load_movement(
        self,
        robot_id: int,
        source: str | Path | IO[str],
        file_name: str | None = None,
    ) -> Series:
        """Parse a movement CSV and attach it to ``robot_id``.

        The store is only touched after parsing succeeds, so a failed load
        leaves the previous movement in place.
        """
        series = read_movement_csv(source)
        if file_name is None and isinstance(source, (str, Path)):
            file_name = Path(source).name
        self.load_series(robot_id, series, file_name=file_name)
        return series

    def load_series(
        self,
        robot_id: int,
        series: Series,
        file_name: str | None = None,
    ) -> None:
        """Attach an already-parsed series to ``robot_id``, replacing any previous one."""
        controller = self.robot(robot_id)
        if robot_id in self.store:
            self.store.remove(robot_id)
        self.store.add(robot_id, series)
        controller.file_name = file_name

        if robot_id not in self.checked_robots:
            self.checked_robots.append(robot_id)
        self._rebuild_charts()
        self.select_heatmap_robot(robot_id)
        logger.info(
            "Robot %d movement loaded (%d frames); min_length=%s",
            robot_id,
            len(series),
            self.store.min_length(),
        )

    def channels(self) -> tuple[str, ...]:
        """Joint channels available for plotting, in header order."""
        return tuple(c for c in self.store.channels() if is_joint_channel(c))

    # ------------------------------------------------------------------
    # Robot toggles
    # ------------------------------------------------------------------

    def set_robot_visible(self, robot_id: int, visible: bool) -> None:
        self.robot(robot_id).visible = visible
        if isinstance(self.sink, RobotDisplaySink):
            self.sink.set_robot_visibility(robot_id, visible)

    def set_robot_highlight(self, robot_id: int, highlight: bool) -> None:
        self.robot(robot_id).highlight = highlight
        if isinstance(self.sink, RobotDisplaySink):
            self.sink.set_robot_highlight(robot_id, highlight)

    def set_robot_update_position(self, robot_id: int, update: bool) -> None:
        """Turn the recorded base pose on (True) or make the robot stand still."""
        controller = self.robot(robot_id)
        controller.update_position = update
        if isinstance(self.sink, RobotDisplaySink):
            self.sink.set_robot_stand_still(robot_id, not update)

    def set_robot_initial_position(self, robot_id: int, axis: int, value: float) -> Vector3:
        """Change one axis (0=x, 1=y, 2=z) of a robot's initial position."""
        if axis not in (0, 1, 2):
            raise ValueError(f"axis must be 0, 1 or 2 (got {axis}).")
        controller = self.robot(robot_id)
        coords = list(controller.initial_position)
        coords[axis] = float(value)
        controller.initial_position = Vector3(*coords)
        if isinstance(self.sink, RobotDisplaySink):
            self.sink.set_robot_initial_position(robot_id, controller.initial_position)
        return controller.initial_position

    def _apply_display_state(self, controller: RobotController) -> None:
        if isinstance(self.sink, RobotDisplaySink):
            self.sink.set_robot_visibility(controller.robot_id, controller.visible)
            self.sink.set_robot_highlight(controller.robot_id, controller.highlight)
            self.sink.set_robot_initial_position(
                controller.robot_id, controller.initial_position
            )
            self.sink.set_robot_stand_still(
                controller.robot_id, not controller.update_position
            )

    # ------------------------------------------------------------------
    # Chart grouping
    # ------------------------------------------------------------------

    def set_group_mode(self, mode: GroupMode) -> None:
        if mode not in ("robot", "channel"):
            raise ValueError(f"group mode must be 'robot' or 'channel' (got {mode!r}).")
        if mode != self.group_mode:
            self.group_mode = mode
            self._close_charts(list(self.charts))
        self._rebuild_charts()

    def toggle_channel(self, channel: str) -> bool:
        """Check or uncheck a channel; returns the new state."""
        if channel in self.checked_channels:
            self.checked_channels.remove(channel)
            checked = False
        else:
            self.checked_channels.append(channel)
            checked = True
        self._rebuild_charts()
        return checked

    def toggle_robot(self, robot_id: int) -> bool:
        """Check or uncheck a robot for plotting; returns the new state."""
        self.robot(robot_id)
        if robot_id in self.checked_robots:
            self.checked_robots.remove(robot_id)
            checked = False
        else:
            self.checked_robots.append(robot_id)
            checked = True
        self._rebuild_charts()
        return checked

    def set_window_size(self, window_size: int) -> None:
        """Change the playback window of every chart."""
        if window_size < 2:
            raise ValueError(f"[E3002] window_size must be at least 2 (got {window_size}).")
        for chart in self.charts.values():
            chart.view.update_window_size(window_size)
        self.window_size = int(window_size)
        self.redraw()

    def _chart_sources(self) -> dict[ChartKey, tuple[Series, tuple[str, ...]]]:
        plotted = [r for r in self.checked_robots if r in self.store]
        sources: dict[ChartKey, tuple[Series, tuple[str, ...]]] = {}
        if self.group_mode == "robot":
            for robot_id in plotted:
                series = self.store.get(robot_id)
                sources[robot_id] = (series, series.joint_channels)
            return sources

        for channel in self.checked_channels:
            robots = [r for r in plotted if self.store.get(r).has_channel(channel)]
            labels = tuple(robot_label(r) for r in robots)
            if robots:
                n = min(len(self.store.get(r)) for r in robots)
                values = np.column_stack(
                    [self.store.get(r).column(channel)[:n] for r in robots]
                )
            else:
                values = np.empty((0, 0))
            sources[channel] = (Series(values, labels), labels)
        return sources

    def _rebuild_charts(self) -> None:
        sources = self._chart_sources()
        self._close_charts([k for k in self.charts if k not in sources])
        for key, (series, channels) in sources.items():
            chart = self.charts.get(key)
            if chart is None:
                view = WindowedSeriesView(self.config, window_size=self.window_size)
                renderer = (
                    LineChartRenderer.create(
                        key,
                        self.config,
                        title=robot_label(key) if isinstance(key, int) else key,
                    )
                    if self.render
                    else None
                )
                self.charts[key] = Chart(key, series, channels, view, renderer)
            else:
                chart.series = series
                chart.channels = channels
        self.redraw()

    def _close_charts(self, keys: list[ChartKey]) -> None:
        for key in keys:
            chart = self.charts.pop(key)
            if chart.renderer is not None:
                chart.renderer.close()

    def chart(self, key: ChartKey) -> Chart:
        try:
            return self.charts[key]
        except KeyError:
            raise KeyError(f"No chart {key!r}; charts: {list(self.charts)}") from None

    # ------------------------------------------------------------------
    # Heatmap
    # ------------------------------------------------------------------

    def heatmap_options(self) -> tuple[int, ...]:
        """Robots that can be shown in the heatmap."""
        return self.store.robot_ids()

    def select_heatmap_robot(self, robot_id: int | None) -> HeatmapResult | None:
        """Aggregate and show ``robot_id``'s movement; None clears the heatmap."""
        if robot_id is None or robot_id not in self.store:
            self.heatmap_robot = None
            self.heatmap = None
        else:
            self.heatmap_robot = robot_id
            self.heatmap = self.aggregator.process(self.store.get(robot_id))
        if self.heatmap_renderer is not None:
            self.heatmap_renderer.draw(self.heatmap)
            self.heatmap_renderer.set_cursor(self.clock.current_frame())
        return self.heatmap

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _highlight_for(self, chart: Chart) -> set[str] | None:
        if chart.hovered is not None:
            return {chart.hovered}
        if self.group_mode == "robot":
            if self.hovered_joint is not None:
                return {self.hovered_joint}
            return set(self.checked_channels) or None
        highlighted = {
            robot_label(r) for r, c in self.robots.items() if c.highlight
        }
        return highlighted or None

    def _draw_chart(self, chart: Chart, frame: int) -> None:
        window = chart.view.refresh(chart.series, frame, chart.channels)
        if chart.renderer is not None:
            chart.renderer.draw(
                window, highlight=self._highlight_for(chart), cursor_frame=frame
            )

    def redraw(self, frame: int | None = None) -> None:
        """Redraw every chart (and the heatmap cursor) at ``frame``."""
        if frame is None:
            frame = self.clock.current_frame()
        for chart in self.charts.values():
            self._draw_chart(chart, frame)
        if self.heatmap_renderer is not None:
            self.heatmap_renderer.set_cursor(frame if self.heatmap is not None else None)

    def _on_tick(self, frame: int) -> None:
        self.last_tick_frame = frame
        self.redraw(frame)

    def pump(self, now: float | None = None) -> PumpResult:
        """Advance the driver; call from the host's frame loop."""
        return self.driver.advance(now)

    # ------------------------------------------------------------------
    # Chart interaction
    # ------------------------------------------------------------------

    def click(self, key: ChartKey, x: float) -> int | None:
        """Single click on a chart.

        Pauses when animating. Otherwise seeks to the frame under ``x`` and
        resumes. Returns the frame sought, or None if the click paused.
        """
        chart = self.chart(key)
        if self.control.is_checked():
            self.control.uncheck()
            self.clock.pause()
            return None
        frame = chart.view.frame_at(x)
        if frame is not None:
            self.clock.seek(frame)
        self.control.check()
        self.clock.start()
        return frame

    def double_click(self, key: ChartKey) -> bool:
        """Toggle pause without seeking; returns True if now animating."""
        self.chart(key)
        if self.control.toggle():
            self.clock.start()
        else:
            self.clock.pause()
        self.redraw()
        return self.control.is_checked()

    def brush(self, key: ChartKey, start: float, end: float) -> SeriesWindow | None:
        """Pin a chart to the brushed frame range ``[start, end)``.

        Brushing stops the animation. Selections of one frame or less are
        ignored and return None.
        """
        chart = self.chart(key)
        self.control.uncheck()
        window = chart.view.rescale_to_selection(chart.series, start, end, chart.channels)
        if window is not None and chart.renderer is not None:
            chart.renderer.draw(
                window,
                highlight=self._highlight_for(chart),
                cursor_frame=self.clock.current_frame(),
            )
        return window

    def brush_pixels(self, key: ChartKey, x0: float, x1: float) -> SeriesWindow | None:
        """:meth:`brush` with the range given as pixel columns of the current window."""
        chart = self.chart(key)
        window = chart.window
        if window is None:
            return None
        start, end = (float(v) for v in window.x_scale.invert(np.array([x0, x1])))
        return self.brush(key, start, end)

    def clear_brush(self, key: ChartKey) -> None:
        chart = self.chart(key)
        chart.view.clear_selection()
        self._draw_chart(chart, self.clock.current_frame())

    def hover(self, key: ChartKey, x: float, y: float) -> ChartPoint | None:
        """Highlight the line nearest to pixel ``(x, y)`` on a chart."""
        chart = self.chart(key)
        window = chart.window
        point = None if window is None else chart.view.nearest_point(window.points, x, y)
        chart.hovered = None if point is None else point.channel
        if not self.clock.is_running:
            self._draw_chart(chart, self.clock.current_frame())
        return point

    def leave(self, key: ChartKey) -> None:
        """Pointer left a chart: drop its hover highlight."""
        chart = self.chart(key)
        chart.hovered = None
        if not self.clock.is_running:
            self._draw_chart(chart, self.clock.current_frame())

    def hover_joint(self, joint: str | None) -> None:
        """A joint is hovered (or no longer hovered) in the 3D view."""
        self.hovered_joint = joint
        if not self.clock.is_running:
            self.redraw()

    def joint_manipulated(self) -> None:
        """The user grabbed a joint in the 3D view: stop animating."""
        self.control.uncheck()


__all__ = [
    "Chart",
    "ChartKey",
    "GroupMode",
    "ReplaySession",
    "RobotController",
    "robot_label",
]
