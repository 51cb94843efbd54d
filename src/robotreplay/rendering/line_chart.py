"""Matplotlib line chart for one windowed chart.

The architecture follows the create-once/update-per-frame pattern:
1. :meth:`LineChartRenderer.create` builds the Figure, Axes and cursor once
2. :meth:`LineChartRenderer.draw` updates Line2D data for each new window
3. Lines for channels that appear later are added lazily and hidden when
   they leave the window
"""

from __future__ import annotations

import io
import logging
from collections.abc import Collection
from dataclasses import dataclass, field

from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

from robotreplay._timing import timing
from robotreplay.config import ReplayConfig
from robotreplay.views.windowed import SeriesWindow

logger = logging.getLogger(__name__)

BASE_LINEWIDTH: float = 1.2
HIGHLIGHT_LINEWIDTH: float = 2.5
DIMMED_ALPHA: float = 0.25
DARK_BACKGROUND: str = "#262930"


@dataclass
class LineChartRenderer:
    """Matplotlib artists for one chart, keyed by robot id or channel name.

    Parameters
    ----------
    key : int or str
        Chart identity (robot id when grouping by robot, channel name when
        grouping by channel).
    figure : Figure
        Figure owning the chart.
    axes : Axes
        Single axes the lines are drawn on.
    cursor : Line2D
        Vertical line at the playback frame.
    lines : dict[str, Line2D]
        One line per label, created on first use.
    dark_theme : bool
        Whether the napari-style dark styling was applied.
    n_draws : int
        Number of completed :meth:`draw` calls.
    """

    key: int | str
    figure: Figure
    axes: Axes
    cursor: Line2D
    lines: dict[str, Line2D] = field(default_factory=dict)
    dark_theme: bool = False
    n_draws: int = 0

    @classmethod
    def create(
        cls,
        key: int | str,
        config: ReplayConfig | None = None,
        *,
        title: str | None = None,
        dark_theme: bool = False,
        dpi: int = 100,
    ) -> LineChartRenderer:
        """Create the figure and static artists for a chart."""
        config = config or ReplayConfig()
        fig = Figure(
            figsize=(config.chart_width_px / dpi, config.chart_height_px / dpi),
            dpi=dpi,
        )
        m = config.margins
        fig.subplots_adjust(
            left=m.left / config.chart_width_px,
            right=1 - m.right / config.chart_width_px,
            top=1 - m.top / config.chart_height_px,
            bottom=m.bottom / config.chart_height_px,
        )
        ax = fig.add_subplot(1, 1, 1)
        cursor = ax.axvline(x=0, color="red", linewidth=1, alpha=0.8)
        cursor.set_visible(False)

        if dark_theme:
            fig.patch.set_facecolor(DARK_BACKGROUND)
            ax.set_facecolor(DARK_BACKGROUND)
            ax.tick_params(colors="white", labelsize=8)
            for spine in ax.spines.values():
                spine.set_visible(False)
        else:
            ax.tick_params(labelsize=8)

        ax.set_title(title if title is not None else str(key), fontsize=9,
                     color="white" if dark_theme else "black")
        return cls(key=key, figure=fig, axes=ax, cursor=cursor, dark_theme=dark_theme)

    def draw(
        self,
        window: SeriesWindow | None,
        *,
        highlight: str | Collection[str] | None = None,
        cursor_frame: int | None = None,
    ) -> bool:
        """Update the chart to show ``window``.

        Parameters
        ----------
        window : SeriesWindow or None
            Window to display. Empty or missing windows clear the chart.
        highlight : str or collection of str, optional
            Label(s) drawn emphasised; every other line is dimmed. An empty
            collection behaves like None.
        cursor_frame : int, optional
            Frame marked by the cursor line; hidden if outside the window.

        Returns
        -------
        bool
            False if drawing was skipped because there was nothing to show.
        """
        if window is None or window.is_empty:
            for line in self.lines.values():
                line.set_visible(False)
            self.cursor.set_visible(False)
            return False

        if isinstance(highlight, str):
            emphasised: frozenset[str] = frozenset((highlight,))
        else:
            emphasised = frozenset(highlight or ())

        with timing(f"LineChartRenderer.draw[{self.key}]"):
            frames = window.frames
            shown = set(window.channels)
            for label in window.channels:
                line = self.lines.get(label)
                if line is None:
                    (line,) = self.axes.plot([], [], label=label, linewidth=BASE_LINEWIDTH)
                    self.lines[label] = line
                line.set_data(frames, window.values[label])
                line.set_visible(True)
                if not emphasised:
                    line.set_linewidth(BASE_LINEWIDTH)
                    line.set_alpha(1.0)
                elif label in emphasised:
                    line.set_linewidth(HIGHLIGHT_LINEWIDTH)
                    line.set_alpha(1.0)
                else:
                    line.set_linewidth(BASE_LINEWIDTH)
                    line.set_alpha(DIMMED_ALPHA)
            for label, line in self.lines.items():
                if label not in shown:
                    line.set_visible(False)

            x0, x1 = window.x_scale.domain
            if x1 == x0:
                x0, x1 = x0 - 0.5, x1 + 0.5
            self.axes.set_xlim(x0, x1)
            self.axes.set_ylim(*window.y_scale.domain)

            if cursor_frame is not None and window.start <= cursor_frame < window.stop:
                self.cursor.set_xdata([cursor_frame, cursor_frame])
                self.cursor.set_visible(True)
            else:
                self.cursor.set_visible(False)

        self.n_draws += 1
        return True

    def to_png_bytes(self) -> bytes:
        """Render the current state of the chart to PNG."""
        buf = io.BytesIO()
        self.figure.savefig(buf, format="png", facecolor=self.figure.get_facecolor())
        return buf.getvalue()

    def close(self) -> None:
        """Drop all artists; the renderer must not be drawn again."""
        self.figure.clear()
        self.lines.clear()


__all__ = ["LineChartRenderer"]
