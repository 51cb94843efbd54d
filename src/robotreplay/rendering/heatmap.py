"""Matplotlib rendering of the session heatmap."""

from __future__ import annotations

import io
import logging

import numpy as np
from matplotlib.figure import Figure

from robotreplay._timing import timing
from robotreplay.views.heatmap import DivergingColorScale, HeatmapResult

logger = logging.getLogger(__name__)

LEGEND_TICKS: tuple[int, ...] = (-3, -2, -1, 0, 1, 2, 3)
"""Colorbar ticks in radians."""

X_LABEL_EVERY: int = 10
"""Label every n-th heatmap column."""


class HeatmapRenderer:
    """Draws a :class:`HeatmapResult` with a fixed diverging color scale.

    Parameters
    ----------
    color_scale : DivergingColorScale, optional
        Color mapping; defaults to red-blue over ``[-pi, pi]``.
    width_px, height_px : float
        Figure size in pixels.
    dpi : int, default=100
        Figure resolution.

    Notes
    -----
    The heatmap does not move with playback. :meth:`set_cursor` only moves a
    marker onto the bucket containing the current frame.
    """

    def __init__(
        self,
        color_scale: DivergingColorScale | None = None,
        *,
        width_px: float = 600.0,
        height_px: float = 200.0,
        dpi: int = 100,
    ) -> None:
        self.color_scale = color_scale or DivergingColorScale()
        self.figure = Figure(figsize=(width_px / dpi, height_px / dpi), dpi=dpi)
        self.axes = self.figure.add_subplot(1, 1, 1)
        self.result: HeatmapResult | None = None
        self._image = None
        self._colorbar = None
        self._cursor = self.axes.axvline(x=0, color="black", linewidth=1)
        self._cursor.set_visible(False)

    def draw(self, result: HeatmapResult | None) -> bool:
        """Replace the displayed heatmap; returns False if nothing was drawn."""
        self.result = result
        if result is None or result.matrix.size == 0:
            if self._image is not None:
                self._image.set_visible(False)
            self._cursor.set_visible(False)
            return False

        with timing("HeatmapRenderer.draw"):
            matrix = np.ma.masked_invalid(result.matrix)
            if self._image is None:
                self._image = self.axes.imshow(
                    matrix,
                    cmap=self.color_scale.cmap,
                    norm=self.color_scale.norm,
                    aspect="auto",
                    interpolation="nearest",
                    origin="upper",
                )
                self._colorbar = self.figure.colorbar(
                    self._image, ax=self.axes, ticks=list(LEGEND_TICKS)
                )
            else:
                self._image.set_data(matrix)
                self._image.set_extent(
                    (-0.5, result.grid_columns - 0.5, len(result.channels) - 0.5, -0.5)
                )
            self._image.set_visible(True)

            n_cols = result.grid_columns
            x_ticks = list(range(0, n_cols, X_LABEL_EVERY))
            self.axes.set_xticks(x_ticks)
            self.axes.set_xticklabels([str(t) for t in x_ticks], fontsize=7)
            self.axes.set_yticks(range(len(result.channels)))
            self.axes.set_yticklabels(list(result.channels), fontsize=7)
            self.axes.set_xlim(-0.5, n_cols - 0.5)
            self.axes.set_ylim(len(result.channels) - 0.5, -0.5)
        return True

    def set_cursor(self, frame: int | None) -> int | None:
        """Mark the bucket containing ``frame``; returns the marked column."""
        column = None if frame is None or self.result is None else self.result.column_of_frame(frame)
        if column is None:
            self._cursor.set_visible(False)
            return None
        self._cursor.set_xdata([column, column])
        self._cursor.set_visible(True)
        return column

    def clear(self) -> None:
        """Remove the heatmap (no robot selected)."""
        self.draw(None)

    def to_png_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.figure.savefig(buf, format="png")
        return buf.getvalue()


__all__ = ["LEGEND_TICKS", "X_LABEL_EVERY", "HeatmapRenderer"]
