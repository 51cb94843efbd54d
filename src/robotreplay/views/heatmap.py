"""Whole-session heatmap of a movement series.

The frame axis is cut into ``grid_columns`` equal buckets of
``floor(n_frames / grid_columns)`` frames; trailing frames that do not fill a
bucket are dropped. Each cell is the mean of one channel over one bucket.
This runs once per loaded (or selected) series, independently of playback.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from matplotlib import colormaps
from matplotlib.colors import Normalize
from numpy.typing import NDArray

from robotreplay._timing import timed
from robotreplay.config import DEFAULT_GRID_COLUMNS
from robotreplay.movement.series import Series

logger = logging.getLogger(__name__)

JOINT_ANGLE_DOMAIN: tuple[float, float] = (-math.pi, math.pi)
"""Fixed color domain: heatmap values are joint angles in radians."""


class HeatmapCell(NamedTuple):
    """One heatmap cell: bucket ``column`` of channel ``row``."""

    column: int
    row: int
    value: float


@dataclass(frozen=True)
class HeatmapResult:
    """Aggregated heatmap for one series.

    Attributes
    ----------
    matrix : ndarray of shape (n_channels, grid_columns)
        Bucket means, one row per channel. All NaN when the series is shorter
        than ``grid_columns``.
    channels : tuple of str
        Row labels.
    bucket_size : int
        Frames averaged per cell.
    n_frames : int
        Length of the aggregated series.
    """

    matrix: NDArray[np.float64]
    channels: tuple[str, ...]
    bucket_size: int
    n_frames: int

    @property
    def grid_columns(self) -> int:
        return int(self.matrix.shape[1])

    @property
    def cells(self) -> list[HeatmapCell]:
        """Cells in row-major order (channel by channel)."""
        n_rows, n_cols = self.matrix.shape
        return [
            HeatmapCell(col, row, float(self.matrix[row, col]))
            for row in range(n_rows)
            for col in range(n_cols)
        ]

    def bucket_bounds(self, column: int) -> tuple[int, int]:
        """Frame range ``[start, stop)`` averaged into ``column``."""
        return column * self.bucket_size, (column + 1) * self.bucket_size

    def column_of_frame(self, frame: int) -> int | None:
        """Bucket containing ``frame``, or None if it was dropped or out of range."""
        if self.bucket_size == 0 or frame < 0:
            return None
        col = frame // self.bucket_size
        return col if col < self.grid_columns else None


class HeatmapAggregator:
    """Bins a series into a fixed grid of per-channel bucket means.

    Parameters
    ----------
    grid_columns : int, default=100
        Number of buckets along the frame axis.

    Examples
    --------
    >>> import numpy as np
    >>> series = Series(np.arange(10.0).reshape(10, 1), ["j"])
    >>> result = HeatmapAggregator(grid_columns=3).process(series)
    >>> result.bucket_size, result.matrix.tolist()
    (3, [[1.0, 4.0, 7.0]])
    """

    def __init__(self, grid_columns: int = DEFAULT_GRID_COLUMNS) -> None:
        if grid_columns < 1:
            raise ValueError(f"[E3003] grid_columns must be >= 1 (got {grid_columns}).")
        self.grid_columns = int(grid_columns)

    @timed
    def process(
        self,
        series: Series,
        channels: Sequence[str] | None = None,
    ) -> HeatmapResult:
        """Aggregate ``series`` into ``grid_columns`` buckets per channel.

        Parameters
        ----------
        series : Series
            Movement to summarise.
        channels : sequence of str, optional
            Rows, in order. Defaults to the series' joint channels.

        Returns
        -------
        HeatmapResult
            ``len(channels) x grid_columns`` bucket means. Samples that failed
            to parse count as 0.

        Raises
        ------
        KeyError
            If a requested channel is not in the series.
        """
        rows = tuple(series.joint_channels if channels is None else channels)
        n_frames = len(series)
        bucket = n_frames // self.grid_columns
        if bucket == 0:
            logger.warning(
                "Series of %d frames is shorter than the %d heatmap columns; "
                "heatmap will be empty",
                n_frames,
                self.grid_columns,
            )
            matrix = np.full((len(rows), self.grid_columns), np.nan)
            return HeatmapResult(matrix, rows, 0, n_frames)

        if rows:
            data = np.column_stack([series.column(c) for c in rows])
        else:
            data = np.empty((n_frames, 0))
        used = data[: bucket * self.grid_columns]
        used = np.nan_to_num(used, nan=0.0)
        # (columns, bucket, channels) -> mean over bucket -> (channels, columns)
        means = used.reshape(self.grid_columns, bucket, len(rows)).mean(axis=1).T
        dropped = n_frames - bucket * self.grid_columns
        logger.debug(
            "Heatmap: %d frames -> %d columns of %d (dropped %d trailing frames)",
            n_frames,
            self.grid_columns,
            bucket,
            dropped,
        )
        return HeatmapResult(np.ascontiguousarray(means), rows, bucket, n_frames)


class DivergingColorScale:
    """Diverging red-blue color scale over a fixed domain.

    Values outside the domain clamp to the end colors; NaN maps to the
    colormap's "bad" color.

    Parameters
    ----------
    domain : tuple of float, default=(-pi, pi)
        Values mapped to the two ends of the colormap.
    cmap : str, default="RdBu"
        Matplotlib colormap name.

    Examples
    --------
    >>> scale = DivergingColorScale()
    >>> scale(10.0) == scale(math.pi)
    True
    """

    def __init__(
        self,
        domain: tuple[float, float] = JOINT_ANGLE_DOMAIN,
        cmap: str = "RdBu",
    ) -> None:
        self.domain = (float(domain[0]), float(domain[1]))
        self.cmap = colormaps[cmap]
        self.norm = Normalize(vmin=self.domain[0], vmax=self.domain[1], clip=True)

    def __call__(self, value: float) -> tuple[float, float, float, float]:
        """RGBA color for a single value."""
        if math.isnan(value):
            return tuple(self.cmap.get_bad())  # type: ignore[return-value]
        return tuple(float(c) for c in self.cmap(self.norm(value)))  # type: ignore[return-value]

    def to_rgba(self, values: NDArray[np.float64]) -> NDArray[np.float64]:
        """Vectorised mapping; returns an array of shape ``values.shape + (4,)``."""
        values = np.asarray(values, dtype=np.float64)
        return np.asarray(self.cmap(self.norm(np.ma.masked_invalid(values))))


__all__ = [
    "JOINT_ANGLE_DOMAIN",
    "DivergingColorScale",
    "HeatmapAggregator",
    "HeatmapCell",
    "HeatmapResult",
]
