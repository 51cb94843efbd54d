"""Render-independent views of movement: chart windows and the session heatmap."""

from robotreplay.views.heatmap import (
    JOINT_ANGLE_DOMAIN,
    DivergingColorScale,
    HeatmapAggregator,
    HeatmapCell,
    HeatmapResult,
)
from robotreplay.views.windowed import (
    ChartPoint,
    LinearScale,
    SeriesWindow,
    WindowedSeriesView,
    nearest_point,
)

__all__ = [
    "JOINT_ANGLE_DOMAIN",
    "ChartPoint",
    "DivergingColorScale",
    "HeatmapAggregator",
    "HeatmapCell",
    "HeatmapResult",
    "LinearScale",
    "SeriesWindow",
    "WindowedSeriesView",
    "nearest_point",
]
