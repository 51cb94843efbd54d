"""Matplotlib render adapters for line charts and the session heatmap."""

from robotreplay.rendering.heatmap import HeatmapRenderer
from robotreplay.rendering.line_chart import LineChartRenderer

__all__ = ["HeatmapRenderer", "LineChartRenderer"]
