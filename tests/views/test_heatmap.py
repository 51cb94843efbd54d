"""Tests for the heatmap aggregation and diverging color scale."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from robotreplay.movement import Series
from robotreplay.views import DivergingColorScale, HeatmapAggregator


class TestHeatmapAggregator:
    """Bucket means over the frame axis."""

    def test_output_shape(self, series_factory):
        result = HeatmapAggregator(grid_columns=10).process(series_factory(250))
        assert result.matrix.shape == (3, 10)
        assert result.grid_columns == 10
        assert result.channels == ("hip", "knee", "ankle")
        assert len(result.cells) == 30

    def test_bucket_means(self):
        series = Series(np.arange(10.0).reshape(10, 1), ["j"])
        result = HeatmapAggregator(grid_columns=5).process(series)
        assert result.bucket_size == 2
        np.testing.assert_allclose(result.matrix[0], [0.5, 2.5, 4.5, 6.5, 8.5])

    def test_trailing_frames_dropped(self):
        values = np.concatenate([np.ones(100), np.full(7, 1000.0)])
        series = Series(values.reshape(-1, 1), ["j"])
        result = HeatmapAggregator(grid_columns=10).process(series)
        assert result.bucket_size == 10
        np.testing.assert_allclose(result.matrix[0], np.ones(10))

    def test_nan_samples_count_as_zero(self):
        series = Series([[2.0], [float("nan")], [4.0], [4.0]], ["j"])
        result = HeatmapAggregator(grid_columns=2).process(series)
        np.testing.assert_allclose(result.matrix[0], [1.0, 4.0])

    def test_defaults_to_joint_channels(self, pose_series):
        result = HeatmapAggregator(grid_columns=5).process(pose_series)
        assert result.channels == ("hip", "knee")

    def test_explicit_channels(self, pose_series):
        result = HeatmapAggregator(grid_columns=5).process(pose_series, ["pos_0"])
        assert result.channels == ("pos_0",)
        np.testing.assert_allclose(result.matrix[0], [0.5, 2.5, 4.5, 6.5, 8.5])

    def test_unknown_channel_raises(self, pose_series):
        with pytest.raises(KeyError):
            HeatmapAggregator(grid_columns=5).process(pose_series, ["elbow"])

    def test_series_shorter_than_grid(self, series_factory, caplog):
        with caplog.at_level(logging.WARNING, logger="robotreplay.views.heatmap"):
            result = HeatmapAggregator(grid_columns=100).process(series_factory(40))
        assert result.bucket_size == 0
        assert result.matrix.shape == (3, 100)
        assert np.isnan(result.matrix).all()
        assert "shorter than the 100 heatmap columns" in caplog.text

    def test_invalid_grid_columns(self):
        with pytest.raises(ValueError, match=r"\[E3003\]"):
            HeatmapAggregator(grid_columns=0)

    def test_bucket_bounds_and_column_of_frame(self, series_factory):
        result = HeatmapAggregator(grid_columns=10).process(series_factory(105))
        assert result.bucket_bounds(3) == (30, 40)
        assert result.column_of_frame(0) == 0
        assert result.column_of_frame(39) == 3
        assert result.column_of_frame(99) == 9
        assert result.column_of_frame(101) is None
        assert result.column_of_frame(-1) is None

    def test_cells_row_major(self):
        series = Series(np.column_stack([np.zeros(4), np.ones(4)]), ["a", "b"])
        cells = HeatmapAggregator(grid_columns=2).process(series).cells
        assert [(c.column, c.row) for c in cells] == [(0, 0), (1, 0), (0, 1), (1, 1)]
        assert cells[2].value == 1.0


class TestDivergingColorScale:
    """Fixed-domain diverging scale with clamping."""

    def test_out_of_domain_clamps(self):
        scale = DivergingColorScale()
        assert scale(10.0) == scale(math.pi)
        assert scale(-10.0) == scale(-math.pi)

    def test_ends_differ(self):
        scale = DivergingColorScale()
        assert scale(-math.pi) != scale(math.pi)

    def test_rgba_components(self):
        color = DivergingColorScale()(0.0)
        assert len(color) == 4
        assert all(0.0 <= c <= 1.0 for c in color)

    def test_nan_uses_bad_color(self):
        scale = DivergingColorScale()
        assert len(scale(float("nan"))) == 4

    def test_vectorised(self):
        scale = DivergingColorScale(domain=(-1.0, 1.0))
        rgba = scale.to_rgba(np.array([[-5.0, 0.0, 5.0]]))
        assert rgba.shape == (1, 3, 4)
        np.testing.assert_allclose(rgba[0, 0], scale(-1.0))
        np.testing.assert_allclose(rgba[0, 2], scale(1.0))
