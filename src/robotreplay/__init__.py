"""Synchronized replay of recorded multi-robot joint motion.

**robotreplay** replays recorded robot movement logs in lockstep across a 3D
pose viewer, windowed line charts and a whole-session heatmap, with
scrub/pause/resume and brush-to-zoom.

Core Classes (Top-Level Exports)
--------------------------------
ReplaySession : One replay session
    Owns the movement store, playback clock, animate toggle, charts and
    heatmap; translate host UI events into its methods.
ReplayConfig : Session configuration
    Sample interval, cadences, window size, heatmap grid and chart geometry.
MovementStore, Series : Movement data
    Per-robot recorded series and the cross-robot minimum length.
PlaybackClock : Shared clock
    Wall time to frame index, with pause, seek and end-of-data halt.

Submodule Organization
----------------------
movement : Frames, series, store and CSV ingestion

    >>> from robotreplay.movement import read_movement_csv

playback : Clock, animate toggle, one-shot events and the host-pumped driver

    >>> from robotreplay.playback import PlaybackDriver

views : Chart windows, hit testing and the heatmap aggregation

    >>> from robotreplay.views import WindowedSeriesView, HeatmapAggregator

rendering : Matplotlib adapters for charts and the heatmap

    >>> from robotreplay.rendering import LineChartRenderer

pose : Interface to the 3D viewer

    >>> from robotreplay.pose import PoseSink
"""

from robotreplay.config import ReplayConfig
from robotreplay.movement import MovementStore, Series
from robotreplay.playback import PlaybackClock
from robotreplay.session import ReplaySession

__version__ = "0.1.0"

__all__ = [
    "MovementStore",
    "PlaybackClock",
    "ReplayConfig",
    "ReplaySession",
    "Series",
    "__version__",
]
