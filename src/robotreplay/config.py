"""Session configuration.

All tunables of a replay session live in a single immutable
:class:`ReplayConfig`. Recorded movement is assumed to be uniformly sampled,
so the sample interval is configuration, never derived from the data.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, NamedTuple

# Playback cadence defaults
DEFAULT_SAMPLE_INTERVAL_S: float = 1.0 / 30.0
"""Data-time advanced per frame index (recorded logs are 30 Hz)."""

DEFAULT_DISPLAY_INTERVAL_S: float = 1.0 / 60.0
"""Host display refresh period used to pump the pose sink."""

# View defaults
DEFAULT_WINDOW_SIZE: int = 100
"""Number of frames shown by a playback-driven line chart."""

DEFAULT_GRID_COLUMNS: int = 100
"""Number of buckets along the frame axis of the session heatmap."""

# Environment variable overrides, see ReplayConfig.from_env()
_ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "ROBOTREPLAY_SAMPLE_INTERVAL": ("sample_interval_s", float),
    "ROBOTREPLAY_WINDOW_SIZE": ("window_size", int),
    "ROBOTREPLAY_GRID_COLUMNS": ("heatmap_grid_columns", int),
}


class Margins(NamedTuple):
    """Chart margins in pixels."""

    top: float = 20.0
    right: float = 20.0
    bottom: float = 30.0
    left: float = 30.0


@dataclass(frozen=True)
class ReplayConfig:
    """
    Configuration for a replay session.

    Parameters
    ----------
    sample_interval_s : float
        Seconds of wall time per frame index while playing. Default 1/30.
    display_interval_s : float
        Period at which the driver pumps the animation control and pose sink.
        Default 1/60.
    tick_interval_s : float or None
        Period at which the clock tick callback (chart redraw) runs. None uses
        ``sample_interval_s``.
    window_size : int
        Frames per playback-driven chart window. Default 100.
    heatmap_grid_columns : int
        Buckets along the heatmap frame axis. Default 100.
    chart_width_px, chart_height_px : float
        Render-space size of a line chart. Default 600 x 300.
    margins : Margins
        Chart margins (top, right, bottom, left) in pixels.
    color_domain : tuple of float
        Fixed domain of the diverging heatmap color scale. Default (-pi, pi).

    Examples
    --------
    >>> config = ReplayConfig(window_size=50)
    >>> config.window_size
    50
    >>> config.effective_tick_interval_s == config.sample_interval_s
    True
    """

    sample_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S
    display_interval_s: float = DEFAULT_DISPLAY_INTERVAL_S
    tick_interval_s: float | None = None
    window_size: int = DEFAULT_WINDOW_SIZE
    heatmap_grid_columns: int = DEFAULT_GRID_COLUMNS
    chart_width_px: float = 600.0
    chart_height_px: float = 300.0
    margins: Margins = field(default_factory=Margins)
    color_domain: tuple[float, float] = (-math.pi, math.pi)

    def __post_init__(self) -> None:
        for name in ("sample_interval_s", "display_interval_s"):
            value = getattr(self, name)
            if not (value > 0 and math.isfinite(value)):
                raise ValueError(
                    f"[E3001] {name} must be a positive finite number of "
                    f"seconds (got {value})."
                )
        if self.tick_interval_s is not None and not self.tick_interval_s > 0:
            raise ValueError(
                f"[E3001] tick_interval_s must be positive or None "
                f"(got {self.tick_interval_s})."
            )
        if self.window_size < 2:
            raise ValueError(
                f"[E3002] window_size must be at least 2 frames "
                f"(got {self.window_size})."
            )
        if self.heatmap_grid_columns < 1:
            raise ValueError(
                f"[E3003] heatmap_grid_columns must be >= 1 "
                f"(got {self.heatmap_grid_columns})."
            )
        lo, hi = self.color_domain
        if not lo < hi:
            raise ValueError(
                f"[E3004] color_domain must be increasing (got {self.color_domain})."
            )
        plot_w = self.chart_width_px - self.margins.left - self.margins.right
        plot_h = self.chart_height_px - self.margins.top - self.margins.bottom
        if plot_w <= 0 or plot_h <= 0:
            raise ValueError(
                "[E3004] Chart size must exceed its margins "
                f"(got {self.chart_width_px}x{self.chart_height_px}, "
                f"margins={tuple(self.margins)})."
            )

    @property
    def effective_tick_interval_s(self) -> float:
        """Tick cadence, falling back to the sample interval."""
        if self.tick_interval_s is None:
            return self.sample_interval_s
        return self.tick_interval_s

    def with_overrides(self, **changes: Any) -> ReplayConfig:
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ReplayConfig:
        """Build a config from defaults, environment variables and overrides.

        Recognised variables are ``ROBOTREPLAY_SAMPLE_INTERVAL`` (seconds),
        ``ROBOTREPLAY_WINDOW_SIZE`` (frames) and ``ROBOTREPLAY_GRID_COLUMNS``.
        Keyword overrides take precedence over the environment.

        Raises
        ------
        ValueError
            If a variable cannot be parsed or the resulting config is invalid.
        """
        env = os.environ if environ is None else environ
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for var, (name, kind) in _ENV_OVERRIDES.items():
            raw = env.get(var)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[name] = kind(raw)
            except ValueError as e:
                raise ValueError(
                    f"[E3001] Environment variable {var}={raw!r} is not a valid "
                    f"{kind.__name__}."
                ) from e
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown ReplayConfig fields: {sorted(unknown)}")
        values.update(overrides)
        return cls(**values)


__all__ = [
    "DEFAULT_DISPLAY_INTERVAL_S",
    "DEFAULT_GRID_COLUMNS",
    "DEFAULT_SAMPLE_INTERVAL_S",
    "DEFAULT_WINDOW_SIZE",
    "Margins",
    "ReplayConfig",
]
