"""Shared test fixtures for the robotreplay test suite.

Fixture Naming Convention
=========================

**Series fixtures** follow the pattern:
    {shape}_series

Where shape describes the data, e.g. ``ramp_series`` (each joint equals its
frame index) or ``pose_series`` (joints plus ``pos_*``/``rot_*`` channels).

**Clock fixtures**:
    - fake_time: Manually advanced wall clock (``fake_time.advance(seconds)``)
    - store / clock: Empty MovementStore and a PlaybackClock on ``fake_time``
"""

import os

import matplotlib
import numpy as np
import pytest
from hypothesis import Phase, Verbosity, settings

from robotreplay.movement import MovementStore, Series
from robotreplay.playback import PlaybackClock

matplotlib.use("Agg")

# =============================================================================
# Hypothesis Configuration for Performance
# =============================================================================
# - "ci": Fast profile for CI pipelines (fewer examples, no deadline)
# - "dev": Standard development profile (moderate examples)
# - "thorough": Full property testing (many examples, for pre-release)

settings.register_profile(
    "ci",
    max_examples=10,
    deadline=None,
    suppress_health_check=[],
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
    verbosity=Verbosity.quiet,
)

settings.register_profile(
    "dev",
    max_examples=25,
    deadline=5000,
    verbosity=Verbosity.normal,
)

settings.register_profile(
    "thorough",
    max_examples=100,
    deadline=None,
    verbosity=Verbosity.verbose,
)

# Set HYPOTHESIS_PROFILE=ci in CI environments for faster tests
_profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
settings.load_profile(_profile)

# =============================================================================
# Test Configuration Constants
# =============================================================================

SAMPLE_INTERVAL = 0.1  # seconds per frame; exact in binary-friendly steps
JOINTS = ("hip", "knee", "ankle")


class FakeTime:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def make_series(n_frames: int, channels=JOINTS, *, offset: float = 0.0) -> Series:
    """Series whose every channel equals ``frame + offset``."""
    column = np.arange(n_frames, dtype=np.float64) + offset
    return Series(np.tile(column[:, None], (1, len(channels))), channels)


# =============================================================================
# --- Fixtures ---
# =============================================================================


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def store() -> MovementStore:
    return MovementStore()


@pytest.fixture
def clock(store: MovementStore, fake_time: FakeTime) -> PlaybackClock:
    return PlaybackClock(store, sample_interval_s=SAMPLE_INTERVAL, time_func=fake_time)


@pytest.fixture
def series_factory():
    """Factory for ramp series: ``series_factory(n_frames, channels=JOINTS)``."""
    return make_series


@pytest.fixture
def ramp_series() -> Series:
    """50-frame series; every joint equals its frame index."""
    return make_series(50)


@pytest.fixture
def pose_series() -> Series:
    """10 frames of joints plus base pose, with one unparseable joint sample."""
    n = 10
    frames = np.arange(n, dtype=np.float64)
    values = np.column_stack(
        [
            frames * 0.1,  # hip
            frames * -0.1,  # knee
            frames,  # pos_0
            frames + 1,  # pos_1
            frames + 2,  # pos_2
            np.zeros(n),  # rot_0
            np.zeros(n),  # rot_1
            np.full(n, 0.5),  # rot_2
        ]
    )
    values[3, 1] = np.nan
    return Series(values, ["hip", "knee", "pos_0", "pos_1", "pos_2", "rot_0", "rot_1", "rot_2"])


@pytest.fixture
def movement_csv_text() -> str:
    """Small movement CSV as produced by the recorder (trailing newline)."""
    return (
        "hip,knee,pos_0,pos_1,pos_2,rot_0,rot_1,rot_2\n"
        "0.1,0.2,0,0,0,0,0,0\n"
        "0.2,bad,1,0,0,0,0,0.1\n"
        "0.3,0.4,2,0,0,0,0,0.2\n"
        "0.4,,3,0,0,0,0,0.3\n"
    )
