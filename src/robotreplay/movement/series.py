"""Frames and per-robot movement series.

A :class:`Series` is one robot's recorded motion: an immutable
``(n_frames, n_channels)`` float array plus the channel names discovered from
the CSV header. Unparseable samples are kept as NaN in the array and read as
``0.0`` through :meth:`Frame.value`, so playback never stalls on bad cells.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

POSITION_CHANNELS: tuple[str, str, str] = ("pos_0", "pos_1", "pos_2")
"""Channels holding the robot base position (x, y, z)."""

ROTATION_CHANNELS: tuple[str, str, str] = ("rot_0", "rot_1", "rot_2")
"""Channels holding the robot base rotation (x, y, z)."""

POSE_CHANNELS: frozenset[str] = frozenset(POSITION_CHANNELS + ROTATION_CHANNELS)


def is_joint_channel(channel: str) -> bool:
    """Return True if ``channel`` names a joint rather than a base pose axis."""
    return channel not in POSE_CHANNELS


class Frame(Mapping[str, float]):
    """Read-only view of one sampled instant.

    ``frame[channel]`` returns the stored value, which may be NaN for a
    sample that failed to parse. Consumers should use :meth:`value`, which
    applies the hold-zero policy.
    """

    __slots__ = ("_index", "_row", "_columns")

    def __init__(
        self,
        index: int,
        row: NDArray[np.float64],
        columns: Mapping[str, int],
    ) -> None:
        self._index = index
        self._row = row
        self._columns = columns

    @property
    def index(self) -> int:
        """Frame position within its series."""
        return self._index

    def __getitem__(self, channel: str) -> float:
        return float(self._row[self._columns[channel]])

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def value(self, channel: str, default: float = 0.0) -> float:
        """Consumer value for ``channel``: NaN or absent channels yield ``default``."""
        col = self._columns.get(channel)
        if col is None:
            return default
        v = float(self._row[col])
        return default if math.isnan(v) else v

    def __repr__(self) -> str:
        return f"Frame(index={self._index}, channels={len(self)})"


class Series:
    """One robot's full ordered sequence of frames.

    Parameters
    ----------
    values : array-like of shape (n_frames, n_channels)
        Sample values. Copied into a read-only float64 array.
    channels : sequence of str
        Channel names, one per column. Must be unique.

    Raises
    ------
    ValueError
        If ``values`` is not 2-D, the channel count does not match, or
        channel names repeat.

    Examples
    --------
    >>> s = Series([[0.1, 0.2], [0.3, float("nan")]], ["hip", "knee"])
    >>> len(s), s.channels
    (2, ('hip', 'knee'))
    >>> s[1].value("knee")
    0.0
    """

    __slots__ = ("_values", "_channels", "_columns")

    def __init__(
        self,
        values: NDArray[np.float64] | Sequence[Sequence[float]],
        channels: Sequence[str],
    ) -> None:
        arr = np.array(values, dtype=np.float64)
        if arr.ndim == 1 and arr.size == 0:
            arr = arr.reshape(0, len(channels))
        if arr.ndim != 2:
            raise ValueError(
                f"Series values must be 2-D (n_frames, n_channels), got shape {arr.shape}."
            )
        channels = tuple(str(c) for c in channels)
        if arr.shape[1] != len(channels):
            raise ValueError(
                f"Series has {arr.shape[1]} value columns but {len(channels)} channel names."
            )
        if len(set(channels)) != len(channels):
            raise ValueError(f"Series channel names must be unique, got {channels}.")
        arr.flags.writeable = False
        self._values = arr
        self._channels = channels
        self._columns = {name: i for i, name in enumerate(channels)}

    @property
    def values(self) -> NDArray[np.float64]:
        """Read-only ``(n_frames, n_channels)`` sample array."""
        return self._values

    @property
    def channels(self) -> tuple[str, ...]:
        return self._channels

    @property
    def joint_channels(self) -> tuple[str, ...]:
        """Channels that drive joints (everything except ``pos_*``/``rot_*``)."""
        return tuple(c for c in self._channels if is_joint_channel(c))

    def __len__(self) -> int:
        return self._values.shape[0]

    def __getitem__(self, index: int) -> Frame:
        n = len(self)
        if index < 0:
            index += n
        if not 0 <= index < n:
            raise IndexError(f"Frame index {index} out of range for series of length {n}.")
        return Frame(index, self._values[index], self._columns)

    def __iter__(self) -> Iterator[Frame]:
        for i in range(len(self)):
            yield Frame(i, self._values[i], self._columns)

    def has_channel(self, channel: str) -> bool:
        return channel in self._columns

    def column(self, channel: str) -> NDArray[np.float64]:
        """Return the read-only column for ``channel`` (NaN kept).

        Raises
        ------
        KeyError
            If the channel is not part of this series.
        """
        try:
            col = self._columns[channel]
        except KeyError:
            raise KeyError(
                f"Channel {channel!r} not in series; available: {list(self._channels)}"
            ) from None
        return self._values[:, col]

    def __repr__(self) -> str:
        return f"Series(n_frames={len(self)}, channels={list(self._channels)})"


__all__ = [
    "POSE_CHANNELS",
    "POSITION_CHANNELS",
    "ROTATION_CHANNELS",
    "Frame",
    "Series",
    "is_joint_channel",
]
