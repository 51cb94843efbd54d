"""Process-wide store of per-robot movement series."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator

from robotreplay.movement.series import Series

logger = logging.getLogger(__name__)

NO_DATA: float = math.inf
"""Sentinel returned by :meth:`MovementStore.min_length` when the store is empty."""


class DuplicateRobotError(ValueError):
    """Raised when adding a series for a robot that already has one.

    Callers recover by removing the existing series first; a reload is always
    remove + add.

    Parameters
    ----------
    robot_id : int
        Robot whose series already exists.
    error_code : str, optional
        Error code for documentation reference. Default is "E2001".

    Examples
    --------
    >>> raise DuplicateRobotError(1)
    Traceback (most recent call last):
        ...
    robotreplay.movement.store.DuplicateRobotError: [E2001] Robot 1 already has a movement series...
    """

    def __init__(self, robot_id: int, error_code: str = "E2001") -> None:
        self.robot_id = robot_id
        self.error_code = error_code
        super().__init__(
            f"[{error_code}] Robot {robot_id} already has a movement series. "
            f"Call remove({robot_id}) before adding a replacement."
        )


class RobotNotFoundError(LookupError):
    """Raised when reading the series of a robot that has none loaded.

    Parameters
    ----------
    robot_id : int
        Robot that was looked up.
    available : tuple of int
        Robots currently present, listed in the message.
    error_code : str, optional
        Error code for documentation reference. Default is "E2002".
    """

    def __init__(
        self,
        robot_id: int,
        available: tuple[int, ...] = (),
        error_code: str = "E2002",
    ) -> None:
        self.robot_id = robot_id
        self.error_code = error_code
        super().__init__(
            f"[{error_code}] No movement series loaded for robot {robot_id}. "
            f"Loaded robots: {list(available)}"
        )


class MovementStore:
    """Mapping of robot id to its :class:`Series`.

    Keeps the cross-robot minimum length current on every mutation; that
    minimum is the last frame every loaded robot can play, and bounds the
    playback clock.

    Examples
    --------
    >>> import numpy as np
    >>> store = MovementStore()
    >>> store.add(1, Series(np.zeros((300, 1)), ["j"]))
    >>> store.add(2, Series(np.zeros((200, 1)), ["j"]))
    >>> store.min_length()
    200
    >>> store.remove(2)
    >>> store.min_length()
    300
    """

    def __init__(self) -> None:
        self._series: dict[int, Series] = {}
        self._min_length: int | float = NO_DATA

    def add(self, robot_id: int, series: Series) -> None:
        """Store ``series`` for ``robot_id``.

        Raises
        ------
        DuplicateRobotError
            If the robot already has a series.
        """
        if robot_id in self._series:
            raise DuplicateRobotError(robot_id)
        self._series[robot_id] = series
        self._recompute()
        logger.debug(
            "Added robot %d (%d frames); min_length=%s",
            robot_id,
            len(series),
            self._min_length,
        )

    def remove(self, robot_id: int) -> None:
        """Drop the series of ``robot_id``; absent robots are ignored."""
        if self._series.pop(robot_id, None) is None:
            return
        self._recompute()
        logger.debug("Removed robot %d; min_length=%s", robot_id, self._min_length)

    def clear(self) -> None:
        """Remove every series and reset the common length."""
        self._series.clear()
        self._min_length = NO_DATA

    def has_any(self) -> bool:
        """True if at least one series is loaded."""
        return bool(self._series)

    def get(self, robot_id: int) -> Series:
        """Return the series of ``robot_id``.

        Raises
        ------
        RobotNotFoundError
            If no series is loaded for the robot.
        """
        try:
            return self._series[robot_id]
        except KeyError:
            raise RobotNotFoundError(robot_id, tuple(self._series)) from None

    def min_length(self) -> int | float:
        """Cross-robot minimum series length, or :data:`NO_DATA` when empty."""
        return self._min_length

    def robot_ids(self) -> tuple[int, ...]:
        """Loaded robot ids in load order."""
        return tuple(self._series)

    def channels(self) -> tuple[str, ...]:
        """Union of channel names across loaded series, first-seen order."""
        seen: dict[str, None] = {}
        for series in self._series.values():
            for channel in series.channels:
                seen.setdefault(channel, None)
        return tuple(seen)

    def __contains__(self, robot_id: object) -> bool:
        return robot_id in self._series

    def __len__(self) -> int:
        return len(self._series)

    def __iter__(self) -> Iterator[int]:
        return iter(tuple(self._series))

    def _recompute(self) -> None:
        if self._series:
            self._min_length = min(len(s) for s in self._series.values())
        else:
            self._min_length = NO_DATA


__all__ = ["NO_DATA", "DuplicateRobotError", "MovementStore", "RobotNotFoundError"]
