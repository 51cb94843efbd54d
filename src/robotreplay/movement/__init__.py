"""Movement data: frames, per-robot series, the session store and CSV ingestion.

>>> from robotreplay.movement import MovementStore, read_movement_csv
"""

from robotreplay.movement.io import read_movement_csv, series_from_records
from robotreplay.movement.series import (
    POSE_CHANNELS,
    POSITION_CHANNELS,
    ROTATION_CHANNELS,
    Frame,
    Series,
    is_joint_channel,
)
from robotreplay.movement.store import (
    NO_DATA,
    DuplicateRobotError,
    MovementStore,
    RobotNotFoundError,
)

__all__ = [
    "NO_DATA",
    "POSE_CHANNELS",
    "POSITION_CHANNELS",
    "ROTATION_CHANNELS",
    "DuplicateRobotError",
    "Frame",
    "MovementStore",
    "RobotNotFoundError",
    "Series",
    "is_joint_channel",
    "read_movement_csv",
    "series_from_records",
]
