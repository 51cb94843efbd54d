"""Interface to the 3D viewer that displays robot poses.

The viewer itself (scene, meshes, URDF loading) lives outside this package;
anything implementing :class:`PoseSink` can be driven by a replay session.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple, Protocol, runtime_checkable

from robotreplay.movement.series import POSITION_CHANNELS, ROTATION_CHANNELS, Frame


class Vector3(NamedTuple):
    """Cartesian triple used for robot base position and rotation."""

    x: float
    y: float
    z: float


@runtime_checkable
class PoseSink(Protocol):
    """Receiver of per-frame robot poses.

    Methods
    -------
    set_joint_value(robot_id, channel, value)
        Set one joint angle (radians) of a robot.
    set_robot_position(robot_id, position)
        Place a robot's base.
    set_robot_rotation(robot_id, rotation)
        Orient a robot's base (Euler angles, radians).
    """

    def set_joint_value(self, robot_id: int, channel: str, value: float) -> None: ...

    def set_robot_position(self, robot_id: int, position: Vector3) -> None: ...

    def set_robot_rotation(self, robot_id: int, rotation: Vector3) -> None: ...


@runtime_checkable
class RobotDisplaySink(Protocol):
    """Optional viewer controls driven by per-robot toggles.

    Sinks that also implement these methods receive the visibility,
    highlight, initial-position and stand-still changes made through a
    session. A robot standing still keeps its base where it is while its
    joints keep moving; the session still sends every recorded base pose.
    """

    def set_robot_visibility(self, robot_id: int, visible: bool) -> None: ...

    def set_robot_highlight(self, robot_id: int, highlight: bool) -> None: ...

    def set_robot_initial_position(self, robot_id: int, position: Vector3) -> None: ...

    def set_robot_stand_still(self, robot_id: int, stand_still: bool) -> None: ...


def frame_position(frame: Frame) -> Vector3:
    """Base position of ``frame``; unparseable axes read as 0."""
    return Vector3(*(frame.value(c) for c in POSITION_CHANNELS))


def frame_rotation(frame: Frame) -> Vector3:
    """Base rotation of ``frame``; unparseable axes read as 0."""
    return Vector3(*(frame.value(c) for c in ROTATION_CHANNELS))


def push_frame_to_sink(
    sink: PoseSink,
    robot_id: int,
    frame: Frame,
    joint_channels: Iterable[str],
) -> None:
    """Send one frame of one robot to ``sink``.

    Parameters
    ----------
    sink : PoseSink
        Viewer receiving the pose.
    robot_id : int
        Robot the frame belongs to.
    frame : Frame
        Sampled instant to display.
    joint_channels : iterable of str
        Joint channels to set. Channels missing from the frame are sent as 0.
    """
    for channel in joint_channels:
        sink.set_joint_value(robot_id, channel, frame.value(channel))
    sink.set_robot_position(robot_id, frame_position(frame))
    sink.set_robot_rotation(robot_id, frame_rotation(frame))


__all__ = [
    "PoseSink",
    "RobotDisplaySink",
    "Vector3",
    "frame_position",
    "frame_rotation",
    "push_frame_to_sink",
]
