"""Plain message types for stamped frames, transforms and poses."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

_NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True, order=True)
class Time:
    """A point in time split into whole seconds and nanoseconds."""

    sec: int = 0
    nanosec: int = 0

    def __post_init__(self) -> None:
        if self.sec < 0 or self.nanosec < 0:
            raise ValueError("time cannot be negative")
        if self.nanosec >= _NANOS_PER_SECOND:
            raise ValueError("nanosec must be below one second")

    def to_nanoseconds(self) -> int:
        """Return the time as a single count of nanoseconds."""
        return self.sec * _NANOS_PER_SECOND + self.nanosec

    @classmethod
    def from_nanoseconds(cls, nanoseconds: int) -> "Time":
        """Build a time from a single count of nanoseconds."""
        if nanoseconds < 0:
            raise ValueError("time cannot be negative")
        sec, nanosec = divmod(int(nanoseconds), _NANOS_PER_SECOND)
        return cls(sec, nanosec)


def now() -> Time:
    """Return the current wall-clock time."""
    return Time.from_nanoseconds(time.time_ns())


@dataclass
class Vector3:
    """A point or a translation in three dimensions."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Quaternion:
    """A rotation as a quaternion; the default is the identity rotation."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


@dataclass
class Header:
    """The time stamp and frame a message refers to."""

    stamp: Time = field(default_factory=Time)
    frame_id: str = ""


@dataclass
class Transform:
    """A rigid transformation: translation followed by rotation."""

    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)


@dataclass
class TransformStamped:
    """The pose of a child frame expressed in its parent frame."""

    header: Header = field(default_factory=Header)
    child_frame_id: str = ""
    transform: Transform = field(default_factory=Transform)


@dataclass
class Pose:
    """A position and an orientation."""

    position: Vector3 = field(default_factory=Vector3)
    orientation: Quaternion = field(default_factory=Quaternion)


@dataclass
class PoseStamped:
    """A pose expressed in the frame named by its header."""

    header: Header = field(default_factory=Header)
    pose: Pose = field(default_factory=Pose)