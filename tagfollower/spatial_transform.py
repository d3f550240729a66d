"""Broadcasts a world -> example_frame transform set from a panel of sliders."""

from __future__ import annotations

import math
from typing import Callable

from .messages import Header, Quaternion, Time, Transform, TransformStamped, Vector3, now
from .tf import TransformBroadcaster
from .transforms import axis_angle_matrix, matrix_to_quaternion

BROADCAST_PERIOD = 0.05
PARENT_FRAME = "world"
CHILD_FRAME = "example_frame"


class SpatialTransformNode:
    """Holds a pose and broadcasts it as world -> example_frame."""

    def __init__(
        self, broadcaster: TransformBroadcaster, clock: Callable[[], Time] = now
    ) -> None:
        self._broadcaster = broadcaster
        self._clock = clock
        self.x = 0.0
        self.y = 0.0
        self.z = 0.0
        self.rotation = Quaternion()

    def set_transform(
        self, x: float, y: float, z: float, rx: float, ry: float, rz: float
    ) -> None:
        """Set the translation and the x-y-z rotation angles in radians."""
        self.x, self.y, self.z = float(x), float(y), float(z)
        rotation = (
            axis_angle_matrix((1.0, 0.0, 0.0), rx)
            @ axis_angle_matrix((0.0, 1.0, 0.0), ry)
            @ axis_angle_matrix((0.0, 0.0, 1.0), rz)
        )
        self.rotation = matrix_to_quaternion(rotation)

    def broadcast_transform(self) -> TransformStamped:
        """Send the current transform and return the message sent."""
        message = TransformStamped(
            Header(self._clock(), PARENT_FRAME),
            CHILD_FRAME,
            Transform(
                Vector3(self.x, self.y, self.z),
                Quaternion(
                    self.rotation.x, self.rotation.y, self.rotation.z, self.rotation.w
                ),
            ),
        )
        self._broadcaster.send_transform(message)
        return message


class _Slider:
    """A bounded value that reports every change."""

    def __init__(
        self,
        label: str,
        minimum: float,
        maximum: float,
        step: float,
        initial: float,
        on_change: Callable[[], None],
    ) -> None:
        self.label = label
        self.minimum = minimum
        self.maximum = maximum
        self.step = step
        self._value = min(max(initial, minimum), maximum)
        self._on_change = on_change

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, new: float) -> None:
        clamped = min(max(float(new), self.minimum), self.maximum)
        if clamped != self._value:
            self._value = clamped
            self._on_change()


class TransformGUI:
    """Six sliders, X, Y, Z, Rx, Ry and Rz, that drive a SpatialTransformNode."""

    title = "Spatial Transform Controller"
    default_size = (400, 300)

    def __init__(self, node: SpatialTransformNode) -> None:
        self._node = node
        self.values = (0.0,) * 6
        specs = [
            ("X", -5.0, 5.0, 0.1),
            ("Y", -5.0, 5.0, 0.1),
            ("Z", -5.0, 5.0, 0.1),
            ("Rx", -math.pi, math.pi, 0.01),
            ("Ry", -math.pi, math.pi, 0.01),
            ("Rz", -math.pi, math.pi, 0.01),
        ]
        self.sliders = {
            label: _Slider(label, low, high, step, 0.0, self.update_transform)
            for label, low, high, step in specs
        }

    def update_transform(self) -> None:
        """Read every slider and pass the values to the node."""
        self.values = tuple(slider.value for slider in self.sliders.values())
        self._node.set_transform(*self.values)