"""Listens for the world -> example_frame transform and publishes two offset frames."""

from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np

from .messages import Time, TransformStamped, now
from .tf import TransformBroadcaster, TransformBuffer, TransformLookupError
from .transforms import (
    axis_angle_matrix,
    matrix_to_transform,
    print_transform,
    transform_to_matrix,
)

WORLD_FRAME = "world"
EXAMPLE_FRAME = "example_frame"
FIRST_OFFSET_FRAME = "off1"
SECOND_OFFSET_FRAME = "off2"


def create_offset_frame_one() -> np.ndarray:
    """Return a 60 degree turn about x followed by three units along x."""
    transform = np.eye(4)
    transform[:3, :3] = axis_angle_matrix((1.0, 0.0, 0.0), math.pi / 3.0)
    transform[:3, 3] = (3.0, 0.0, 0.0)
    return transform


def create_offset_frame_two() -> np.ndarray:
    """Return a pure offset of one unit along z."""
    transform = np.eye(4)
    transform[:3, :3] = axis_angle_matrix((0.0, 1.0, 0.0), 0.0 / 2.0)
    transform[:3, 3] = (0.0, 0.0, 1.0)
    return transform


class TFListenerNode:
    """Looks up the example frame and broadcasts frames offset from it."""

    def __init__(
        self,
        buffer: TransformBuffer,
        broadcaster: TransformBroadcaster,
        logger: logging.Logger | None = None,
        clock: Callable[[], Time] = now,
    ) -> None:
        self._buffer = buffer
        self._broadcaster = broadcaster
        self._logger = logger or logging.getLogger("tf_listener_node")
        self._clock = clock

    def create_and_publish_offset_frames(
        self, transform: TransformStamped
    ) -> tuple[TransformStamped, TransformStamped]:
        """Compose the offsets onto a transform, broadcast and return both frames."""
        m0 = transform_to_matrix(transform)
        out1 = m0 @ create_offset_frame_one()
        out2 = out1 @ create_offset_frame_two()

        tf1 = matrix_to_transform(out1, EXAMPLE_FRAME, FIRST_OFFSET_FRAME)
        tf2 = matrix_to_transform(out2, EXAMPLE_FRAME, SECOND_OFFSET_FRAME)
        tf1.header.stamp = self._clock()
        tf2.header.stamp = self._clock()

        self._broadcaster.send_transform(tf1)
        self._broadcaster.send_transform(tf2)
        return tf1, tf2

    def lookup_transform(self) -> TransformStamped | None:
        """Look up world -> example_frame and publish offsets; None if unavailable."""
        try:
            transform = self._buffer.lookup_transform(WORLD_FRAME, EXAMPLE_FRAME)
        except TransformLookupError as ex:
            self._logger.warning(
                "Could not transform world -> example_frame: %s", ex
            )
            return None
        print_transform(self._logger, transform)
        self.create_and_publish_offset_frames(transform)
        return transform