"""Follows an AprilTag by sending navigation goals toward it."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable

import numpy as np

from .messages import Header, Time, TransformStamped, now
from .navigation import MoveToTarget
from .tf import TransformBroadcaster, TransformBuffer, TransformLookupError
from .transforms import axis_angle_matrix, matrix_to_transform, transform_to_matrix

MAP_FRAME = "map"
BASE_FRAME = "base_link"
TAG_FRAME = "tag1"
FOLLOWED_TAG_ID = 1


@dataclass
class AprilTagDetection:
    """One detected tag."""

    id: int = 0
    family: str = ""


@dataclass
class AprilTagDetectionArray:
    """All tags detected in one camera frame."""

    header: Header = field(default_factory=Header)
    detections: list[AprilTagDetection] = field(default_factory=list)


class FollowerRobotNode:
    """Drives the robot to stay a fixed distance from tag 1, facing it."""

    def __init__(
        self,
        buffer: TransformBuffer,
        broadcaster: TransformBroadcaster,
        move_to_target: MoveToTarget,
        follow_distance: float = 0.25,
        tag_motion_threshold: float = 0.1,
        logger: logging.Logger | None = None,
        clock: Callable[[], Time] = now,
    ) -> None:
        self.follow_distance = float(follow_distance)
        self.tag_motion_threshold = float(tag_motion_threshold)
        self._buffer = buffer
        self._broadcaster = broadcaster
        self._move_to_target = move_to_target
        self._logger = logger or logging.getLogger("follower_robot_node")
        self._clock = clock
        self.map_to_tag1_prev = np.eye(4)
        self.map_to_go_to = np.eye(4)
        self.previous_stamp = Time(0, 0)

    def april_tag_callback(self, msg: AprilTagDetectionArray) -> None:
        """Act once for every detection of the followed tag."""
        self._logger.info("aprilTagCallback")
        for detection in msg.detections:
            if detection.id == FOLLOWED_TAG_ID:
                self._logger.info("FOUND TAG ID 1")
                self.compute_and_act()

    def compute_go_to_frame_from_base_link(
        self, base_link_to_tag1: TransformStamped
    ) -> np.ndarray:
        """Return the pose, relative to base_link, follow_distance short of the tag and facing it."""
        x = base_link_to_tag1.transform.translation.x
        y = base_link_to_tag1.transform.translation.y

        transform = np.eye(4)
        theta = math.atan2(y, x)
        transform[:3, :3] = axis_angle_matrix((0.0, 0.0, 1.0), theta)

        position = np.array([x, y], dtype=float)
        distance = np.linalg.norm(position)
        with np.errstate(invalid="ignore", divide="ignore"):
            direction = position / distance
        follow_position = (distance - self.follow_distance) * direction

        transform[0, 3] = follow_position[0]
        transform[1, 3] = follow_position[1]
        transform[2, 3] = 0.0
        return transform

    def compute_distance_base_link_tag1(
        self, base_link_to_tag1: TransformStamped
    ) -> float:
        """Return the straight-line distance from base_link to the tag."""
        t = base_link_to_tag1.transform.translation
        distance = math.sqrt(t.x * t.x + t.y * t.y + t.z * t.z)
        self._logger.info("distance:  %s", distance)
        return distance

    def the_tag_moved(
        self,
        map_to_base_link: TransformStamped,
        base_link_to_tag1: TransformStamped,
    ) -> bool:
        """Tell whether fresh data shows the tag moved more than the threshold in the map."""
        composed_stamp = min(
            map_to_base_link.header.stamp, base_link_to_tag1.header.stamp
        )
        if composed_stamp <= self.previous_stamp:
            return False
        self.previous_stamp = composed_stamp

        map_to_tag1 = transform_to_matrix(map_to_base_link) @ transform_to_matrix(
            base_link_to_tag1
        )
        tag_motion = float(
            np.linalg.norm(map_to_tag1[:3, 3] - self.map_to_tag1_prev[:3, 3])
        )
        self._logger.info("THE TAG MOVED:  %s", tag_motion)
        moved = tag_motion > self.tag_motion_threshold
        if moved:
            self.map_to_tag1_prev = map_to_tag1
        return moved

    def compute_and_act(self) -> TransformStamped | None:
        """Send a goal if the tag moved far enough, then broadcast the go-to frame.

        Returns the broadcast transform, or None when a lookup failed.
        """
        try:
            map_to_base_link = self._buffer.lookup_transform(MAP_FRAME, BASE_FRAME)
            base_link_to_tag1 = self._buffer.lookup_transform(BASE_FRAME, TAG_FRAME)
        except TransformLookupError as ex:
            self._logger.warning("Could not transform world -> example_frame: %s", ex)
            return None

        if self.the_tag_moved(map_to_base_link, base_link_to_tag1):
            self._logger.info("THE TAG MOVED")
            distance = self.compute_distance_base_link_tag1(base_link_to_tag1)
            if distance > self.follow_distance:
                m_map_to_base_link = transform_to_matrix(map_to_base_link)
                m_go_to = self.compute_go_to_frame_from_base_link(base_link_to_tag1)
                self.map_to_go_to = m_map_to_base_link @ m_go_to
                self._move_to_target.copy_to_goal_pose_and_send(m_go_to)

        tf1 = matrix_to_transform(self.map_to_go_to, MAP_FRAME, TAG_FRAME)
        tf1.header.stamp = self._clock()
        self._broadcaster.send_transform(tf1)
        return tf1