"""Navigation goals: building them from rigid transforms and sending them."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from .messages import Header, PoseStamped, Time, Vector3, now
from .tf import TransformBuffer, TransformLookupError
from .transforms import (
    matrix_to_quaternion,
    quaternion_to_matrix,
    transform_to_matrix,
)
from .messages import Pose, TransformStamped

BASE_FRAME = "base_link"
MAP_FRAME = "map"


@dataclass
class NavigateToPoseGoal:
    """A request to drive to a pose."""

    pose: PoseStamped = field(default_factory=PoseStamped)
    behavior_tree: str = ""


GoalServer = Callable[[NavigateToPoseGoal], Any]


class NavigationClient:
    """Sends navigation goals to a server and reports its answers.

    The server is a callable that takes a goal and returns its result, or None
    to reject it. Without a server every goal is accepted with result True.
    """

    def __init__(self, server: Optional[GoalServer] = None) -> None:
        self._server = server
        self.goals: list[NavigateToPoseGoal] = []

    def send_goal_async(
        self,
        goal: NavigateToPoseGoal,
        goal_response_callback: Optional[Callable[[Any], None]] = None,
        result_callback: Optional[Callable[[Any], None]] = None,
    ) -> Optional[NavigateToPoseGoal]:
        """Send a goal; return its handle, or None if it was rejected."""
        sent = copy.deepcopy(goal)
        self.goals.append(sent)
        result = True if self._server is None else self._server(sent)
        handle = sent if result is not None else None
        if goal_response_callback is not None:
            goal_response_callback(handle)
        if handle is not None and result_callback is not None:
            result_callback(result)
        return handle


def _pose_matrix(pose: Pose) -> np.ndarray:
    matrix = np.eye(4)
    matrix[:3, :3] = quaternion_to_matrix(pose.orientation)
    p = pose.position
    matrix[:3, 3] = (p.x, p.y, p.z)
    return matrix


def do_transform_pose(pose: PoseStamped, transform: TransformStamped) -> PoseStamped:
    """Express a pose in the parent frame of a transform."""
    matrix = transform_to_matrix(transform) @ _pose_matrix(pose.pose)
    result = PoseStamped(Header(transform.header.stamp, transform.header.frame_id))
    result.pose.position = Vector3(*(float(v) for v in matrix[:3, 3]))
    result.pose.orientation = matrix_to_quaternion(matrix[:3, :3])
    return result


class MoveToTarget:
    """Turns a rigid transform relative to base_link into a navigation goal."""

    def __init__(
        self,
        client: NavigationClient,
        logger: logging.Logger | None = None,
        clock: Callable[[], Time] = now,
    ) -> None:
        self._client = client
        self._logger = logger or logging.getLogger("move_to_target")
        self._clock = clock

    def goal_response_callback(self, goal_handle: Any) -> None:
        """Log whether the goal was accepted."""
        if not goal_handle:
            self._logger.error("Goal was rejected!")
        else:
            self._logger.info("Goal accepted!")

    def result_callback(self, result: Any) -> None:
        """Receive the navigation result; nothing is done with it."""

    def copy_to_goal_pose_and_send(self, goal_pose_relative_to_base_link) -> NavigateToPoseGoal:
        """Send the pose of a 4x4 rigid transform as a goal in base_link."""
        self._logger.info("Sending goal!")
        matrix = np.asarray(goal_pose_relative_to_base_link, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError(f"goal pose must be 4x4, got {matrix.shape}")
        goal_pose = PoseStamped(Header(self._clock(), BASE_FRAME))
        goal_pose.pose.orientation = matrix_to_quaternion(matrix[:3, :3])
        goal_pose.pose.position = Vector3(*(float(v) for v in matrix[:3, 3]))
        goal = NavigateToPoseGoal(goal_pose)
        self._client.send_goal_async(goal, self.goal_response_callback, self.result_callback)
        return goal


class NavGoalSender:
    """Sends a goal one metre ahead of the robot, expressed in the map frame."""

    def __init__(
        self,
        buffer: TransformBuffer,
        client: NavigationClient,
        logger: logging.Logger | None = None,
        clock: Callable[[], Time] = now,
    ) -> None:
        self._buffer = buffer
        self._client = client
        self._logger = logger or logging.getLogger("nav_goal_sender")
        self._clock = clock

    def goal_response_callback(self, goal_handle: Any) -> None:
        """Log whether the goal was accepted."""
        if not goal_handle:
            self._logger.error("Goal was rejected!")
        else:
            self._logger.info("Goal accepted!")

    def send_goal(self) -> bool:
        """Send the goal; return True once it was transformed into the map frame."""
        goal_pose = PoseStamped(Header(self._clock(), BASE_FRAME))
        goal_pose.pose.position.x = 1.0
        goal_pose.pose.position.y = 0.0
        goal_pose.pose.orientation.w = 1.0

        try:
            transform = self._buffer.lookup_transform(MAP_FRAME, BASE_FRAME)
        except TransformLookupError as ex:
            self._logger.error("Could not transform goal to map frame: %s", ex)
            return False

        lookup_good = False
        global_goal = PoseStamped()
        if self._buffer.can_transform(MAP_FRAME, BASE_FRAME):
            self._logger.info("Transform is good!")
            global_goal = do_transform_pose(goal_pose, transform)
            lookup_good = True
        else:
            self._logger.error("Transform is bad!")

        self._logger.info("Sending goal...")
        self._client.send_goal_async(
            NavigateToPoseGoal(global_goal), self.goal_response_callback
        )
        return lookup_good