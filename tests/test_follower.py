import math

import numpy as np
import pytest

from tagfollower.follower import (
    AprilTagDetection,
    AprilTagDetectionArray,
    FollowerRobotNode,
)
from tagfollower.messages import Header, Quaternion, Time, Transform, TransformStamped, Vector3
from tagfollower.navigation import MoveToTarget, NavigationClient
from tagfollower.tf import TransformBroadcaster, TransformBuffer
from tagfollower.transforms import transform_to_matrix

CLOCK_TIME = Time(50, 0)


def _stamped(parent, child, xyz, stamp=Time(1, 0), rotation=None):
    return TransformStamped(
        Header(stamp, parent),
        child,
        Transform(Vector3(*xyz), rotation or Quaternion()),
    )


def _make(follow_distance=0.25, threshold=0.1, tag=(2.0, 1.0, 0.0)):
    buffer = TransformBuffer()
    buffer.set_transform(_stamped("map", "base_link", (1.0, 1.0, 0.0)))
    buffer.set_transform(_stamped("base_link", "tag1", tag))
    broadcaster = TransformBroadcaster()
    client = NavigationClient()
    mover = MoveToTarget(client, clock=lambda: CLOCK_TIME)
    node = FollowerRobotNode(
        buffer,
        broadcaster,
        mover,
        follow_distance=follow_distance,
        tag_motion_threshold=threshold,
        clock=lambda: CLOCK_TIME,
    )
    return node, buffer, broadcaster, client


def test_distance_is_euclidean_norm():
    node, *_ = _make()
    tf = _stamped("base_link", "tag1", (3.0, 4.0, 0.0))
    assert node.compute_distance_base_link_tag1(tf) == pytest.approx(5.0)


@pytest.mark.parametrize("xy", [(2.0, 0.0), (1.0, 3.0), (-2.0, 1.5), (0.5, -4.0)])
def test_go_to_frame_is_follow_distance_short_and_faces_tag(xy):
    node, *_ = _make(follow_distance=0.4)
    matrix = node.compute_go_to_frame_from_base_link(
        _stamped("base_link", "tag1", (xy[0], xy[1], 0.7))
    )
    goal = matrix[:2, 3]
    tag = np.array(xy)
    assert np.linalg.norm(tag - goal) == pytest.approx(0.4)
    assert matrix[2, 3] == 0.0
    heading = matrix[:3, :3] @ np.array([1.0, 0.0, 0.0])
    to_tag = (tag - goal) / np.linalg.norm(tag - goal)
    assert heading[:2] == pytest.approx(to_tag)
    assert heading[2] == pytest.approx(0.0)
    assert matrix[3] == pytest.approx([0.0, 0.0, 0.0, 1.0])
    assert matrix[:3, :3] @ matrix[:3, :3].T == pytest.approx(np.eye(3))


def test_tag_moved_first_time_and_not_on_repeat_stamp():
    node, *_ = _make()
    m2b = _stamped("map", "base_link", (1.0, 0.0, 0.0), Time(2, 0))
    b2t = _stamped("base_link", "tag1", (2.0, 0.0, 0.0), Time(3, 0))
    assert node.the_tag_moved(m2b, b2t) is True
    assert node.previous_stamp == Time(2, 0)
    expected = transform_to_matrix(m2b) @ transform_to_matrix(b2t)
    assert node.map_to_tag1_prev == pytest.approx(expected)
    assert node.the_tag_moved(m2b, b2t) is False


def test_small_motion_does_not_count_and_keeps_previous():
    node, *_ = _make(threshold=0.5)
    m2b = _stamped("map", "base_link", (0.0, 0.0, 0.0), Time(2, 0))
    first = _stamped("base_link", "tag1", (2.0, 0.0, 0.0), Time(2, 0))
    assert node.the_tag_moved(m2b, first) is True
    before = node.map_to_tag1_prev.copy()
    m2b_later = _stamped("map", "base_link", (0.0, 0.0, 0.0), Time(3, 0))
    nudged = _stamped("base_link", "tag1", (2.1, 0.0, 0.0), Time(3, 0))
    assert node.the_tag_moved(m2b_later, nudged) is False
    assert node.map_to_tag1_prev == pytest.approx(before)
    assert node.previous_stamp == Time(3, 0)


def test_compute_and_act_sends_goal_and_broadcasts_go_to_in_map():
    node, buffer, broadcaster, client = _make()
    sent = node.compute_and_act()
    assert len(client.goals) == 1
    goal = client.goals[0].pose
    assert goal.header.frame_id == "base_link"
    assert goal.header.stamp == CLOCK_TIME

    b2t = buffer.lookup_transform("base_link", "tag1")
    go_to = node.compute_go_to_frame_from_base_link(b2t)
    assert [goal.pose.position.x, goal.pose.position.y] == pytest.approx(go_to[:2, 3])

    m2b = transform_to_matrix(buffer.lookup_transform("map", "base_link"))
    assert sent.header.frame_id == "map"
    assert sent.child_frame_id == "tag1"
    assert sent.header.stamp == CLOCK_TIME
    assert transform_to_matrix(sent) == pytest.approx(m2b @ go_to)
    assert broadcaster.sent[-1] == sent


def test_compute_and_act_close_tag_sends_no_goal():
    node, _, broadcaster, client = _make(follow_distance=5.0)
    sent = node.compute_and_act()
    assert client.goals == []
    assert transform_to_matrix(sent) == pytest.approx(np.eye(4))
    assert len(broadcaster.sent) == 1


def test_compute_and_act_missing_frame_returns_none():
    buffer = TransformBuffer()
    buffer.set_transform(_stamped("map", "base_link", (0.0, 0.0, 0.0)))
    broadcaster = TransformBroadcaster()
    client = NavigationClient()
    node = FollowerRobotNode(buffer, broadcaster, MoveToTarget(client))
    assert node.compute_and_act() is None
    assert broadcaster.sent == []
    assert client.goals == []


def test_second_act_without_new_data_sends_no_new_goal():
    node, _, broadcaster, client = _make()
    node.compute_and_act()
    node.compute_and_act()
    assert len(client.goals) == 1
    assert len(broadcaster.sent) == 2
    assert transform_to_matrix(broadcaster.sent[0]) == pytest.approx(
        transform_to_matrix(broadcaster.sent[1])
    )


def test_callback_ignores_other_tags():
    node, _, broadcaster, client = _make()
    node.april_tag_callback(
        AprilTagDetectionArray(detections=[AprilTagDetection(0), AprilTagDetection(2)])
    )
    assert client.goals == []
    assert broadcaster.sent == []


def test_callback_acts_on_tag_one():
    node, _, broadcaster, client = _make()
    node.april_tag_callback(
        AprilTagDetectionArray(detections=[AprilTagDetection(3), AprilTagDetection(1)])
    )
    assert len(client.goals) == 1
    assert len(broadcaster.sent) == 1


def test_rotated_base_link_goal_faces_tag_in_map():
    buffer = TransformBuffer()
    half = math.pi / 4.0
    buffer.set_transform(
        _stamped(
            "map",
            "base_link",
            (0.0, 0.0, 0.0),
            rotation=Quaternion(0.0, 0.0, math.sin(half), math.cos(half)),
        )
    )
    buffer.set_transform(_stamped("base_link", "tag1", (3.0, 0.0, 0.0)))
    node = FollowerRobotNode(
        buffer, TransformBroadcaster(), MoveToTarget(NavigationClient()), follow_distance=1.0
    )
    sent = node.compute_and_act()
    matrix = transform_to_matrix(sent)
    tag_in_map = transform_to_matrix(buffer.lookup_transform("map", "tag1"))[:3, 3]
    offset = tag_in_map - matrix[:3, 3]
    assert np.linalg.norm(offset) == pytest.approx(1.0)
    heading = matrix[:3, :3] @ np.array([1.0, 0.0, 0.0])
    assert heading == pytest.approx(offset / np.linalg.norm(offset))