"""Conversion between transform messages and 4x4 rigid transformation matrices."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .messages import Quaternion, Transform, TransformStamped


def quaternion_to_matrix(q: Quaternion) -> np.ndarray:
    """Return the 3x3 rotation matrix of a unit quaternion."""
    tx, ty, tz = 2.0 * q.x, 2.0 * q.y, 2.0 * q.z
    twx, twy, twz = tx * q.w, ty * q.w, tz * q.w
    txx, txy, txz = tx * q.x, ty * q.x, tz * q.x
    tyy, tyz, tzz = ty * q.y, tz * q.y, tz * q.z
    return np.array(
        [
            [1.0 - (tyy + tzz), txy - twz, txz + twy],
            [txy + twz, 1.0 - (txx + tzz), tyz - twx],
            [txz - twy, tyz + twx, 1.0 - (txx + tyy)],
        ]
    )


def matrix_to_quaternion(rotation) -> Quaternion:
    """Return the quaternion of a 3x3 rotation matrix."""
    m = np.asarray(rotation, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"rotation must be 3x3, got {m.shape}")
    diagonal_sum = float(m[0, 0] + m[1, 1] + m[2, 2])
    if diagonal_sum > 0.0:
        t = np.sqrt(diagonal_sum + 1.0)
        w = 0.5 * t
        t = 0.5 / t
        return Quaternion(
            float((m[2, 1] - m[1, 2]) * t),
            float((m[0, 2] - m[2, 0]) * t),
            float((m[1, 0] - m[0, 1]) * t),
            float(w),
        )
    i = 0
    if m[1, 1] > m[0, 0]:
        i = 1
    if m[2, 2] > m[i, i]:
        i = 2
    j = (i + 1) % 3
    k = (j + 1) % 3
    t = np.sqrt(m[i, i] - m[j, j] - m[k, k] + 1.0)
    xyz = [0.0, 0.0, 0.0]
    xyz[i] = 0.5 * t
    t = 0.5 / t
    w = (m[k, j] - m[j, k]) * t
    xyz[j] = (m[j, i] + m[i, j]) * t
    xyz[k] = (m[k, i] + m[i, k]) * t
    return Quaternion(float(xyz[0]), float(xyz[1]), float(xyz[2]), float(w))


def axis_angle_matrix(axis: Sequence[float], angle: float) -> np.ndarray:
    """Return the 3x3 matrix rotating by angle radians about axis."""
    u = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(u)
    if u.shape != (3,) or norm == 0.0:
        raise ValueError("axis must be a non-zero 3-vector")
    u = u / norm
    cross = np.array([[0.0, -u[2], u[1]], [u[2], 0.0, -u[0]], [-u[1], u[0], 0.0]])
    return (
        np.cos(angle) * np.eye(3)
        + np.sin(angle) * cross
        + (1.0 - np.cos(angle)) * np.outer(u, u)
    )


def transform_to_matrix(transform: TransformStamped | Transform) -> np.ndarray:
    """Return the 4x4 rigid transformation of a transform message."""
    body = transform.transform if isinstance(transform, TransformStamped) else transform
    matrix = np.eye(4)
    matrix[:3, :3] = quaternion_to_matrix(body.rotation)
    t = body.translation
    matrix[:3, 3] = (t.x, t.y, t.z)
    return matrix


def matrix_to_transform(matrix, parent_frame: str, child_frame: str) -> TransformStamped:
    """Return a transform message for a 4x4 rigid transformation."""
    m = np.asarray(matrix, dtype=float)
    if m.shape != (4, 4):
        raise ValueError(f"matrix must be 4x4, got {m.shape}")
    message = TransformStamped()
    message.header.frame_id = parent_frame
    message.child_frame_id = child_frame
    translation = message.transform.translation
    translation.x, translation.y, translation.z = (float(v) for v in m[:3, 3])
    message.transform.rotation = matrix_to_quaternion(m[:3, :3])
    return message


def format_transform(transform: TransformStamped) -> str:
    """Describe a transform message as readable text."""
    stamp = transform.header.stamp
    t = transform.transform.translation
    r = transform.transform.rotation
    return (
        "Transform Received:\n"
        f"  Timestamp: {stamp.sec}.{stamp.nanosec}"
        f"  Parent Frame: {transform.header.frame_id}\n"
        f"  Child Frame: {transform.child_frame_id}\n"
        f"  Translation: [{t.x:g}, {t.y:g}, {t.z:g}]\n"
        f"  Rotation: [{r.x:g}, {r.y:g}, {r.z:g}, {r.w:g}]"
    )


def print_transform(logger: logging.Logger, transform: TransformStamped) -> None:
    """Log a description of a transform message at info level."""
    logger.info(format_transform(transform))