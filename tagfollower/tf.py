"""A store of frame transforms that answers lookups between any two frames."""

from __future__ import annotations

import copy
from typing import Iterable

import numpy as np

from .messages import Header, Time, TransformStamped
from .transforms import matrix_to_transform, transform_to_matrix


class TransformLookupError(LookupError):
    """Raised when a transform between two frames cannot be found."""


def _invert_rigid(matrix: np.ndarray) -> np.ndarray:
    rotation = matrix[:3, :3]
    inverse = np.eye(4)
    inverse[:3, :3] = rotation.T
    inverse[:3, 3] = -rotation.T @ matrix[:3, 3]
    return inverse


class TransformBuffer:
    """Holds the latest transform of every child frame and composes them."""

    def __init__(self) -> None:
        self._by_child: dict[str, TransformStamped] = {}

    def set_transform(self, transform: TransformStamped) -> None:
        """Store a transform, replacing any earlier one for the same child."""
        parent = transform.header.frame_id
        child = transform.child_frame_id
        if not parent or not child:
            raise ValueError("transform needs both a parent and a child frame")
        if parent == child:
            raise ValueError(f"frame {child!r} cannot be its own parent")
        self._by_child[child] = copy.deepcopy(transform)

    def _known_frames(self) -> set[str]:
        frames = set(self._by_child)
        frames.update(t.header.frame_id for t in self._by_child.values())
        return frames

    def _chain(self, frame: str) -> list[str]:
        chain = [frame]
        seen = {frame}
        while frame in self._by_child:
            frame = self._by_child[frame].header.frame_id
            if frame in seen:
                raise TransformLookupError(f"frame tree has a loop at {frame!r}")
            chain.append(frame)
            seen.add(frame)
        return chain

    def _to_ancestor(self, chain: list[str], stamps: list[Time]) -> np.ndarray:
        matrix = np.eye(4)
        for child in chain:
            edge = self._by_child[child]
            stamps.append(edge.header.stamp)
            matrix = transform_to_matrix(edge) @ matrix
        return matrix

    def lookup_transform(self, target_frame: str, source_frame: str) -> TransformStamped:
        """Return the pose of source_frame expressed in target_frame."""
        known = self._known_frames()
        for frame in (target_frame, source_frame):
            if frame not in known:
                raise TransformLookupError(f"frame {frame!r} does not exist")
        if target_frame == source_frame:
            return TransformStamped(Header(Time(), target_frame), source_frame)

        target_chain = self._chain(target_frame)
        source_chain = self._chain(source_frame)
        ancestors = set(target_chain)
        common = next((f for f in source_chain if f in ancestors), None)
        if common is None:
            raise TransformLookupError(
                f"frames {target_frame!r} and {source_frame!r} are not connected"
            )

        stamps: list[Time] = []
        source_in_common = self._to_ancestor(
            source_chain[: source_chain.index(common)], stamps
        )
        target_in_common = self._to_ancestor(
            target_chain[: target_chain.index(common)], stamps
        )
        result = matrix_to_transform(
            _invert_rigid(target_in_common) @ source_in_common,
            target_frame,
            source_frame,
        )
        result.header.stamp = min(stamps)
        return result

    def can_transform(self, target_frame: str, source_frame: str) -> bool:
        """Tell whether a lookup between the two frames would succeed."""
        try:
            self.lookup_transform(target_frame, source_frame)
        except TransformLookupError:
            return False
        return True


class TransformBroadcaster:
    """Publishes transforms to every buffer it was given and keeps a record."""

    def __init__(self, *buffers: TransformBuffer) -> None:
        self.buffers = list(buffers)
        self.sent: list[TransformStamped] = []

    def send_transform(
        self, transform: TransformStamped | Iterable[TransformStamped]
    ) -> None:
        """Publish one transform or several."""
        batch = [transform] if isinstance(transform, TransformStamped) else list(transform)
        for item in batch:
            published = copy.deepcopy(item)
            self.sent.append(published)
            for buffer in self.buffers:
                buffer.set_transform(published)