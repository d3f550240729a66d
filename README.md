# tagfollower

Tools for working with rigid-body transforms between coordinate frames, and a
controller that makes a mobile robot follow a fiducial tag.

Poses are held as 4x4 homogeneous matrices (NumPy arrays): the upper-left
3x3 block is the rotation and the right-hand column is the translation.
Frames are linked by stamped transform messages, which carry a parent frame,
a child frame, a translation and a unit quaternion.

## Modules

- `tagfollower.messages` holds plain dataclass message types: `Time`
  (seconds and nanoseconds, ordered, with `to_nanoseconds` and
  `from_nanoseconds`), `Vector3`, `Quaternion` (identity by default),
  `Header`, `Transform`, `TransformStamped`, `Pose` and `PoseStamped`.
  `now()` returns the current wall-clock time as a `Time`.
- `tagfollower.transforms` converts between messages and matrices:
  `transform_to_matrix`, `matrix_to_transform`, `quaternion_to_matrix`,
  `matrix_to_quaternion` and `axis_angle_matrix`. `format_transform` renders a
  transform as text and `print_transform` logs that text at info level.
- `tagfollower.tf` provides an in-process `TransformBuffer`, which keeps the
  latest transform of each child frame and answers `lookup_transform` and
  `can_transform` between any two connected frames (raising
  `TransformLookupError` when a frame is unknown or the frames are not
  connected). `TransformBroadcaster` publishes transforms into the buffers it
  was given and keeps a record of everything it sent in `sent`.
- `tagfollower.tf_listener` builds two fixed offset frames
  (`create_offset_frame_one`: a 60 degree turn about x and three units along
  x; `create_offset_frame_two`: one unit along z). `TFListenerNode` looks up
  `world` -> `example_frame`, logs it, and broadcasts `off1` and `off2`
  composed on top of it.
- `tagfollower.spatial_transform` holds `SpatialTransformNode`, which keeps a
  translation and an x-y-z rotation and broadcasts them as `world` ->
  `example_frame`, and `TransformGUI`, a set of six bounded sliders (X, Y, Z,
  Rx, Ry, Rz) whose changes are passed to the node.
- `tagfollower.navigation` describes navigation goals: `NavigateToPoseGoal`,
  `NavigationClient` (hands goals to a server callable; without one every
  goal is accepted), `do_transform_pose`, `MoveToTarget` (turns a 4x4 goal
  matrix relative to `base_link` into a goal pose and sends it) and
  `NavGoalSender` (sends a goal one metre ahead of the robot, expressed in the
  `map` frame).
- `tagfollower.follower` holds `AprilTagDetection`, `AprilTagDetectionArray`
  and `FollowerRobotNode`. For each detection of tag 1 the node looks up
  `map` -> `base_link` and `base_link` -> `tag1`. When the data is newer than
  before and the tag has moved in the map by more than the motion threshold,
  and the tag is further away than the follow distance, it sends the robot to
  a point that distance short of the tag, turned to face it. Each time it then
  broadcasts the current go-to pose as a transform from `map`.

## Example

```python
import numpy as np

from tagfollower.transforms import matrix_to_transform, transform_to_matrix

pose = np.eye(4)
pose[:3, 3] = [1.0, 2.0, 0.5]

msg = matrix_to_transform(pose, "map", "tag1")
assert np.allclose(transform_to_matrix(msg), pose)
```

Composing frames is plain matrix multiplication: the pose of `tag1` in `map`
is `map_to_base_link @ base_link_to_tag1`.

## What this package does not do

- It has no command-line programs; the nodes are classes you drive from your
  own code by calling their methods.
- It does not connect to any robot middleware, network or message bus.
  Transforms travel only between a `TransformBroadcaster` and the
  `TransformBuffer` objects given to it, and goals go only to the server
  callable given to a `NavigationClient`.
- It does not detect tags in camera images; detections must be supplied as
  `AprilTagDetectionArray` values.
- `TransformGUI` opens no window; its sliders are plain objects whose values
  are set in code.

## Tests

The test suite uses pytest and is installed with the `test` extra.