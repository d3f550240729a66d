"""Rigid-transform utilities and a tag-following robot controller."""

__version__ = "0.1.0"

__all__ = [
    "follower",
    "messages",
    "navigation",
    "spatial_transform",
    "tf",
    "tf_listener",
    "transforms",
]