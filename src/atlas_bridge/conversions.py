"""Conversions between engine-native values and the bridge's world-frame types.

Everything here is a pure function: poses become ``SE3``, points become
float64 ``(3,)`` arrays and float-second timestamps become ``Stamp`` pairs
at the outward boundary.
"""

from __future__ import annotations

import math
from typing import Any, NamedTuple

import numpy as np
from scipy.spatial.transform import Rotation

from .geometry import SE3

NSEC_PER_SEC = 1_000_000_000


class Stamp(NamedTuple):
    """Integer (sec, nanosec) timestamp as used by message transports."""

    sec: int
    nanosec: int


def as_se3(native: Any) -> SE3:
    """Convert an engine pose to ``SE3``.

    Accepts an ``SE3``, a 4x4 homogeneous matrix, an object exposing
    ``matrix()`` (Sophus-style bindings) or a ``(R, t)`` pair.
    """
    if isinstance(native, SE3):
        return native
    if hasattr(native, "matrix"):
        return SE3.from_matrix(np.asarray(native.matrix()))
    if isinstance(native, tuple) and len(native) == 2:
        R, t = native
        return SE3(rotation=R, translation=t)
    return SE3.from_matrix(np.asarray(native))


def as_point(native: Any) -> np.ndarray:
    """Convert an engine 3-vector to a float64 ``(3,)`` array."""
    point = np.asarray(native, dtype=np.float64).flatten()
    if point.shape != (3,):
        raise ValueError(f"Point must have 3 components, got {point.shape}")
    return point


def seconds_to_stamp(seconds: float) -> Stamp:
    """Split float seconds into whole seconds and rounded nanoseconds."""
    sec = math.floor(seconds)
    nanosec = int(round((seconds - sec) * NSEC_PER_SEC))
    if nanosec >= NSEC_PER_SEC:
        sec += 1
        nanosec -= NSEC_PER_SEC
    return Stamp(int(sec), nanosec)


def stamp_to_seconds(stamp: Stamp) -> float:
    return stamp.sec + stamp.nanosec / NSEC_PER_SEC


def pose_from_position_quaternion(
    position: np.ndarray, quaternion_wxyz: tuple[float, float, float, float]
) -> SE3:
    """Build a pose from a position and a Hamilton (w, x, y, z) quaternion."""
    w, x, y, z = quaternion_wxyz
    R = Rotation.from_quat([x, y, z, w]).as_matrix()
    return SE3(rotation=R, translation=position)


def pose_to_position_quaternion(pose: SE3) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(position, quaternion_wxyz)`` for a pose."""
    x, y, z, w = Rotation.from_matrix(pose.rotation).as_quat()
    return pose.position, np.array([w, x, y, z])


def planar_offset(x: float, y: float, z: float = 0.0, yaw: float = 0.0) -> SE3:
    """World-origin offset placing the robot start at (x, y, z) with heading ``yaw``."""
    return SE3.from_yaw(yaw, translation=np.array([x, y, z], dtype=np.float64))


def transform_pose_with_reference(reference: SE3, local_pose: Any) -> SE3:
    """Express a map-local engine pose in the world frame."""
    return reference.compose(as_se3(local_pose))


def transform_point_with_reference(reference: SE3, local_point: Any) -> np.ndarray:
    """Express a map-local engine point in the world frame."""
    return reference.transform_point(as_point(local_point))
