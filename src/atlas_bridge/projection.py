"""Projection of map-local keyframe poses and map points into the world frame.

The reference pose passed in must belong to the map that owns the pose or
point. Nothing here can check that; a reference from another map produces a
valid but wrong transform.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import numpy as np

from .conversions import (
    as_point,
    transform_point_with_reference,
    transform_pose_with_reference,
)
from .geometry import SE3


def project_pose(reference: SE3, local_pose: Any) -> SE3:
    """Return ``reference ∘ local_pose``."""
    return transform_pose_with_reference(reference, local_pose)


def project_point(reference: SE3, local_point: Any) -> np.ndarray:
    """Return ``reference`` applied to a single map-local point."""
    return transform_point_with_reference(reference, local_point)


def project_points(reference: SE3, local_points: Iterable[Any]) -> np.ndarray:
    """Project many map-local points at once.

    Returns:
        Nx3 array of world points (``(0, 3)`` if ``local_points`` is empty)
    """
    points = [as_point(p) for p in local_points]
    if not points:
        return np.empty((0, 3), dtype=np.float64)
    return reference.transform_points(np.vstack(points))


def valid_map_point_positions(keyframe: Any) -> list[np.ndarray]:
    """Map-local positions of a keyframe's map points that are not retired."""
    return [
        as_point(mp.get_world_pos())
        for mp in keyframe.get_map_points()
        if mp is not None and not mp.is_bad()
    ]
