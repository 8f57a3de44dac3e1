"""Map -> odom correction transform.

Local odometry drifts; the SLAM world pose does not. Publishing

    T_map_odom = T_map_base ∘ T_odom_base⁻¹

lets downstream consumers chain map -> odom -> base without the odometry
source knowing about the map. The transform is recomputed from scratch on
every call and never accumulated.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .conversions import Stamp, pose_to_position_quaternion, seconds_to_stamp
from .geometry import SE3
from .sensors import OdometrySample
from .world_state import WorldState


@dataclass(frozen=True)
class MapToOdomTransform:
    """Stamped transform from ``child_frame_id`` (odom) to ``frame_id`` (map)."""

    stamp: Stamp
    frame_id: str
    child_frame_id: str
    transform: SE3

    @property
    def translation(self) -> np.ndarray:
        return self.transform.position

    @property
    def quaternion(self) -> np.ndarray:
        """Rotation as a Hamilton (w, x, y, z) quaternion, as tf messages carry it."""
        _, quaternion = pose_to_position_quaternion(self.transform)
        return quaternion


class OdomBridge:
    """Computes the map -> odom transform from the latest tracked pose.

    Args:
        world_state: Shared state holding the latest tracked pose
        global_frame: World frame id (parent)
        odom_frame: Odometry frame id (child)
        transform_timeout: Seconds added to the odometry stamp so consumers
            can use the transform slightly ahead of the odometry sample
    """

    def __init__(
        self,
        world_state: WorldState,
        global_frame: str = "map",
        odom_frame: str = "odom",
        transform_timeout: float = 0.5,
    ) -> None:
        self._world = world_state
        self._global_frame = global_frame
        self._odom_frame = odom_frame
        self._transform_timeout = transform_timeout

    def compute_map_to_odom(self, odom: OdometrySample) -> MapToOdomTransform | None:
        """Return the correction transform, or None before the first tracked frame."""
        tracked = self._world.tracked
        if tracked is None:
            return None

        map_to_odom = tracked.pose.compose(odom.pose.inverse())
        return MapToOdomTransform(
            stamp=seconds_to_stamp(odom.timestamp + self._transform_timeout),
            frame_id=self._global_frame,
            child_frame_id=self._odom_frame,
            transform=map_to_odom,
        )
