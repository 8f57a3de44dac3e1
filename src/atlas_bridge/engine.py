"""Interfaces of the external SLAM engine and its atlas.

The bridge never mutates anything reachable through these protocols; it
only reads maps, keyframes and map points and calls the engine's tracking
step. Poses returned by the engine may be 4x4 matrices, ``(R, t)`` pairs or
``SE3`` instances (see ``conversions.as_se3``).
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import numpy as np

from .sensors import InertialSample


class TrackingState(Enum):
    """Tracking state reported by the engine, keyed by its integer code."""

    SYSTEM_NOT_READY = -1
    NO_IMAGES_YET = 0
    NOT_INITIALIZED = 1
    OK = 2
    LOST = 3

    @classmethod
    def from_code(cls, code: int) -> TrackingState:
        """Map a raw engine state code to a named state.

        Code 4 (lost after a grace period) is folded into ``LOST``.

        Raises:
            ValueError: If the code is not a known engine state
        """
        if code == 4:
            return cls.LOST
        return cls(int(code))


class MapPoint(Protocol):
    def get_world_pos(self) -> Any: ...

    def is_bad(self) -> bool: ...


class KeyFrame(Protocol):
    id: int

    def get_pose(self) -> Any: ...

    def get_timestamp(self) -> float: ...

    def get_map_points(self) -> Sequence[MapPoint | None]: ...

    def get_map(self) -> Map: ...


class Map(Protocol):
    id: int

    def get_all_keyframes(self) -> Sequence[KeyFrame]: ...

    def get_init_keyframe_id(self) -> int: ...

    def get_origin_keyframe(self) -> KeyFrame: ...


class Atlas(Protocol):
    def get_all_maps(self) -> Sequence[Map]: ...

    def get_current_map(self) -> Map: ...

    def get_all_keyframes(self) -> Sequence[KeyFrame]:
        """Keyframes of the current map, in engine order."""
        ...


@runtime_checkable
class SlamEngine(Protocol):
    def track_rgbd(
        self,
        image: np.ndarray,
        depth: np.ndarray,
        timestamp: float,
        inertial_samples: Sequence[InertialSample] | None = None,
    ) -> Any: ...

    def get_tracking_state(self) -> int: ...

    def merge_detected(self) -> bool: ...

    def get_atlas(self) -> Atlas: ...
