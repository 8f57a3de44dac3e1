"""Sensor sample types consumed by the bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .conversions import pose_from_position_quaternion
from .geometry import SE3


@dataclass
class InertialSample:
    """Single IMU sample at a given timestamp.

    Attributes:
        timestamp: Sample time in seconds
        accelerometer: Linear acceleration (ax, ay, az) in m/s²
        gyroscope: Angular velocity (wx, wy, wz) in rad/s
    """

    timestamp: float
    accelerometer: np.ndarray  # (3,) m/s²
    gyroscope: np.ndarray  # (3,) rad/s

    def __post_init__(self) -> None:
        """Ensure arrays have correct shape."""
        self.timestamp = float(self.timestamp)
        self.accelerometer = np.asarray(self.accelerometer, dtype=np.float64).flatten()
        self.gyroscope = np.asarray(self.gyroscope, dtype=np.float64).flatten()
        if self.accelerometer.shape != (3,) or self.gyroscope.shape != (3,):
            raise ValueError("Inertial sample vectors must have 3 components")


@dataclass
class StampedImage:
    """Raw image payload as delivered by transport, plus its capture time.

    ``data`` is whatever the image decoder accepts: an already decoded
    array or an encoded byte buffer.
    """

    data: Any
    timestamp: float


@dataclass
class OdometrySample:
    """Latest wheel/visual odometry estimate, T_odom_base."""

    timestamp: float
    pose: SE3

    @classmethod
    def from_position_quaternion(
        cls,
        timestamp: float,
        position: np.ndarray,
        quaternion_wxyz: tuple[float, float, float, float],
    ) -> OdometrySample:
        """Create a sample from an odometry message's position and (w, x, y, z) orientation."""
        return cls(
            timestamp=float(timestamp),
            pose=pose_from_position_quaternion(
                np.asarray(position, dtype=np.float64), quaternion_wxyz
            ),
        )
