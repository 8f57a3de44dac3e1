"""Bridge configuration and logging setup."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from .conversions import planar_offset
from .errors import ConfigError
from .geometry import SE3

SENSOR_TYPES = ("rgbd", "imu_rgbd")


@dataclass
class BridgeConfig:
    """Frames, robot start position and sensor mode for the bridge.

    Attributes:
        global_frame: World frame id stamped on published data
        odom_frame: Local odometry frame id
        robot_x: Robot start x in the world frame (m)
        robot_y: Robot start y in the world frame (m)
        robot_z: Robot start z in the world frame (m)
        robot_yaw: Robot start heading in the world frame (rad)
        transform_timeout: Future-dating of map -> odom transforms (s)
        sensor: "rgbd" or "imu_rgbd"
    """

    global_frame: str = "map"
    odom_frame: str = "odom"
    robot_x: float = 0.0
    robot_y: float = 0.0
    robot_z: float = 0.0
    robot_yaw: float = 0.0
    transform_timeout: float = 0.5
    sensor: str = "rgbd"

    def __post_init__(self) -> None:
        if self.sensor not in SENSOR_TYPES:
            raise ConfigError(
                f"Unknown sensor type {self.sensor!r}, expected one of {SENSOR_TYPES}"
            )
        if self.transform_timeout < 0:
            raise ConfigError("transform_timeout must be non-negative")

    @property
    def use_inertial(self) -> bool:
        return self.sensor == "imu_rgbd"

    def world_origin_offset(self) -> SE3:
        """Pose of the first map's origin in the world frame."""
        return planar_offset(self.robot_x, self.robot_y, self.robot_z, self.robot_yaw)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> BridgeConfig:
        """Load configuration from a YAML file.

        The file may hold the keys at top level or under an ``atlas_bridge``
        section.

        Raises:
            FileNotFoundError: If file doesn't exist
            ConfigError: If the file contents are invalid
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in {yaml_path}")
        data = data.get("atlas_bridge", data)
        if not isinstance(data, dict):
            raise ConfigError(f"Expected 'atlas_bridge' to be a mapping in {yaml_path}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys in {yaml_path}: {unknown}")

        return cls(**data)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a console handler to the ``atlas_bridge`` logger.

    Library code never calls this; applications embedding the bridge may.
    """
    logger = logging.getLogger("atlas_bridge")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger
