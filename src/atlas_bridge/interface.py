"""Atlas interface orchestrating tracking, snapshots and odometry correction.

AtlasInterface combines:
- TrackingPipeline: image/IMU synchronization and the engine tracking step
- WorldState: reference poses, keyframe history and the tracked pose
- MapSnapshotBuilder: pose-graph / point-cloud queries
- OdomBridge: map -> odom correction

IMU producers, the image callback and any publishing timer may call into the
interface from different threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from .config import BridgeConfig
from .engine import SlamEngine, TrackingState
from .errors import TrackedPoseUnavailable
from .imaging import ImageDecoder
from .odom import MapToOdomTransform, OdomBridge
from .reference_frames import ReferenceFrameResolver
from .sensors import InertialSample, OdometrySample, StampedImage
from .snapshot import MapData, MapSnapshotBuilder, PointCloudResult, PoseGraph, SnapshotScope
from .tracking import InertialBuffer, TrackingPipeline, TrackingResult
from .world_state import TrackedPose, WorldState

logger = logging.getLogger(__name__)


class AtlasInterface:
    """World-consistent view over a multi-map SLAM engine.

    Example usage:
        with AtlasInterface(engine, BridgeConfig(robot_x=1.0)) as bridge:
            bridge.handle_imu(sample)
            result = bridge.track(image, depth)
            if result.ok:
                graph = bridge.get_pose_graph()
    """

    def __init__(
        self,
        engine: SlamEngine,
        config: BridgeConfig | None = None,
        decoder: ImageDecoder | None = None,
    ) -> None:
        """Initialize the interface.

        Args:
            engine: SLAM engine to drive
            config: Frames, robot start and sensor mode (default: BridgeConfig())
            decoder: Image decoder (default: OpenCV)
        """
        self._engine = engine
        self._config = config if config is not None else BridgeConfig()

        resolver = ReferenceFrameResolver(self._config.world_origin_offset())
        self._world = WorldState(resolver)
        self._inertial = InertialBuffer()
        self._pipeline = TrackingPipeline(
            engine, self._world, inertial_buffer=self._inertial, decoder=decoder
        )
        self._snapshots = MapSnapshotBuilder(
            engine, self._world, global_frame=self._config.global_frame
        )
        self._odom = OdomBridge(
            self._world,
            global_frame=self._config.global_frame,
            odom_frame=self._config.odom_frame,
            transform_timeout=self._config.transform_timeout,
        )
        logger.info(
            "Atlas interface ready (sensor=%s, world frame=%s)",
            self._config.sensor,
            self._config.global_frame,
        )

    @property
    def config(self) -> BridgeConfig:
        return self._config

    # Sensor input

    def handle_imu(self, sample: InertialSample) -> None:
        """Buffer an IMU sample for the next inertial-mode frame."""
        self._inertial.push(sample)

    def track(self, image: StampedImage, depth: StampedImage) -> TrackingResult:
        """Track a frame pair in the mode selected by ``config.sensor``."""
        return self._pipeline.track_frame(image, depth, use_inertial=self._config.use_inertial)

    def track_rgbd(self, image: StampedImage, depth: StampedImage) -> TrackingResult:
        return self._pipeline.track_frame(image, depth, use_inertial=False)

    def track_rgbd_inertial(
        self, image: StampedImage, depth: StampedImage
    ) -> TrackingResult:
        return self._pipeline.track_frame(image, depth, use_inertial=True)

    # Queries

    def get_pose_graph(
        self, scope: SnapshotScope = SnapshotScope.ALL_KEYFRAMES
    ) -> PoseGraph:
        return self._snapshots.build_pose_graph(scope)

    def get_point_cloud(
        self,
        keyframe_ids: Iterable[int],
        scope: SnapshotScope = SnapshotScope.ALL_KEYFRAMES,
    ) -> PointCloudResult:
        return self._snapshots.build_point_cloud(keyframe_ids, scope)

    def get_map_data(
        self,
        current_map_only: bool = False,
        include_map_points: bool = False,
        keyframe_ids: Iterable[int] = (),
    ) -> MapData:
        scope = (
            SnapshotScope.CURRENT_MAP_ONLY
            if current_map_only
            else SnapshotScope.ALL_KEYFRAMES
        )
        return self._snapshots.build_map_data(scope, include_map_points, keyframe_ids)

    def get_full_point_cloud(self) -> np.ndarray:
        return self._snapshots.build_full_point_cloud()

    def get_map_to_odom(self, odom: OdometrySample) -> MapToOdomTransform | None:
        return self._odom.compute_map_to_odom(odom)

    def get_tracked_pose(self) -> TrackedPose:
        """Return the latest world pose.

        Raises:
            TrackedPoseUnavailable: If no frame has been tracked yet
        """
        tracked = self._world.tracked
        if tracked is None:
            raise TrackedPoseUnavailable("No frame has been tracked yet")
        return tracked

    @property
    def has_tracked(self) -> bool:
        return self._world.has_tracked

    @property
    def tracking_state(self) -> TrackingState:
        return self._pipeline.state

    # Lifecycle

    def shutdown(self) -> None:
        """Stop the engine (if it supports it) and drop all cached state."""
        logger.info("Shutting down atlas interface")
        shutdown = getattr(self._engine, "shutdown", None)
        if callable(shutdown):
            shutdown()
        self._inertial.clear()
        self._world.clear()

    def __enter__(self) -> AtlasInterface:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
