"""Atlas bridge - world-consistent poses and maps from a multi-map SLAM engine."""

__version__ = "0.1.0"

# Re-export main classes for convenient imports
from .config import BridgeConfig, setup_logging
from .conversions import Stamp
from .engine import SlamEngine, TrackingState
from .errors import (
    AtlasBridgeError,
    ConfigError,
    EngineNotInitialized,
    EngineNotReady,
    InconsistentReferenceFrame,
    MergeInProgress,
    NotSynchronizedYet,
    SensorDecodeError,
    TrackedPoseUnavailable,
    TrackingFailure,
    TrackingLost,
    UnknownKeyframeId,
)
from .geometry import SE3
from .imaging import ImageDecoder, OpenCVImageDecoder
from .interface import AtlasInterface
from .odom import MapToOdomTransform, OdomBridge
from .projection import project_point, project_points, project_pose
from .reference_frames import KeyframeIndex, ReferenceFrameResolver
from .sensors import InertialSample, OdometrySample, StampedImage
from .snapshot import (
    KeyframePoints,
    MapData,
    MapSnapshotBuilder,
    PointCloudResult,
    PoseGraph,
    SnapshotScope,
)
from .tracking import InertialBuffer, TrackingPipeline, TrackingResult, TrackOutcome
from .world_state import TrackedPose, WorldState

__all__ = [
    "__version__",
    # Interface
    "AtlasInterface",
    "BridgeConfig",
    "setup_logging",
    # Engine boundary
    "SlamEngine",
    "TrackingState",
    "ImageDecoder",
    "OpenCVImageDecoder",
    # Geometry
    "SE3",
    "Stamp",
    "project_pose",
    "project_point",
    "project_points",
    # Reference frames
    "KeyframeIndex",
    "ReferenceFrameResolver",
    "WorldState",
    "TrackedPose",
    # Tracking
    "InertialBuffer",
    "InertialSample",
    "StampedImage",
    "TrackingPipeline",
    "TrackingResult",
    "TrackOutcome",
    # Snapshots
    "MapSnapshotBuilder",
    "SnapshotScope",
    "PoseGraph",
    "PointCloudResult",
    "KeyframePoints",
    "MapData",
    # Odometry
    "OdomBridge",
    "OdometrySample",
    "MapToOdomTransform",
    # Errors
    "AtlasBridgeError",
    "ConfigError",
    "SensorDecodeError",
    "TrackingFailure",
    "NotSynchronizedYet",
    "EngineNotReady",
    "EngineNotInitialized",
    "TrackingLost",
    "MergeInProgress",
    "InconsistentReferenceFrame",
    "UnknownKeyframeId",
    "TrackedPoseUnavailable",
]
