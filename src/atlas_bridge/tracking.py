"""Frame-synchronized tracking: inertial buffering, engine calls and merge gating.

Per frame the pipeline:
1. Decodes the colour and depth payloads
2. (inertial mode) Drains buffered IMU samples up to the earlier image stamp
3. Runs the engine's tracking step outside any lock
4. Suppresses output while the engine is merging maps
5. On OK tracking, re-resolves all reference poses and publishes the world pose
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum

from .conversions import as_se3
from .engine import SlamEngine, TrackingState
from .errors import (
    EngineNotInitialized,
    EngineNotReady,
    InconsistentReferenceFrame,
    MergeInProgress,
    NotSynchronizedYet,
    SensorDecodeError,
    TrackingLost,
)
from .geometry import SE3
from .imaging import ImageDecoder, OpenCVImageDecoder
from .projection import project_pose
from .sensors import InertialSample, StampedImage
from .world_state import TrackedPose, WorldState

logger = logging.getLogger(__name__)


class TrackOutcome(Enum):
    """Result of processing one frame pair."""

    TRACKED = "TRACKED"
    NOT_SYNCHRONIZED = "NOT_SYNCHRONIZED"
    MERGE_IN_PROGRESS = "MERGE_IN_PROGRESS"
    ENGINE_NOT_READY = "ENGINE_NOT_READY"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    TRACKING_LOST = "TRACKING_LOST"
    INCONSISTENT_REFERENCE = "INCONSISTENT_REFERENCE"


_FAILURE_ERRORS = {
    TrackOutcome.NOT_SYNCHRONIZED: NotSynchronizedYet,
    TrackOutcome.MERGE_IN_PROGRESS: MergeInProgress,
    TrackOutcome.ENGINE_NOT_READY: EngineNotReady,
    TrackOutcome.NOT_INITIALIZED: EngineNotInitialized,
    TrackOutcome.TRACKING_LOST: TrackingLost,
}

_STATE_OUTCOMES = {
    TrackingState.SYSTEM_NOT_READY: (TrackOutcome.ENGINE_NOT_READY, "System not ready."),
    TrackingState.NO_IMAGES_YET: (TrackOutcome.ENGINE_NOT_READY, "No images yet."),
    TrackingState.NOT_INITIALIZED: (TrackOutcome.NOT_INITIALIZED, "Not initialized."),
    TrackingState.LOST: (TrackOutcome.TRACKING_LOST, "Tracking LOST."),
}


@dataclass
class TrackingResult:
    """Output of the tracking pipeline for a single frame pair.

    Attributes:
        outcome: What happened to the frame
        state: Tracking state reported by the engine (None if it was not called)
        world_pose: Camera pose in the world frame (only when TRACKED)
        local_pose: Camera pose in the current map's frame (only when TRACKED)
        num_inertial: Number of IMU samples handed to the engine
        map_id: Current map id (only when TRACKED)
    """

    outcome: TrackOutcome
    state: TrackingState | None = None
    world_pose: SE3 | None = None
    local_pose: SE3 | None = None
    num_inertial: int = 0
    map_id: int | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == TrackOutcome.TRACKED

    def raise_for_outcome(self) -> None:
        """Raise the typed failure matching ``outcome``; no-op when tracked."""
        if self.ok:
            return
        if self.outcome == TrackOutcome.INCONSISTENT_REFERENCE:
            raise InconsistentReferenceFrame(self.map_id if self.map_id is not None else -1)
        raise _FAILURE_ERRORS[self.outcome](self.outcome.value)


class InertialBuffer:
    """Thread-safe FIFO of IMU samples in arrival order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._samples: deque[InertialSample] = deque()

    def push(self, sample: InertialSample) -> None:
        with self._lock:
            self._samples.append(sample)

    def drain_until(self, timestamp: float) -> tuple[list[InertialSample], int]:
        """Pop every leading sample stamped at or before ``timestamp``.

        Returns:
            Tuple of (drained samples in arrival order, samples left behind)
        """
        drained: list[InertialSample] = []
        with self._lock:
            while self._samples and self._samples[0].timestamp <= timestamp:
                drained.append(self._samples.popleft())
            remaining = len(self._samples)
        return drained, remaining

    def snapshot(self) -> list[InertialSample]:
        with self._lock:
            return list(self._samples)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


class TrackingPipeline:
    """Feeds frame pairs (and IMU samples) to the engine and publishes world poses.

    The pipeline's logical state is the last tracking state the engine
    reported, starting at ``NO_IMAGES_YET``. A merge in progress leaves it
    untouched.
    """

    def __init__(
        self,
        engine: SlamEngine,
        world_state: WorldState,
        inertial_buffer: InertialBuffer | None = None,
        decoder: ImageDecoder | None = None,
    ) -> None:
        self._engine = engine
        self._world = world_state
        self._inertial = inertial_buffer if inertial_buffer is not None else InertialBuffer()
        self._decoder = decoder if decoder is not None else OpenCVImageDecoder()
        self._state = TrackingState.NO_IMAGES_YET

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def inertial_buffer(self) -> InertialBuffer:
        return self._inertial

    def handle_inertial(self, sample: InertialSample) -> None:
        self._inertial.push(sample)

    def track_frame(
        self, image: StampedImage, depth: StampedImage, use_inertial: bool = False
    ) -> TrackingResult:
        """Track one colour/depth pair.

        Args:
            image: Colour image and its capture time
            depth: Depth image and its capture time
            use_inertial: Fuse buffered IMU samples with this frame

        Returns:
            TrackingResult describing the outcome

        Raises:
            SensorDecodeError: If either payload cannot be decoded
        """
        try:
            color = self._decoder.decode(image.data)
        except SensorDecodeError:
            logger.error("Failed to decode colour image stamped %.6f", image.timestamp)
            raise
        try:
            depth_map = self._decoder.decode(depth.data)
        except SensorDecodeError:
            logger.error("Failed to decode depth image stamped %.6f", depth.timestamp)
            raise

        samples: list[InertialSample] | None = None
        cutoff = min(image.timestamp, depth.timestamp)
        if not use_inertial:
            stale, _ = self._inertial.drain_until(cutoff)
            if stale:
                logger.debug("Discarded %d IMU samples up to %.6f", len(stale), cutoff)
        else:
            samples, remaining = self._inertial.drain_until(cutoff)
            if remaining == 0:
                logger.debug(
                    "No IMU data beyond %.6f yet, skipping frame (%d samples drained)",
                    cutoff,
                    len(samples),
                )
                return TrackingResult(TrackOutcome.NOT_SYNCHRONIZED)

        raw_pose = self._engine.track_rgbd(color, depth_map, image.timestamp, samples)
        state = TrackingState.from_code(self._engine.get_tracking_state())
        num_inertial = len(samples) if samples is not None else 0

        if self._engine.merge_detected():
            logger.info("Waiting for merge to finish.")
            return TrackingResult(
                TrackOutcome.MERGE_IN_PROGRESS, state=state, num_inertial=num_inertial
            )

        self._state = state
        if state != TrackingState.OK:
            outcome, reason = _STATE_OUTCOMES[state]
            logger.warning("SLAM failed: %s", reason)
            return TrackingResult(outcome, state=state, num_inertial=num_inertial)

        local_pose = as_se3(raw_pose)
        with self._world.lock:
            atlas = self._engine.get_atlas()
            self._world.recompute(atlas)
            map_id = atlas.get_current_map().id
            reference = self._world.reference_for(map_id)

        if reference is None:
            logger.warning("Current map %d has no reference pose yet, pose not published", map_id)
            return TrackingResult(
                TrackOutcome.INCONSISTENT_REFERENCE,
                state=state,
                local_pose=local_pose,
                num_inertial=num_inertial,
                map_id=map_id,
            )

        world_pose = project_pose(reference, local_pose)
        self._world.publish_tracked(TrackedPose(world_pose, image.timestamp, map_id))
        logger.debug("Tracked frame %.6f in map %d: %r", image.timestamp, map_id, world_pose)
        return TrackingResult(
            TrackOutcome.TRACKED,
            state=state,
            world_pose=world_pose,
            local_pose=local_pose,
            num_inertial=num_inertial,
            map_id=map_id,
        )
