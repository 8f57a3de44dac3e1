"""Exception types raised or surfaced by the atlas bridge.

No condition here is process-fatal. Decode errors are raised directly by
the tracking pipeline, the ``TrackingFailure`` family is surfaced through
``TrackingResult.raise_for_outcome()``, and ``UnknownKeyframeId`` is reported
as a partial-result warning by snapshot queries.
"""

from __future__ import annotations


class AtlasBridgeError(Exception):
    """Base class for all atlas bridge errors."""


class ConfigError(AtlasBridgeError, ValueError):
    """Invalid bridge configuration."""


class SensorDecodeError(AtlasBridgeError):
    """An image or depth frame could not be decoded.

    The frame is dropped and the pipeline stays in its current state.
    """


class TrackingFailure(AtlasBridgeError):
    """A frame was processed but produced no world pose."""


class NotSynchronizedYet(TrackingFailure):
    """No inertial data is buffered yet for an inertial-mode frame."""


class EngineNotReady(TrackingFailure):
    """The engine has not received any usable image yet."""


class EngineNotInitialized(TrackingFailure):
    """The engine has images but has not initialized a map."""


class TrackingLost(TrackingFailure):
    """The engine lost track of the camera."""


class MergeInProgress(TrackingFailure):
    """A map merge is running; retry with the next frame."""


class InconsistentReferenceFrame(TrackingFailure):
    """A map's parent keyframe could not be found while resolving reference poses."""

    def __init__(self, map_id: int, parent_keyframe_id: int | None = None) -> None:
        if parent_keyframe_id is None:
            message = f"Map {map_id} has no resolved reference pose"
        else:
            message = f"Map {map_id}: parent keyframe {parent_keyframe_id} not found in atlas"
        super().__init__(message)
        self.map_id = map_id
        self.parent_keyframe_id = parent_keyframe_id


class UnknownKeyframeId(AtlasBridgeError, KeyError):
    """A keyframe id is not present in the historical keyframe index."""

    def __init__(self, keyframe_id: int) -> None:
        super().__init__(keyframe_id)
        self.keyframe_id = keyframe_id

    def __str__(self) -> str:
        return f"Requested keyframe id {self.keyframe_id} not available"


class TrackedPoseUnavailable(AtlasBridgeError):
    """No frame has been tracked successfully yet."""
