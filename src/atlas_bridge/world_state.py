"""Shared world-frame state coordinated between tracking and snapshot paths.

Access rules:

- ``lock`` guards the reference-pose table and the historical keyframe
  index. Recomputation and snapshot assembly each run as one whole
  operation under it, so a snapshot never mixes reference poses from two
  recomputes.
- The tracked pose is an immutable ``TrackedPose`` record replaced by a
  single reference assignment. Readers take whatever record is current and
  never wait on the lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from .engine import Atlas
from .geometry import SE3
from .reference_frames import KeyframeIndex, ReferenceFrameResolver


@dataclass(frozen=True)
class TrackedPose:
    """World pose from the latest successful tracking step."""

    pose: SE3
    timestamp: float
    map_id: int


class WorldState:
    """Reference poses, keyframe history and the latest tracked pose."""

    def __init__(self, resolver: ReferenceFrameResolver) -> None:
        self.lock = threading.Lock()
        self._resolver = resolver
        self._references: dict[int, SE3] = {}
        self._index = KeyframeIndex()
        self._tracked: TrackedPose | None = None

    def recompute(self, atlas: Atlas) -> dict[int, SE3]:
        """Re-resolve every map's reference pose and refresh the keyframe history.

        Must be called with ``lock`` held.
        """
        maps = atlas.get_all_maps()
        self._references = self._resolver.resolve_all(maps)
        self._index.update(maps)
        return self._references

    def reference_for(self, map_id: int) -> SE3 | None:
        """Reference pose of ``map_id`` from the last recompute. Needs ``lock``."""
        return self._references.get(map_id)

    @property
    def references(self) -> dict[int, SE3]:
        return dict(self._references)

    @property
    def index(self) -> KeyframeIndex:
        return self._index

    def publish_tracked(self, tracked: TrackedPose) -> None:
        self._tracked = tracked

    @property
    def tracked(self) -> TrackedPose | None:
        return self._tracked

    @property
    def has_tracked(self) -> bool:
        return self._tracked is not None

    def clear(self) -> None:
        with self.lock:
            self._references = {}
            self._index.clear()
        self._tracked = None
