"""World-frame pose-graph and point-cloud snapshots of the atlas.

Each public builder holds the world-state lock for the whole assembly so the
snapshot is taken against a single set of reference poses.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .conversions import Stamp, seconds_to_stamp
from .engine import KeyFrame, SlamEngine
from .errors import UnknownKeyframeId
from .geometry import SE3
from .projection import project_pose, project_points, valid_map_point_positions
from .world_state import WorldState

logger = logging.getLogger(__name__)


class SnapshotScope(Enum):
    """Which keyframes a snapshot covers."""

    ALL_KEYFRAMES = "ALL_KEYFRAMES"  # every keyframe ever indexed
    CURRENT_MAP_ONLY = "CURRENT_MAP_ONLY"  # live keyframes of the current map


@dataclass
class PoseGraph:
    """Keyframe poses in the world frame as parallel sequences."""

    frame_id: str
    poses: list[SE3] = field(default_factory=list)
    timestamps: list[float] = field(default_factory=list)
    ids: list[int] = field(default_factory=list)

    def append(self, pose: SE3, timestamp: float, keyframe_id: int) -> None:
        self.poses.append(pose)
        self.timestamps.append(timestamp)
        self.ids.append(keyframe_id)

    @property
    def stamps(self) -> list[Stamp]:
        return [seconds_to_stamp(t) for t in self.timestamps]

    def positions(self) -> np.ndarray:
        """Return keyframe positions as Nx3 array."""
        if not self.poses:
            return np.empty((0, 3), dtype=np.float64)
        return np.array([p.position for p in self.poses])

    def __len__(self) -> int:
        return len(self.ids)


@dataclass
class KeyframePoints:
    """World-frame map points observed by one keyframe."""

    id: int
    points: np.ndarray  # (N, 3)


@dataclass
class PointCloudResult:
    """Per-keyframe point nodes, plus the requested ids that were unavailable."""

    frame_id: str
    nodes: list[KeyframePoints] = field(default_factory=list)
    missing_ids: list[int] = field(default_factory=list)

    @property
    def points(self) -> np.ndarray:
        """All points of all nodes stacked into one Nx3 array."""
        if not self.nodes:
            return np.empty((0, 3), dtype=np.float64)
        return np.vstack([node.points for node in self.nodes])

    @property
    def complete(self) -> bool:
        return not self.missing_ids


@dataclass
class MapData:
    """Pose graph and optional point nodes taken from one snapshot."""

    graph: PoseGraph
    cloud: PointCloudResult | None = None

    @property
    def frame_id(self) -> str:
        return self.graph.frame_id


class MapSnapshotBuilder:
    """Assembles world-frame snapshots of keyframe poses and map points.

    Args:
        engine: SLAM engine providing the live atlas
        world_state: Shared reference poses and keyframe history
        global_frame: Frame id stamped on every snapshot
    """

    def __init__(
        self, engine: SlamEngine, world_state: WorldState, global_frame: str = "map"
    ) -> None:
        self._engine = engine
        self._world = world_state
        self._global_frame = global_frame

    def build_pose_graph(
        self, scope: SnapshotScope = SnapshotScope.ALL_KEYFRAMES
    ) -> PoseGraph:
        """Project keyframe poses into the world frame.

        Keyframes are not filtered on the engine's bad flag. Order follows
        the historical index (ALL_KEYFRAMES) or the engine (CURRENT_MAP_ONLY).
        """
        with self._world.lock:
            return self._pose_graph(scope)

    def build_point_cloud(
        self,
        keyframe_ids: Iterable[int],
        scope: SnapshotScope = SnapshotScope.ALL_KEYFRAMES,
    ) -> PointCloudResult:
        """Project the valid map points of the requested keyframes.

        Unknown ids are skipped with a warning and reported in
        ``missing_ids``; the rest of the result is still valid.
        """
        with self._world.lock:
            return self._point_cloud(keyframe_ids, scope)

    def build_map_data(
        self,
        scope: SnapshotScope = SnapshotScope.ALL_KEYFRAMES,
        include_map_points: bool = False,
        keyframe_ids: Iterable[int] = (),
    ) -> MapData:
        """Pose graph plus (optionally) point nodes under a single lock hold."""
        with self._world.lock:
            graph = self._pose_graph(scope)
            cloud = self._point_cloud(keyframe_ids, scope) if include_map_points else None
        return MapData(graph=graph, cloud=cloud)

    def build_full_point_cloud(self) -> np.ndarray:
        """All valid map points of the current map's keyframes, in the world frame."""
        with self._world.lock:
            chunks = []
            for kf in self._engine.get_atlas().get_all_keyframes():
                reference = self._reference_of(kf)
                if reference is None:
                    continue
                chunks.append(project_points(reference, valid_map_point_positions(kf)))
        if not chunks:
            return np.empty((0, 3), dtype=np.float64)
        return np.vstack(chunks)

    def _pose_graph(self, scope: SnapshotScope) -> PoseGraph:
        if scope == SnapshotScope.ALL_KEYFRAMES:
            keyframes: Iterable[KeyFrame] = self._world.index
        else:
            keyframes = self._engine.get_atlas().get_all_keyframes()

        graph = PoseGraph(frame_id=self._global_frame)
        for kf in keyframes:
            reference = self._reference_of(kf)
            if reference is None:
                logger.debug("Keyframe %d has no resolved map reference, skipped", kf.id)
                continue
            graph.append(project_pose(reference, kf.get_pose()), kf.get_timestamp(), kf.id)
        return graph

    def _point_cloud(
        self, keyframe_ids: Iterable[int], scope: SnapshotScope
    ) -> PointCloudResult:
        index = self._world.index
        allowed: set[int] | None = None
        if scope == SnapshotScope.CURRENT_MAP_ONLY:
            current_map = self._engine.get_atlas().get_current_map()
            allowed = set(index.keyframe_ids_in_map(current_map.id))

        result = PointCloudResult(frame_id=self._global_frame)
        for kf_id in keyframe_ids:
            try:
                if allowed is not None and kf_id not in allowed:
                    raise UnknownKeyframeId(kf_id)
                kf = index.get(kf_id)
            except UnknownKeyframeId as exc:
                logger.warning("%s", exc)
                result.missing_ids.append(kf_id)
                continue

            reference = self._reference_of(kf)
            if reference is None:
                logger.warning("Keyframe %d has no resolved map reference", kf_id)
                result.missing_ids.append(kf_id)
                continue
            points = project_points(reference, valid_map_point_positions(kf))
            result.nodes.append(KeyframePoints(id=kf_id, points=points))
        return result

    def _reference_of(self, kf: KeyFrame) -> SE3 | None:
        owning_map = kf.get_map()
        if owning_map is not None:
            reference = self._world.reference_for(owning_map.id)
            if reference is not None:
                return reference
        if kf.id not in self._world.index:
            return None
        return self._world.reference_for(self._world.index.owner_of(kf.id))
