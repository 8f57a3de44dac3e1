"""Reference-frame resolution across the engine's forest of maps.

Every map in the atlas has its own local frame. The first map (the one
whose ``init_keyframe_id`` is 0) is anchored to the world through the
configured world-origin offset. Any later map was spawned while the
previous map's newest keyframe had id ``init_keyframe_id - 1``, so its local
frame is placed in the world by chaining through that keyframe:

    T_world_child = T_world_parent ∘ T_parent_keyframe

Sorting maps by ``init_keyframe_id`` puts every parent before its children,
so a single forward pass resolves the whole forest.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence

from .conversions import as_se3
from .engine import KeyFrame, Map
from .errors import InconsistentReferenceFrame, UnknownKeyframeId
from .geometry import SE3

logger = logging.getLogger(__name__)


class KeyframeIndex:
    """Keyframe lookup across all maps of the atlas.

    Keeps three views in sync: keyframe id -> keyframe, keyframe id ->
    owning map id, and map id -> keyframe ids. ``update`` upserts the
    keyframes of the given maps and re-points ownership after merges;
    keyframes that later disappear from the atlas are kept, which makes the
    index a history of every keyframe seen. Iteration follows first-insertion
    order.
    """

    def __init__(self) -> None:
        self._keyframes: dict[int, KeyFrame] = {}
        self._owner: dict[int, int] = {}
        self._by_map: dict[int, dict[int, None]] = {}

    @classmethod
    def from_maps(cls, maps: Iterable[Map]) -> KeyframeIndex:
        index = cls()
        index.update(maps)
        return index

    def update(self, maps: Iterable[Map]) -> None:
        """Insert or refresh every keyframe of ``maps``."""
        for atlas_map in maps:
            for kf in atlas_map.get_all_keyframes():
                self._insert(kf, atlas_map.id)

    def _insert(self, kf: KeyFrame, map_id: int) -> None:
        previous_owner = self._owner.get(kf.id)
        if previous_owner is not None and previous_owner != map_id:
            self._by_map[previous_owner].pop(kf.id, None)
        self._keyframes[kf.id] = kf
        self._owner[kf.id] = map_id
        self._by_map.setdefault(map_id, {})[kf.id] = None

    def get(self, keyframe_id: int) -> KeyFrame:
        """Return the keyframe with ``keyframe_id``.

        Raises:
            UnknownKeyframeId: If the id was never indexed
        """
        try:
            return self._keyframes[keyframe_id]
        except KeyError:
            raise UnknownKeyframeId(keyframe_id) from None

    def owner_of(self, keyframe_id: int) -> int:
        """Return the id of the map that owned the keyframe at the last update."""
        try:
            return self._owner[keyframe_id]
        except KeyError:
            raise UnknownKeyframeId(keyframe_id) from None

    def keyframe_ids_in_map(self, map_id: int) -> list[int]:
        return list(self._by_map.get(map_id, ()))

    def ids(self) -> list[int]:
        return list(self._keyframes)

    def clear(self) -> None:
        self._keyframes.clear()
        self._owner.clear()
        self._by_map.clear()

    def __contains__(self, keyframe_id: object) -> bool:
        return keyframe_id in self._keyframes

    def __iter__(self) -> Iterator[KeyFrame]:
        return iter(list(self._keyframes.values()))

    def __len__(self) -> int:
        return len(self._keyframes)


class ReferenceFrameResolver:
    """Computes one map-local -> world reference pose per map.

    Args:
        world_origin: Pose of the first map's origin in the world frame
            (robot start position). Defaults to identity.
    """

    def __init__(self, world_origin: SE3 | None = None) -> None:
        self._world_origin = world_origin if world_origin is not None else SE3.identity()

    @property
    def world_origin(self) -> SE3:
        return self._world_origin

    def resolve_all(self, maps: Sequence[Map]) -> dict[int, SE3]:
        """Resolve reference poses for every map of the forest.

        Maps whose parent keyframe cannot be found are left out of the
        result; they are picked up again by the next call.

        Args:
            maps: All maps currently held by the atlas

        Returns:
            Mapping from map id to its reference pose
        """
        ordered = sorted(maps, key=lambda m: m.get_init_keyframe_id())
        index = KeyframeIndex.from_maps(ordered)

        references: dict[int, SE3] = {}
        for atlas_map in ordered:
            if atlas_map.get_init_keyframe_id() == 0:
                origin_pose = as_se3(atlas_map.get_origin_keyframe().get_pose())
                references[atlas_map.id] = self._world_origin.compose(origin_pose)
                continue

            try:
                references[atlas_map.id] = self._resolve_child(
                    atlas_map, index, references
                )
            except InconsistentReferenceFrame as exc:
                logger.warning("%s; leaving map unresolved until next recompute", exc)

        return references

    @staticmethod
    def _resolve_child(
        atlas_map: Map, index: KeyframeIndex, references: dict[int, SE3]
    ) -> SE3:
        parent_kf_id = atlas_map.get_init_keyframe_id() - 1
        if parent_kf_id not in index:
            raise InconsistentReferenceFrame(atlas_map.id, parent_kf_id)

        parent_kf = index.get(parent_kf_id)
        parent_reference = references.get(parent_kf.get_map().id)
        if parent_reference is None:
            raise InconsistentReferenceFrame(atlas_map.id, parent_kf_id)

        return parent_reference.compose(as_se3(parent_kf.get_pose()))
