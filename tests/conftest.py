"""Shared fixtures: an in-memory atlas and engine standing in for the SLAM engine."""

from __future__ import annotations

import numpy as np
import pytest

from atlas_bridge.geometry import SE3


def make_pose(x: float = 0.0, y: float = 0.0, z: float = 0.0, yaw: float = 0.0) -> SE3:
    """Create a pose from a position and a heading about +Z."""
    return SE3.from_yaw(yaw, translation=np.array([x, y, z]))


class FakeMapPoint:
    def __init__(self, position, bad: bool = False) -> None:
        self.position = np.asarray(position, dtype=np.float64)
        self.bad = bad

    def get_world_pos(self) -> np.ndarray:
        return self.position

    def is_bad(self) -> bool:
        return self.bad


class FakeKeyFrame:
    """Keyframe whose pose is returned as a 4x4 matrix, like most bindings."""

    def __init__(self, kf_id: int, pose: SE3, timestamp: float, map_points=None) -> None:
        self.id = kf_id
        self.pose = pose
        self.timestamp = timestamp
        self.map_points = list(map_points or [])
        self.map = None

    def get_pose(self) -> np.ndarray:
        return self.pose.to_matrix()

    def get_timestamp(self) -> float:
        return self.timestamp

    def get_map_points(self) -> list:
        return self.map_points

    def get_map(self):
        return self.map


class FakeMap:
    def __init__(self, map_id: int, init_keyframe_id: int) -> None:
        self.id = map_id
        self.init_keyframe_id = init_keyframe_id
        self.keyframes: list[FakeKeyFrame] = []

    def add(self, kf: FakeKeyFrame) -> FakeKeyFrame:
        kf.map = self
        self.keyframes.append(kf)
        return kf

    def remove(self, kf: FakeKeyFrame) -> None:
        self.keyframes.remove(kf)

    def get_all_keyframes(self) -> list[FakeKeyFrame]:
        return list(self.keyframes)

    def get_init_keyframe_id(self) -> int:
        return self.init_keyframe_id

    def get_origin_keyframe(self) -> FakeKeyFrame:
        return self.keyframes[0]


class FakeAtlas:
    def __init__(self, maps: list[FakeMap], current: FakeMap) -> None:
        self.maps = maps
        self.current = current

    def get_all_maps(self) -> list[FakeMap]:
        return list(self.maps)

    def get_current_map(self) -> FakeMap:
        return self.current

    def get_all_keyframes(self) -> list[FakeKeyFrame]:
        return self.current.get_all_keyframes()


class FakeEngine:
    """Engine that returns a preset pose/state and records every tracking call."""

    def __init__(self, atlas: FakeAtlas) -> None:
        self.atlas = atlas
        self.next_pose = SE3.identity()
        self.state = 2
        self.merging = False
        self.calls: list[tuple[float, list | None]] = []
        self.shut_down = False

    def track_rgbd(self, image, depth, timestamp, inertial_samples=None):
        samples = None if inertial_samples is None else list(inertial_samples)
        self.calls.append((timestamp, samples))
        return self.next_pose.to_matrix()

    def get_tracking_state(self) -> int:
        return self.state

    def merge_detected(self) -> bool:
        return self.merging

    def get_atlas(self) -> FakeAtlas:
        return self.atlas

    def shutdown(self) -> None:
        self.shut_down = True


@pytest.fixture
def root_map() -> FakeMap:
    """First map (init keyframe 0) with keyframes 0..4.

    Keyframe 0 sits at the map origin; keyframe 4 is 2 m along x, turned 90°.
    Keyframe 1 observes one valid and one retired map point.
    """
    m = FakeMap(map_id=0, init_keyframe_id=0)
    m.add(FakeKeyFrame(0, SE3.identity(), 10.0))
    m.add(
        FakeKeyFrame(
            1,
            make_pose(x=0.5),
            10.5,
            map_points=[
                FakeMapPoint([1.0, 0.0, 0.0]),
                FakeMapPoint([9.0, 9.0, 9.0], bad=True),
                None,
            ],
        )
    )
    m.add(FakeKeyFrame(2, make_pose(x=1.0), 11.0))
    m.add(FakeKeyFrame(3, make_pose(x=1.5), 11.5))
    m.add(FakeKeyFrame(4, make_pose(x=2.0, yaw=np.pi / 2), 12.0))
    return m


@pytest.fixture
def child_map() -> FakeMap:
    """Map spawned after tracking loss, right after keyframe 4 of the root map."""
    m = FakeMap(map_id=1, init_keyframe_id=5)
    m.add(
        FakeKeyFrame(
            5,
            SE3.identity(),
            20.0,
            map_points=[FakeMapPoint([0.0, 1.0, 0.0]), FakeMapPoint([0.0, 2.0, 0.0])],
        )
    )
    m.add(FakeKeyFrame(6, make_pose(x=1.0), 20.5, map_points=[FakeMapPoint([1.0, 1.0, 1.0])]))
    return m


@pytest.fixture
def atlas(root_map: FakeMap, child_map: FakeMap) -> FakeAtlas:
    return FakeAtlas([root_map, child_map], current=child_map)


@pytest.fixture
def engine(atlas: FakeAtlas) -> FakeEngine:
    return FakeEngine(atlas)


@pytest.fixture
def image() -> np.ndarray:
    return np.zeros((4, 4), dtype=np.uint8)
