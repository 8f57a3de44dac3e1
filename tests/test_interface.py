"""End-to-end tests for AtlasInterface."""

import threading

import numpy as np
import pytest

from atlas_bridge import (
    AtlasInterface,
    BridgeConfig,
    InertialSample,
    OdometrySample,
    SnapshotScope,
    StampedImage,
    TrackedPoseUnavailable,
    TrackingState,
    TrackOutcome,
)

from conftest import make_pose


def imu(t: float) -> InertialSample:
    return InertialSample(timestamp=t, accelerometer=[0.0, 0.0, 9.81], gyroscope=[0.0, 0.0, 0.0])


def frame_pair(t: float):
    color = np.zeros((4, 4, 3), dtype=np.uint8)
    depth = np.ones((4, 4), dtype=np.uint16)
    return StampedImage(color, t), StampedImage(depth, t)


@pytest.fixture
def bridge(engine) -> AtlasInterface:
    return AtlasInterface(engine, BridgeConfig(robot_x=2.0, sensor="imu_rgbd"))


class TestAtlasInterface:
    """Test suite for AtlasInterface."""

    def test_tracked_pose_unavailable_before_tracking(self, bridge):
        assert not bridge.has_tracked
        assert bridge.tracking_state == TrackingState.NO_IMAGES_YET
        with pytest.raises(TrackedPoseUnavailable):
            bridge.get_tracked_pose()
        assert bridge.get_map_to_odom(OdometrySample(0.0, make_pose())) is None

    def test_inertial_tracking_flow(self, bridge, engine):
        """IMU samples, a tracked frame, then every query path."""
        engine.next_pose = make_pose(x=1.0)
        for t in (0.9, 1.0, 1.1):
            bridge.handle_imu(imu(t))

        result = bridge.track(*frame_pair(1.0))

        assert result.outcome == TrackOutcome.TRACKED
        assert [s.timestamp for s in engine.calls[0][1]] == [0.9, 1.0]
        # robot_x and keyframe 4 put the child map's origin at x=4 facing +y.
        np.testing.assert_allclose(bridge.get_tracked_pose().pose.position, [4.0, 1.0, 0.0], atol=1e-12)

        graph = bridge.get_pose_graph(SnapshotScope.ALL_KEYFRAMES)
        assert graph.ids == [0, 1, 2, 3, 4, 5, 6]
        assert graph.frame_id == "map"

        cloud = bridge.get_point_cloud([1, 77])
        assert cloud.missing_ids == [77]
        assert cloud.points.shape == (1, 3)

        tf = bridge.get_map_to_odom(OdometrySample(1.0, make_pose(x=1.0)))
        assert tf.child_frame_id == "odom"
        assert tf.transform.compose(make_pose(x=1.0)).is_close(bridge.get_tracked_pose().pose)

    def test_rgbd_mode_sets_has_tracked(self, engine):
        bridge = AtlasInterface(engine, BridgeConfig(sensor="rgbd"))

        result = bridge.track(*frame_pair(1.0))

        assert result.ok
        assert bridge.has_tracked
        assert engine.calls == [(1.0, None)]

    def test_explicit_modes(self, bridge, engine):
        assert bridge.track_rgbd_inertial(*frame_pair(1.0)).outcome == TrackOutcome.NOT_SYNCHRONIZED
        assert bridge.track_rgbd(*frame_pair(1.0)).ok

    def test_map_data_and_full_cloud(self, bridge):
        bridge.track_rgbd(*frame_pair(1.0))

        data = bridge.get_map_data(current_map_only=True, include_map_points=True, keyframe_ids=[5])
        assert data.graph.ids == [5, 6]
        assert [node.id for node in data.cloud.nodes] == [5]
        assert bridge.get_full_point_cloud().shape == (3, 3)

    def test_shutdown(self, engine):
        with AtlasInterface(engine) as bridge:
            bridge.handle_imu(imu(1.0))
            bridge.track_rgbd(*frame_pair(1.0))
            assert bridge.has_tracked

        assert engine.shut_down
        assert not bridge.has_tracked
        assert len(bridge.get_pose_graph()) == 0

    def test_concurrent_producers_and_queries(self, bridge, engine):
        """IMU feed, frame feed and snapshot readers can run together."""
        errors: list[Exception] = []
        stop = threading.Event()

        def imu_feed():
            try:
                for i in range(2000):
                    bridge.handle_imu(imu(i * 0.005))
            except Exception as exc:
                errors.append(exc)

        def reader():
            try:
                while not stop.is_set():
                    graph = bridge.get_pose_graph()
                    assert len(graph.poses) == len(graph.ids) == len(graph.timestamps)
                    bridge.get_point_cloud([1, 5])
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=imu_feed), threading.Thread(target=reader)]
        for thread in threads:
            thread.start()
        for i in range(50):
            bridge.track(*frame_pair(i * 0.1))
        threads[0].join(timeout=10)
        stop.set()
        threads[1].join(timeout=10)

        assert errors == []
        drained = [s.timestamp for _, samples in engine.calls for s in samples]
        assert drained == sorted(drained)
        assert len(drained) == len(set(drained))
