"""Tests for engine <-> world type conversions."""

import numpy as np
import pytest

from atlas_bridge.conversions import (
    Stamp,
    as_point,
    as_se3,
    planar_offset,
    pose_from_position_quaternion,
    pose_to_position_quaternion,
    seconds_to_stamp,
    stamp_to_seconds,
    transform_point_with_reference,
)
from atlas_bridge.geometry import SE3


class TestTimestamps:
    """Float seconds <-> (sec, nanosec) stamps."""

    def test_split(self):
        assert seconds_to_stamp(12.5) == Stamp(12, 500_000_000)

    def test_rounding_carries_into_seconds(self):
        assert seconds_to_stamp(2.9999999999) == Stamp(3, 0)

    def test_round_trip(self):
        assert stamp_to_seconds(seconds_to_stamp(1403636579.75)) == pytest.approx(
            1403636579.75
        )


class TestPoseConversions:
    """Engine-native poses and points."""

    def test_as_se3_from_matrix_and_pair(self):
        pose = SE3.from_yaw(0.4, translation=np.array([1.0, 2.0, 3.0]))
        assert as_se3(pose.to_matrix()) == pose
        assert as_se3((pose.rotation, pose.translation)) == pose
        assert as_se3(pose) is pose

    def test_as_se3_from_matrix_method(self):
        class SophusLike:
            def matrix(self):
                return np.eye(4)

        assert as_se3(SophusLike()) == SE3.identity()

    def test_as_point(self):
        np.testing.assert_array_equal(as_point([[1], [2], [3]]), [1.0, 2.0, 3.0])
        with pytest.raises(ValueError, match="3 components"):
            as_point([1.0, 2.0])

    def test_quaternion_round_trip(self):
        """A 90° yaw quaternion matches from_yaw."""
        half = np.sqrt(0.5)
        pose = pose_from_position_quaternion(np.array([1.0, 2.0, 0.0]), (half, 0.0, 0.0, half))
        assert pose.is_close(SE3.from_yaw(np.pi / 2, translation=np.array([1.0, 2.0, 0.0])))

        position, quaternion = pose_to_position_quaternion(pose)
        np.testing.assert_allclose(position, [1.0, 2.0, 0.0])
        np.testing.assert_allclose(np.abs(quaternion), [half, 0.0, 0.0, half], atol=1e-12)

    def test_planar_offset(self):
        offset = planar_offset(3.0, -1.0)
        assert offset.is_close(SE3(rotation=np.eye(3), translation=[3.0, -1.0, 0.0]))

    def test_transform_point_with_reference(self):
        reference = planar_offset(1.0, 0.0, yaw=np.pi / 2)
        np.testing.assert_allclose(
            transform_point_with_reference(reference, [1.0, 0.0, 0.0]),
            [1.0, 1.0, 0.0],
            atol=1e-12,
        )
