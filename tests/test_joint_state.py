"""Tests for the JointReading / RobotState message models."""

import pytest
from pydantic import ValidationError

from joint_pubsub.shared.messages.joint_state import TIMESTAMP_MAX, JointReading, RobotState


def _reading(name="elbow", timestamp=1, **kw):
    return JointReading(timestamp=timestamp, name=name, angle=kw.pop("angle", 0.0), **kw)


class TestJointReading:
    def test_optional_fields_default_to_zero(self):
        r = JointReading(timestamp=3, name="elbow", angle=0.25)
        assert r.velocity == 0.0
        assert r.torque == 0.0

    def test_accepts_wire_keys(self):
        r = JointReading.model_validate(
            {"timestamp": 1, "joint_name": "wrist_1", "angle_rad": -0.5, "velocity": 0.1, "torque": 2.0}
        )
        assert r.name == "wrist_1"
        assert r.angle == -0.5

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            JointReading(timestamp=1, name="", angle=0.0)

    def test_angle_is_unbounded(self):
        r = _reading(angle=1000.0)
        assert r.angle == 1000.0

    def test_non_finite_rejected(self):
        with pytest.raises(ValidationError):
            _reading(angle=float("nan"))
        with pytest.raises(ValidationError):
            _reading(velocity=float("inf"))

    def test_negative_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            _reading(timestamp=-1)

    def test_frozen(self):
        r = _reading()
        with pytest.raises(ValidationError):
            r.angle = 1.0

    def test_serializes_with_wire_keys(self):
        data = _reading(angle=0.5).model_dump(by_alias=True)
        assert set(data) == {"timestamp", "joint_name", "angle_rad", "velocity", "torque"}


class TestRobotState:
    def test_empty_snapshot_allowed(self):
        s = RobotState(timestamp=0, source_id="r1")
        assert s.joints == []

    def test_source_id_and_robot_id_both_accepted(self):
        a = RobotState.model_validate({"timestamp": 1, "robot_id": "arm"})
        b = RobotState.model_validate({"timestamp": 1, "source_id": "arm"})
        assert a == b
        assert a.model_dump(by_alias=True)["robot_id"] == "arm"

    def test_duplicate_joint_names_rejected(self):
        with pytest.raises(ValidationError, match="duplicate"):
            RobotState(timestamp=1, source_id="r1", joints=[_reading("elbow"), _reading("elbow")])

    def test_joint_newer_than_snapshot_rejected(self):
        with pytest.raises(ValidationError, match="newer"):
            RobotState(timestamp=1, source_id="r1", joints=[_reading(timestamp=2)])

    def test_joint_older_than_snapshot_allowed(self):
        s = RobotState(timestamp=5, source_id="r1", joints=[_reading(timestamp=4)])
        assert s.joints[0].timestamp == 4

    def test_max_timestamp(self):
        s = RobotState(timestamp=TIMESTAMP_MAX, source_id="r1")
        assert s.timestamp == 2**64 - 1
        with pytest.raises(ValidationError):
            RobotState(timestamp=TIMESTAMP_MAX + 1, source_id="r1")

    def test_joint_lookup(self):
        s = RobotState(timestamp=1, source_id="r1", joints=[_reading("elbow", angle=0.3), _reading("wrist_1")])
        assert s.joint("elbow").angle == 0.3
        assert s.joint("missing") is None
