"""Tests for SubscriberLoop — staleness, topic filtering, apply, state machine."""

import pytest

from joint_pubsub.shared.bus.codec import encode
from joint_pubsub.shared.bus.errors import TransportError
from joint_pubsub.shared.messages.joint_state import JointReading, RobotState
from joint_pubsub.subscriber.loop import PollOutcome, SubscriberLoop, SubscriberState


def _make_frame(timestamp, joints=None, topic="robot_joints", source_id="robot_arm_001"):
    """Encode a frame from ``{name: angle}`` or ``{name: (angle, velocity)}``."""
    readings = []
    for name, value in (joints or {}).items():
        angle, velocity = value if isinstance(value, tuple) else (value, 0.0)
        readings.append(JointReading(timestamp=timestamp, name=name, angle=angle, velocity=velocity))
    return encode(topic, RobotState(timestamp=timestamp, source_id=source_id, joints=readings))


@pytest.fixture
def loop(fake_subscriber, registry, sink):
    return SubscriberLoop(fake_subscriber, registry, topic="robot_joints", sink=sink, timeout_ms=10)


class TestStaleness:
    def test_only_strictly_newer_snapshots_applied(self, loop, fake_subscriber, registry):
        for ts in (5, 3, 7, 7, 10):
            fake_subscriber.push(_make_frame(ts, {"elbow": ts / 10.0}))
        outcomes = [loop.poll_once() for _ in range(5)]
        assert outcomes == [
            PollOutcome.APPLIED,
            PollOutcome.STALE,
            PollOutcome.APPLIED,
            PollOutcome.STALE,
            PollOutcome.APPLIED,
        ]
        assert loop.last_accepted_timestamp == 10
        assert registry.value("elbow") == pytest.approx(1.0)

    def test_stale_snapshot_does_not_touch_registry(self, loop, fake_subscriber, registry):
        fake_subscriber.push(_make_frame(5, {"elbow": 0.5}), _make_frame(4, {"elbow": -0.5}))
        loop.poll_once()
        loop.poll_once()
        assert registry.value("elbow") == 0.5
        assert loop.last_snapshot.timestamp == 5

    def test_first_snapshot_accepted_even_at_zero(self, loop, fake_subscriber):
        assert loop.last_accepted_timestamp is None
        fake_subscriber.push(_make_frame(0, {"elbow": 0.1}))
        assert loop.poll_once() is PollOutcome.APPLIED
        assert loop.last_accepted_timestamp == 0

    def test_gaps_are_tolerated(self, loop, fake_subscriber):
        fake_subscriber.push(_make_frame(1), _make_frame(50))
        assert [loop.poll_once(), loop.poll_once()] == [PollOutcome.APPLIED, PollOutcome.APPLIED]

    def test_empty_snapshot_advances_timestamp(self, loop, fake_subscriber, sink):
        fake_subscriber.push(_make_frame(3))
        assert loop.poll_once() is PollOutcome.APPLIED
        assert loop.last_accepted_timestamp == 3
        assert sink.applied == []


class TestApply:
    def test_published_value_reaches_registry_and_sink(self, loop, fake_subscriber, registry, sink):
        fake_subscriber.push(_make_frame(1, {"elbow": (0.5, 0.2)}))
        loop.poll_once()
        assert registry.value("elbow") == 0.5
        assert sink.applied == [("elbow", 0.5, 0.2)]

    def test_angles_clamped_before_sink(self, loop, fake_subscriber, registry, sink):
        fake_subscriber.push(_make_frame(1, {"elbow": 3.0, "wrist_1": -9.0}))
        loop.poll_once()
        assert registry.value("elbow") == 1.57
        assert sink.applied == [("elbow", 1.57, 0.0), ("wrist_1", -1.0, 0.0)]

    def test_unknown_joints_skipped(self, loop, fake_subscriber, registry, sink):
        before = registry.snapshot()
        fake_subscriber.push(_make_frame(1, {"gripper": 0.3}))
        assert loop.poll_once() is PollOutcome.APPLIED
        assert registry.snapshot() == before
        assert sink.applied == []
        assert loop.stats["joints_unknown"] == 1

    def test_known_and_unknown_mixed(self, loop, fake_subscriber, sink):
        fake_subscriber.push(_make_frame(1, {"gripper": 0.3, "shoulder_pan": 1.0}))
        loop.poll_once()
        assert sink.applied == [("shoulder_pan", 1.0, 0.0)]
        assert loop.stats["joints_applied"] == 1

    def test_works_without_sink(self, fake_subscriber, registry):
        loop = SubscriberLoop(fake_subscriber, registry)
        fake_subscriber.push(_make_frame(1, {"elbow": 0.25}))
        assert loop.poll_once() is PollOutcome.APPLIED
        assert registry.value("elbow") == 0.25


class TestTopicFiltering:
    @pytest.mark.parametrize("topic", ["other_topic", "robot_joints_left"])
    def test_other_topics_discarded(self, loop, fake_subscriber, registry, topic):
        fake_subscriber.push(_make_frame(1, {"elbow": 0.5}, topic=topic))
        assert loop.poll_once() is PollOutcome.TOPIC_MISMATCH
        assert registry.value("elbow") == 0.0
        assert loop.last_accepted_timestamp is None

    def test_mismatch_does_not_advance_freshness(self, loop, fake_subscriber):
        fake_subscriber.push(
            _make_frame(9, topic="robot_joints_left"),
            _make_frame(2),
        )
        loop.poll_once()
        assert loop.poll_once() is PollOutcome.APPLIED


class TestErrors:
    def test_malformed_frame_discarded(self, loop, fake_subscriber, registry):
        fake_subscriber.push("robot_joints {not json", b"robot_joints \xff")
        assert loop.poll_once() is PollOutcome.DECODE_ERROR
        assert loop.poll_once() is PollOutcome.DECODE_ERROR
        assert loop.stats["decode_errors"] == 2
        assert loop.last_accepted_timestamp is None

    def test_decode_error_then_valid_frame(self, loop, fake_subscriber):
        fake_subscriber.push('robot_joints {"timestamp": "x"}', _make_frame(1, {"elbow": 0.1}))
        loop.poll_once()
        assert loop.poll_once() is PollOutcome.APPLIED

    def test_transport_error_treated_as_no_data(self, loop, fake_subscriber):
        fake_subscriber.push(TransportError("receive", "tcp://localhost:5555", OSError("gone")))
        assert loop.poll_once() is PollOutcome.NO_DATA
        assert loop.stats["transport_errors"] == 1
        assert loop.state is SubscriberState.IDLE

    def test_timeout_is_no_data(self, loop, fake_subscriber):
        assert loop.poll_once() is PollOutcome.NO_DATA
        assert fake_subscriber.timeouts == [10]

    def test_invalid_timeout(self, fake_subscriber, registry):
        with pytest.raises(ValueError):
            SubscriberLoop(fake_subscriber, registry, timeout_ms=0)


class TestStateMachine:
    def test_starts_idle(self, loop):
        assert loop.state is SubscriberState.IDLE

    def test_polling_during_receive_then_idle(self, loop, fake_subscriber):
        seen = []
        fake_subscriber.on_receive = lambda: seen.append(loop.state)
        loop.poll_once()
        assert seen == [SubscriberState.POLLING]
        assert loop.state is SubscriberState.IDLE

    def test_received_state_while_applying(self, fake_subscriber, registry):
        seen = []

        class StateSink:
            def apply_joint(self, name, angle, velocity):
                seen.append(loop.state)

        loop = SubscriberLoop(fake_subscriber, registry, sink=StateSink())
        fake_subscriber.push(_make_frame(1, {"elbow": 0.1}))
        loop.poll_once()
        assert seen == [SubscriberState.RECEIVED]
        assert loop.state is SubscriberState.IDLE


class TestRun:
    def test_runs_until_predicate_false(self, loop, fake_subscriber):
        fake_subscriber.push(_make_frame(1), None, _make_frame(2))
        remaining = iter([True, True, True, True, False])
        steps = []
        iterations = loop.run(lambda: next(remaining), step=lambda: steps.append(loop.state))
        assert iterations == 4
        assert len(steps) == 4
        assert loop.stats["applied"] == 2
        assert loop.stats["no_data"] == 2

    def test_handle_frame_directly(self, loop):
        assert loop.handle_frame(_make_frame(4, {"elbow": 0.2})) is PollOutcome.APPLIED
        assert loop.last_accepted_timestamp == 4


class TestStats:
    def test_counts(self, loop, fake_subscriber):
        fake_subscriber.push(
            _make_frame(2, {"elbow": 0.1}),
            _make_frame(1),
            _make_frame(3, topic="other_topic"),
            "garbage",
            None,
        )
        for _ in range(5):
            loop.poll_once()
        stats = loop.stats
        assert stats["polls"] == 5
        assert stats["applied"] == 1
        assert stats["stale"] == 1
        assert stats["topic_mismatches"] == 1
        assert stats["decode_errors"] == 1
        assert stats["no_data"] == 1
        assert stats["last_accepted_timestamp"] == 2
        assert stats["state"] == "idle"
