"""
Shared test fixtures for the joint_pubsub test suite.

Provides a small arm registry and in-memory stand-ins for the ZeroMQ
publisher/subscriber so loop logic can be tested without sockets.
"""

import logging
from collections import deque

import pytest

from joint_pubsub.registry.joint_registry import JointRegistry, JointSpec
from joint_pubsub.shared.bus.codec import encode


class FakeSubscriber:
    """Queue-backed stand-in for JointStateSubscriber.

    Queue entries are frames (str/bytes), None (timeout), or exceptions to
    raise from ``receive``.
    """

    def __init__(self):
        self.frames = deque()
        self.timeouts = []
        self.on_receive = None

    def push(self, *items):
        self.frames.extend(items)

    def receive(self, timeout_ms=10):
        self.timeouts.append(timeout_ms)
        if self.on_receive is not None:
            self.on_receive()
        if not self.frames:
            return None
        item = self.frames.popleft()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        pass


class FakePublisher:
    """Records what the publisher loop sends; fails on send number ``fail_on``."""

    def __init__(self):
        self.sent = []
        self.fail_on = None
        self.error = None

    def send_state(self, topic, state):
        if self.fail_on is not None and len(self.sent) + 1 == self.fail_on:
            raise self.error
        self.sent.append((topic, state))
        return encode(topic, state)

    def close(self):
        pass


class FakeClock:
    """Manually advanced monotonic clock with a matching sleep."""

    def __init__(self, start=0.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingSink:
    """JointSink that records every applied joint."""

    def __init__(self):
        self.applied = []

    def apply_joint(self, name, angle, velocity):
        self.applied.append((name, angle, velocity))


ARM_BOUNDS = {
    "shoulder_pan": (-3.14, 3.14),
    "shoulder_lift": (-1.57, 1.57),
    "elbow": (-1.57, 1.57),
    "wrist_1": (-1.0, 1.0),
}


@pytest.fixture
def registry():
    return JointRegistry.from_bounds(ARM_BOUNDS)


@pytest.fixture
def unit_registry():
    """Single joint ``j`` bounded to [-1, 1]."""
    return JointRegistry([JointSpec("j", -1.0, 1.0)])


@pytest.fixture
def fake_subscriber():
    return FakeSubscriber()


@pytest.fixture
def fake_publisher():
    return FakePublisher()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def restore_root_logger():
    """Undo setup_logging's root logger reconfiguration after the test."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
