"""
Subscriber Loop — non-blocking receive and best-effort apply.

Each host loop iteration makes one bounded-timeout receive attempt:

    IDLE → POLLING → (NO_DATA | RECEIVED) → IDLE

A received frame goes through decode → exact topic check → staleness check
→ apply. Only snapshots with a timestamp strictly greater than the last
accepted one are applied; that is the link's whole ordering guarantee, so
loss is tolerated (skips ahead) but reordering and duplication are not.

Applying a snapshot looks each reading up in the joint registry by exact
name, clamps and writes all known joints in one locked batch, then hands the
stored angle and the reported velocity to the sink (the simulation).
Readings for unknown joints are skipped silently.

Nothing here interrupts the host loop: transport receive errors are treated
as no data, malformed frames are logged and dropped.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, Protocol

from joint_pubsub.registry.joint_registry import JointRegistry
from joint_pubsub.shared.bus.codec import decode, validate_topic
from joint_pubsub.shared.bus.errors import DecodeError, StaleDataError, TransportError
from joint_pubsub.shared.bus.subscriber import JointStateSubscriber
from joint_pubsub.shared.bus.topics import Topics
from joint_pubsub.shared.messages.joint_state import RobotState

logger = logging.getLogger(__name__)

__all__ = ["JointSink", "SubscriberState", "PollOutcome", "SubscriberLoop"]


class JointSink(Protocol):
    """Downstream consumer of applied joint values (e.g. the simulation)."""

    def apply_joint(self, name: str, angle: float, velocity: float) -> None:
        ...


class SubscriberState(Enum):
    IDLE = "idle"
    POLLING = "polling"
    NO_DATA = "no_data"
    RECEIVED = "received"


class PollOutcome(Enum):
    """What happened to one receive attempt."""

    NO_DATA = "no_data"
    DECODE_ERROR = "decode_error"
    TOPIC_MISMATCH = "topic_mismatch"
    STALE = "stale"
    APPLIED = "applied"


class SubscriberLoop:
    """Polls a subscriber and applies accepted snapshots to a registry."""

    def __init__(
        self,
        subscriber: JointStateSubscriber,
        registry: JointRegistry,
        topic: str = Topics.ROBOT_JOINTS,
        sink: Optional[JointSink] = None,
        timeout_ms: int = 10,
    ):
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
        self._subscriber = subscriber
        self._registry = registry
        self.topic = validate_topic(topic)
        self._sink = sink
        self.timeout_ms = timeout_ms

        self._state = SubscriberState.IDLE
        self._last_accepted: Optional[int] = None
        self._last_snapshot: Optional[RobotState] = None

        self._counts = {outcome: 0 for outcome in PollOutcome}
        self._transport_errors = 0
        self._joints_applied = 0
        self._joints_unknown = 0

    # -- properties -------------------------------------------------------

    @property
    def state(self) -> SubscriberState:
        return self._state

    @property
    def last_accepted_timestamp(self) -> Optional[int]:
        return self._last_accepted

    @property
    def last_snapshot(self) -> Optional[RobotState]:
        """Most recently accepted snapshot; earlier ones are not retained."""
        return self._last_snapshot

    @property
    def stats(self) -> dict:
        return {
            "state": self._state.value,
            "last_accepted_timestamp": self._last_accepted,
            "polls": sum(self._counts.values()),
            "no_data": self._counts[PollOutcome.NO_DATA],
            "applied": self._counts[PollOutcome.APPLIED],
            "stale": self._counts[PollOutcome.STALE],
            "decode_errors": self._counts[PollOutcome.DECODE_ERROR],
            "topic_mismatches": self._counts[PollOutcome.TOPIC_MISMATCH],
            "transport_errors": self._transport_errors,
            "joints_applied": self._joints_applied,
            "joints_unknown": self._joints_unknown,
        }

    # -- main loop --------------------------------------------------------

    def poll_once(self) -> PollOutcome:
        """Make one bounded receive attempt and process what arrived."""
        self._state = SubscriberState.POLLING
        try:
            frame = self._subscriber.receive(self.timeout_ms)
        except TransportError as e:
            self._transport_errors += 1
            logger.warning("Receive failed, treating as no data: %s", e)
            frame = None

        if frame is None:
            self._state = SubscriberState.NO_DATA
            outcome = PollOutcome.NO_DATA
            self._counts[outcome] += 1
        else:
            self._state = SubscriberState.RECEIVED
            outcome = self.handle_frame(frame)

        self._state = SubscriberState.IDLE
        return outcome

    def run(self, should_continue: Callable[[], bool], step: Optional[Callable[[], None]] = None) -> int:
        """Poll until ``should_continue()`` returns False.

        ``step`` runs once per iteration after the poll (simulation step,
        viewer sync). Returns the number of iterations.
        """
        iterations = 0
        while should_continue():
            self.poll_once()
            if step is not None:
                step()
            iterations += 1
        logger.info("Subscriber loop stopped after %d iterations: %s", iterations, self.stats)
        return iterations

    # -- frame pipeline ---------------------------------------------------

    def handle_frame(self, frame: str | bytes) -> PollOutcome:
        """Decode, filter, and apply one raw frame."""
        outcome = self._process(frame)
        self._counts[outcome] += 1
        return outcome

    def _process(self, frame: str | bytes) -> PollOutcome:
        try:
            topic, state = decode(frame)
        except DecodeError as e:
            logger.warning("Discarding malformed frame: %s", e)
            return PollOutcome.DECODE_ERROR

        if topic != self.topic:
            return PollOutcome.TOPIC_MISMATCH

        try:
            self._check_fresh(state)
        except StaleDataError as e:
            logger.debug("Discarding stale snapshot: %s", e)
            return PollOutcome.STALE

        self._last_accepted = state.timestamp
        self._last_snapshot = state
        self._apply(state)
        return PollOutcome.APPLIED

    def _check_fresh(self, state: RobotState) -> None:
        if self._last_accepted is not None and state.timestamp <= self._last_accepted:
            raise StaleDataError(state.timestamp, self._last_accepted)

    def _apply(self, state: RobotState) -> None:
        updates: list[tuple[int, float]] = []
        matched = []
        for reading in state.joints:
            idx = self._registry.index_of(reading.name)
            if idx is None:
                self._joints_unknown += 1
                logger.debug("Snapshot %d: skipping unknown joint %r", state.timestamp, reading.name)
                continue
            updates.append((idx, reading.angle))
            matched.append(reading)

        stored = self._registry.apply_values(updates)
        self._joints_applied += len(stored)

        if self._sink is not None:
            for reading, angle in zip(matched, stored):
                self._sink.apply_joint(reading.name, angle, reading.velocity)

        logger.debug(
            "Applied snapshot %d from %s: %d/%d joints",
            state.timestamp, state.source_id, len(stored), len(state.joints),
        )
