"""
Publisher Loop — fixed-cadence RobotState publishing.

On each tick the loop increments its counter (the snapshot timestamp),
gathers joint readings from its source, wraps them in a RobotState and sends
the encoded frame. Nothing is acknowledged. A send failure is logged and
re-raised, which ends the loop; restarting is an operator action.

Two ways to drive it:

* ``run()`` owns the thread and sleeps between publishes (headless).
* ``publish_if_due()`` is called from a host loop (e.g. a UI frame callback),
  with ``publish_now()`` for out-of-cadence publishes such as preset clicks.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from joint_pubsub.publisher.sources import SnapshotSource
from joint_pubsub.shared.bus.codec import validate_topic
from joint_pubsub.shared.bus.errors import TransportError
from joint_pubsub.shared.bus.publisher import JointStatePublisher
from joint_pubsub.shared.bus.topics import Topics
from joint_pubsub.shared.messages.joint_state import RobotState

logger = logging.getLogger(__name__)

__all__ = ["PublisherLoop"]

STATS_INTERVAL_S = 5.0


class PublisherLoop:
    """Builds and sends one RobotState per cadence interval."""

    def __init__(
        self,
        publisher: JointStatePublisher,
        source: SnapshotSource,
        topic: str = Topics.ROBOT_JOINTS,
        robot_id: str = "robot_arm_001",
        interval_s: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._publisher = publisher
        self._source = source
        self.topic = validate_topic(topic)
        self.robot_id = robot_id
        self.interval_s = interval_s
        self._clock = clock
        self._sleep = sleep

        self._seq = 0
        self._last_publish = clock()
        self._last_state: Optional[RobotState] = None

        # Stats
        self._last_stats_time = self._last_publish
        self._stats_count = 0

    @property
    def seq(self) -> int:
        """Timestamp of the most recently published snapshot (0 before any)."""
        return self._seq

    @property
    def last_state(self) -> Optional[RobotState]:
        return self._last_state

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> RobotState:
        """Publish one snapshot unconditionally and restart the cadence timer."""
        now = self._clock() if now is None else now
        seq = self._seq + 1

        state = RobotState(
            timestamp=seq,
            source_id=self.robot_id,
            joints=self._source.readings(seq, now - self._last_publish),
        )
        try:
            self._publisher.send_state(self.topic, state)
        except TransportError as e:
            logger.error("Publish of snapshot %d failed: %s", seq, e)
            raise

        # Loop state only advances once the snapshot is on the wire
        self._seq = seq
        self._last_publish = now
        commit = getattr(self._source, "commit", None)
        if commit is not None:
            commit()
        self._last_state = state
        logger.debug("Published snapshot %d for %s with %d joints", self._seq, self.robot_id, len(state.joints))
        self._log_stats(now)
        return state

    def publish_if_due(self, now: Optional[float] = None) -> Optional[RobotState]:
        """Publish if at least one interval has passed since the last publish."""
        now = self._clock() if now is None else now
        if now - self._last_publish < self.interval_s:
            return None
        return self.tick(now)

    def publish_now(self) -> RobotState:
        """Publish immediately, outside the cadence.

        The cadence timer restarts from this publish, so the next scheduled
        publish is a full interval away rather than firing right after.
        """
        return self.tick()

    def run(self, stop_event: Optional[threading.Event] = None, max_ticks: Optional[int] = None) -> int:
        """Publish at the configured cadence until stopped.

        Args:
            stop_event: Set to end the loop between publishes.
            max_ticks: Stop after this many publishes (None = forever).

        Returns:
            Number of snapshots published by this call.

        Raises:
            TransportError: a send failed; the loop is terminated.
        """
        published = 0
        logger.info(
            "Publishing %s on topic %s every %.0f ms",
            self.robot_id, self.topic, self.interval_s * 1000.0,
        )
        next_deadline = self._clock()
        while max_ticks is None or published < max_ticks:
            if stop_event is not None and stop_event.is_set():
                break
            self.tick()
            published += 1
            if max_ticks is not None and published >= max_ticks:
                break

            next_deadline += self.interval_s
            now = self._clock()
            if next_deadline < now:
                # Fell behind; resume cadence from now instead of bursting
                next_deadline = now
            delay = next_deadline - now
            if stop_event is not None:
                if stop_event.wait(delay):
                    break
            else:
                self._sleep(delay)
        return published

    def _log_stats(self, now: float) -> None:
        self._stats_count += 1
        elapsed = now - self._last_stats_time
        if elapsed >= STATS_INTERVAL_S:
            logger.info(
                "Publisher: %.1f Hz, %d snapshots total",
                self._stats_count / elapsed,
                self._seq,
            )
            self._last_stats_time = now
            self._stats_count = 0
