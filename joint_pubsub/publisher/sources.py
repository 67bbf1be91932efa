"""Joint value sources for the publisher loop.

A source turns a publish tick into the list of JointReadings for that
snapshot. Two are provided:

* ``SineTrajectorySource`` — headless simulated motion of a 6-DOF arm.
* ``RegistrySource`` — manual control; publishes whatever the joint
  registry currently holds, with velocities estimated between publishes.
"""

from __future__ import annotations

import math
from typing import Protocol, Sequence

from joint_pubsub.registry.joint_registry import JointRegistry, JointSample
from joint_pubsub.shared.messages.joint_state import JointReading

__all__ = ["DEFAULT_JOINT_NAMES", "SnapshotSource", "SineTrajectorySource", "RegistrySource"]

DEFAULT_JOINT_NAMES = (
    "shoulder_pan",
    "shoulder_lift",
    "elbow",
    "wrist_1",
    "wrist_2",
    "wrist_3",
)


class SnapshotSource(Protocol):
    """Produces the joints of each snapshot.

    A source may also define ``commit()``; the publisher loop calls it only
    after the snapshot built from the latest ``readings`` was sent.
    """

    def readings(self, tick: int, elapsed_s: float) -> list[JointReading]:
        """Joint readings for ``tick``; ``elapsed_s`` is time since the last publish."""
        ...


class SineTrajectorySource:
    """Sinusoidal motion, phase-shifted per joint.

    For joint ``i`` at tick ``t``: ``base = (t * time_scale + i) * 0.5``,
    angle ``amplitude * sin(base)``, velocity ``velocity_scale * cos(base)``,
    torque ``torque_scale * sin(2 * base)``.
    """

    def __init__(
        self,
        joint_names: Sequence[str] = DEFAULT_JOINT_NAMES,
        amplitude: float = 1.5,
        velocity_scale: float = 0.1,
        torque_scale: float = 5.0,
        time_scale: float = 0.01,
    ):
        if not joint_names:
            raise ValueError("joint_names must not be empty")
        if len(set(joint_names)) != len(joint_names):
            raise ValueError("joint_names must be unique")
        self.joint_names = tuple(joint_names)
        self.amplitude = amplitude
        self.velocity_scale = velocity_scale
        self.torque_scale = torque_scale
        self.time_scale = time_scale

    def readings(self, tick: int, elapsed_s: float) -> list[JointReading]:
        out = []
        for i, name in enumerate(self.joint_names):
            base = (tick * self.time_scale + i) * 0.5
            out.append(
                JointReading(
                    timestamp=tick,
                    name=name,
                    angle=math.sin(base) * self.amplitude,
                    velocity=math.cos(base) * self.velocity_scale,
                    torque=math.sin(base * 2.0) * self.torque_scale,
                )
            )
        return out


class RegistrySource:
    """Publishes the current registry values (manual control).

    The velocity baseline only moves on ``commit()``, so a snapshot that
    failed to send does not swallow the motion it carried.
    """

    def __init__(self, registry: JointRegistry):
        self.registry = registry
        self._pending: list[JointSample] = []

    def readings(self, tick: int, elapsed_s: float) -> list[JointReading]:
        self._pending = self.registry.sample(elapsed_s, commit=False)
        return [
            JointReading(
                timestamp=tick,
                name=sample.name,
                angle=sample.value,
                velocity=sample.velocity,
                torque=0.0,
            )
            for sample in self._pending
        ]

    def commit(self) -> None:
        self.registry.commit_sample(self._pending)
        self._pending = []
