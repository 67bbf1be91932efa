"""Joint snapshot publishing."""

from joint_pubsub.publisher.loop import PublisherLoop
from joint_pubsub.publisher.sources import (
    DEFAULT_JOINT_NAMES,
    RegistrySource,
    SineTrajectorySource,
    SnapshotSource,
)
