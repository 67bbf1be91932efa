"""Bounded joint registry and hand presets."""

from joint_pubsub.registry.joint_registry import (
    JointRegistry,
    JointRegistryEntry,
    JointSample,
    JointSpec,
    RangeFraction,
    joint_name_matches,
)
from joint_pubsub.registry.presets import HandPreset
