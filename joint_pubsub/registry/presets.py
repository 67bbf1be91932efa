"""Hand pose presets for the ProHand joint naming scheme.

Presets are expressed as registry preset mappings keyed by joint name
suffixes, so the same preset drives ``"i1_MCP"``, ``"L/i1_MCP"`` and
``"R/i1_MCP"``. The default hand model names its joints:

    Index   i0_CMC_abd  i1_MCP  i2_PIP  i3_DIP
    Middle  m0_CMC_abd  m1_MCP  m2_PIP  m3_DIP
    Ring    r0_CMC_abd  r1_MCP  r2_PIP  r3_DIP
    Pinky   p0_CMC_abd  p1_MCP  p2_PIP  p3_DIP
    Thumb   t0_TM_abd   t1_TM   t2_CMC  t3_DIP
"""

from __future__ import annotations

from enum import Enum

from joint_pubsub.registry.joint_registry import JointRegistry, PresetTarget, RangeFraction

# Slightly short of the hard stop to avoid clamping artifacts
CURLED_FRACTION = 0.95
NEUTRAL_RAD = 0.0

FINGERS = ("i", "m", "r", "p")
ABDUCTION_JOINTS = ("i0_CMC_abd", "m0_CMC_abd", "r0_CMC_abd", "p0_CMC_abd", "t0_TM_abd")
THUMB_FLEXION_JOINTS = ("t1_TM", "t2_CMC", "t3_DIP")


def _finger_joints(finger: str) -> tuple[str, str, str]:
    return (f"{finger}1_MCP", f"{finger}2_PIP", f"{finger}3_DIP")


class HandPreset(Enum):
    """Named hand poses. Values are the fingers left extended."""

    FIST = ()
    OPEN_HAND = ("i", "m", "r", "p", "t")
    SCISSOR = ("i", "m", "t")
    INDEX_FINGER = ("i", "t")
    MIDDLE_FINGER = ("m", "t")
    RING_FINGER = ("r", "t")
    PINKY_FINGER = ("p", "t")

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()

    @classmethod
    def from_name(cls, name: str) -> "HandPreset":
        """Look up a preset by enum name or label, case-insensitively."""
        key = name.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            choices = ", ".join(p.name.lower() for p in cls)
            raise ValueError(f"unknown hand preset {name!r} (choose from: {choices})") from None

    def targets(self) -> dict[str, PresetTarget]:
        """Registry preset mapping for this pose."""
        extended = set(self.value)
        targets: dict[str, PresetTarget] = {joint: NEUTRAL_RAD for joint in ABDUCTION_JOINTS}
        for finger in FINGERS:
            target = NEUTRAL_RAD if finger in extended else RangeFraction(CURLED_FRACTION)
            for joint in _finger_joints(finger):
                targets[joint] = target
        thumb = NEUTRAL_RAD if "t" in extended else RangeFraction(CURLED_FRACTION)
        for joint in THUMB_FLEXION_JOINTS:
            targets[joint] = thumb
        return targets

    def apply(self, registry: JointRegistry) -> int:
        """Apply this pose to ``registry``; returns the number of joints written."""
        return registry.apply_preset(self.targets())
