"""Text frame codec for joint telemetry.

A frame is the topic, one space, then the JSON form of a RobotState::

    robot_joints {"timestamp":1,"robot_id":"r1","joints":[...]}

There is no length prefix and no compression. Decoding is strict about
types (a string where a number belongs fails) but tolerant of unknown keys
and of missing optional keys (``velocity``, ``torque``, ``joints``).
"""

from __future__ import annotations

from pydantic import ValidationError

from joint_pubsub.shared.bus.errors import DecodeError
from joint_pubsub.shared.messages.joint_state import RobotState

__all__ = ["encode", "decode", "validate_topic"]

SEPARATOR = " "


def validate_topic(topic: str) -> str:
    """Return ``topic`` if it is a usable frame topic, else raise ValueError."""
    if not topic:
        raise ValueError("topic must not be empty")
    if any(ch.isspace() for ch in topic):
        raise ValueError(f"topic {topic!r} must not contain whitespace")
    return topic


def encode(topic: str, state: RobotState) -> str:
    """Encode ``state`` as a ``"{topic} {json}"`` frame."""
    validate_topic(topic)
    return f"{topic}{SEPARATOR}{state.model_dump_json(by_alias=True)}"


def decode(frame: str | bytes) -> tuple[str, RobotState]:
    """Split a frame into its topic and decoded RobotState.

    Raises:
        DecodeError: the frame is not UTF-8, has no separator, has an empty
            topic, or its payload does not validate as a RobotState.
    """
    if isinstance(frame, bytes):
        try:
            frame = frame.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"frame is not valid UTF-8: {e}") from e

    topic, sep, payload = frame.partition(SEPARATOR)
    if not sep:
        raise DecodeError("frame has no topic separator")
    if not topic:
        raise DecodeError("frame has an empty topic")

    try:
        state = RobotState.model_validate_json(payload, strict=True)
    except ValidationError as e:
        raise DecodeError(f"invalid payload for topic {topic!r}: {e.error_count()} error(s): {e}") from e
    return topic, state
