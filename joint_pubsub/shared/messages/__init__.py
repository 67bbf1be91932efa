"""Pydantic message schemas for the joint telemetry link."""

from joint_pubsub.shared.messages.joint_state import JointReading, RobotState, TIMESTAMP_MAX
