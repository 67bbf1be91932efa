"""Pydantic models for joint telemetry messages."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

TIMESTAMP_MAX = 2**64 - 1


class JointReading(BaseModel):
    """One joint's instantaneous state, as published by the producer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    timestamp: int = Field(ge=0, le=TIMESTAMP_MAX, description="Producer tick")
    name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("joint_name", "name"),
        serialization_alias="joint_name",
        description="Joint identifier, stable across the session",
    )
    angle: float = Field(
        validation_alias=AliasChoices("angle_rad", "angle"),
        serialization_alias="angle_rad",
        description="Joint angle in radians (unbounded on the wire)",
    )
    velocity: float = Field(default=0.0, description="Joint velocity in rad/s")
    torque: float = Field(default=0.0, description="Joint torque in Nm, 0.0 when unknown")


class RobotState(BaseModel):
    """A snapshot of zero or more joints at one producer tick."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        allow_inf_nan=False,
        json_schema_extra={
            "example": {
                "timestamp": 1,
                "robot_id": "robot_arm_001",
                "joints": [
                    {
                        "timestamp": 1,
                        "joint_name": "elbow",
                        "angle_rad": 0.5,
                        "velocity": 0.0,
                        "torque": 0.0,
                    }
                ],
            }
        },
    )

    timestamp: int = Field(ge=0, le=TIMESTAMP_MAX, description="Producer tick of this snapshot")
    source_id: str = Field(
        validation_alias=AliasChoices("robot_id", "source_id"),
        serialization_alias="robot_id",
        description="Identifier of the producing robot",
    )
    joints: list[JointReading] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_joints(self) -> "RobotState":
        seen: set[str] = set()
        for joint in self.joints:
            if joint.name in seen:
                raise ValueError(f"duplicate joint name {joint.name!r} in snapshot")
            seen.add(joint.name)
            if joint.timestamp > self.timestamp:
                raise ValueError(
                    f"joint {joint.name!r} timestamp {joint.timestamp} is newer "
                    f"than snapshot timestamp {self.timestamp}"
                )
        return self

    def joint(self, name: str) -> JointReading | None:
        """Return the reading for ``name``, or None if absent."""
        for reading in self.joints:
            if reading.name == name:
                return reading
        return None
