"""MuJoCo simulation adapter."""

from joint_pubsub.simulation.mujoco_engine import (
    DEFAULT_UNLIMITED_RANGE_RAD,
    MuJoCoEngine,
    SimulationConfig,
)
