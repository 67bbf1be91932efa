"""
Central configuration for the joint telemetry link.

Addresses, topic, and timing for both ends of the link in one place.
Values come from environment variables (a ``.env`` file is loaded first),
with sensible defaults. Command-line flags override them in the services.

    JOINT_PUB_BIND              tcp://*:5555
    JOINT_SUB_CONNECT           tcp://localhost:5555
    JOINT_TOPIC                 robot_joints
    JOINT_PUBLISH_INTERVAL_MS   100
    JOINT_ROBOT_ID              robot_arm_001
    JOINT_RECV_TIMEOUT_MS       10
    JOINT_WARMUP_MS             500
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from joint_pubsub.shared.bus.codec import validate_topic
from joint_pubsub.shared.bus.publisher import DEFAULT_BIND_ADDR
from joint_pubsub.shared.bus.subscriber import DEFAULT_CONNECT_ADDR
from joint_pubsub.shared.bus.topics import Topics


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


@dataclass
class LinkConfig:
    """Configuration shared by the joint publisher and subscriber."""

    # --- Transport ---
    bind_addr: str = DEFAULT_BIND_ADDR
    connect_addr: str = DEFAULT_CONNECT_ADDR
    topic: str = Topics.ROBOT_JOINTS

    # --- Publisher ---
    publish_interval_ms: int = 100
    robot_id: str = "robot_arm_001"
    warmup_ms: int = 500  # give subscribers time to connect

    # --- Subscriber ---
    recv_timeout_ms: int = 10

    def __post_init__(self):
        validate_topic(self.topic)
        if self.publish_interval_ms <= 0:
            raise ValueError(f"publish_interval_ms must be positive, got {self.publish_interval_ms}")
        if self.recv_timeout_ms <= 0:
            raise ValueError(f"recv_timeout_ms must be positive, got {self.recv_timeout_ms}")
        if self.warmup_ms < 0:
            raise ValueError(f"warmup_ms must not be negative, got {self.warmup_ms}")
        if not self.robot_id:
            raise ValueError("robot_id must not be empty")

    @property
    def publish_interval_s(self) -> float:
        return self.publish_interval_ms / 1000.0

    @property
    def warmup_s(self) -> float:
        return self.warmup_ms / 1000.0

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str | Path] = None,
    ) -> "LinkConfig":
        """Build a config from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (no .env loading).
            dotenv_path: Explicit .env file; defaults to searching from the
                working directory. Existing variables are not overridden.
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ
        defaults = cls()
        return cls(
            bind_addr=env.get("JOINT_PUB_BIND", defaults.bind_addr),
            connect_addr=env.get("JOINT_SUB_CONNECT", defaults.connect_addr),
            topic=env.get("JOINT_TOPIC", defaults.topic),
            publish_interval_ms=_env_int(env, "JOINT_PUBLISH_INTERVAL_MS", defaults.publish_interval_ms),
            robot_id=env.get("JOINT_ROBOT_ID", defaults.robot_id),
            warmup_ms=_env_int(env, "JOINT_WARMUP_MS", defaults.warmup_ms),
            recv_timeout_ms=_env_int(env, "JOINT_RECV_TIMEOUT_MS", defaults.recv_timeout_ms),
        )
