"""Link configuration."""

from joint_pubsub.shared.config.link_config import LinkConfig
