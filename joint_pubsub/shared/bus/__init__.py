"""Message bus client library for the joint telemetry link."""

from joint_pubsub.shared.bus.codec import decode, encode
from joint_pubsub.shared.bus.errors import DecodeError, JointLinkError, StaleDataError, TransportError
from joint_pubsub.shared.bus.publisher import JointStatePublisher
from joint_pubsub.shared.bus.subscriber import JointStateSubscriber
from joint_pubsub.shared.bus.topics import Topics
