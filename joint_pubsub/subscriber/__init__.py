"""Joint snapshot subscription and application."""

from joint_pubsub.subscriber.loop import JointSink, PollOutcome, SubscriberLoop, SubscriberState
