"""Topic name constants for the joint telemetry link.

ZeroMQ subscriptions are prefix matches, so two topics where one is a prefix
of the other (``robot_joints`` / ``robot_joints_left``) reach the same
subscriber. Subscribers therefore re-check the topic for exact equality.
"""


class Topics:
    """Frame topic names."""

    # Joint snapshots (published by the joint publisher at ~10Hz)
    ROBOT_JOINTS = "robot_joints"
