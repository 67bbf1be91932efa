"""Error types raised by the joint telemetry link."""


class JointLinkError(Exception):
    """Base class for joint link errors."""


class TransportError(JointLinkError):
    """Raised on socket bind/connect/send/receive failure."""

    def __init__(self, operation: str, address: str, cause: Exception | None = None):
        self.operation = operation
        self.address = address
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed on {address}{detail}")


class DecodeError(JointLinkError, ValueError):
    """Raised when a frame cannot be decoded into a RobotState."""


class StaleDataError(JointLinkError):
    """Raised when a snapshot is not newer than the last accepted one."""

    def __init__(self, timestamp: int, last_accepted: int):
        self.timestamp = timestamp
        self.last_accepted = last_accepted
        super().__init__(f"snapshot {timestamp} is not newer than {last_accepted}")
