"""Joint telemetry publish/subscribe link.

A publisher emits periodic RobotState snapshots over ZeroMQ; a subscriber
polls them without blocking its host loop, drops stale or malformed frames,
and applies the known joints onto a bounded joint registry.
"""

__version__ = "0.1.0"
