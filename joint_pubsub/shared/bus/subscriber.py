"""ZeroMQ subscriber for joint telemetry frames.

Connects a SUB socket to a publisher and subscribes to a topic prefix.
``receive`` waits at most ``timeout_ms`` for one frame and returns None when
nothing arrived, so it can be called once per host loop iteration.

Usage:
    from joint_pubsub.shared.bus import JointStateSubscriber

    sub = JointStateSubscriber("tcp://localhost:5555", "robot_joints")
    frame = sub.receive(timeout_ms=10)   # bytes or None
    sub.close()
"""

from __future__ import annotations

import logging
from typing import Optional

import zmq

from joint_pubsub.shared.bus.codec import validate_topic
from joint_pubsub.shared.bus.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_ADDR = "tcp://localhost:5555"


class JointStateSubscriber:
    """Receives raw frames from a connected SUB socket."""

    def __init__(
        self,
        connect_addr: str = DEFAULT_CONNECT_ADDR,
        topic: str = "robot_joints",
        context: Optional[zmq.Context] = None,
    ):
        self.connect_addr = connect_addr
        self.topic = validate_topic(topic)
        self._owns_context = context is None
        self._ctx = context or zmq.Context()
        self._socket = self._ctx.socket(zmq.SUB)
        self._socket.setsockopt(zmq.LINGER, 0)
        try:
            self._socket.connect(connect_addr)
            # Prefix filter; exact matching happens in the subscriber loop.
            self._socket.setsockopt_string(zmq.SUBSCRIBE, topic)
        except zmq.ZMQError as e:
            self._close_socket()
            raise TransportError("connect", connect_addr, e) from e

        logger.info("JointStateSubscriber connected to %s (topic=%s)", connect_addr, topic)

    def receive(self, timeout_ms: int = 10) -> Optional[bytes]:
        """Wait up to ``timeout_ms`` for one frame.

        Returns:
            The raw frame, or None on timeout / would-block.

        Raises:
            TransportError: on any other socket failure.
        """
        if self._socket is None:
            raise TransportError("receive", self.connect_addr, RuntimeError("subscriber is closed"))
        try:
            if not self._socket.poll(timeout_ms, zmq.POLLIN):
                return None
            return self._socket.recv(zmq.NOBLOCK)
        except zmq.Again:
            return None
        except zmq.ZMQError as e:
            raise TransportError("receive", self.connect_addr, e) from e

    def close(self) -> None:
        """Clean up ZMQ resources."""
        self._close_socket()
        logger.info("JointStateSubscriber closed")

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        if self._owns_context and self._ctx is not None:
            self._ctx.term()
            self._ctx = None

    def __enter__(self) -> "JointStateSubscriber":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
