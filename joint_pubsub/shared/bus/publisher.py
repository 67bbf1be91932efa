"""ZeroMQ publisher for joint telemetry frames.

Binds a PUB socket and sends one text frame per call. Sends are
fire-and-forget: nothing is acknowledged and nothing is retried.

Usage:
    from joint_pubsub.shared.bus import JointStatePublisher

    pub = JointStatePublisher("tcp://*:5555")
    pub.send_state("robot_joints", state)
    pub.close()
"""

from __future__ import annotations

import logging
from typing import Optional

import zmq

from joint_pubsub.shared.bus.codec import encode
from joint_pubsub.shared.bus.errors import TransportError
from joint_pubsub.shared.messages.joint_state import RobotState

logger = logging.getLogger(__name__)

DEFAULT_BIND_ADDR = "tcp://*:5555"


class JointStatePublisher:
    """Publishes encoded RobotState frames on a bound PUB socket.

    Parameters
    ----------
    bind_addr : str
        ZeroMQ bind address. A ``*`` port (``tcp://127.0.0.1:*``) binds an
        ephemeral port; the resolved address is available as ``endpoint``.
    context : zmq.Context, optional
        Shared context. When omitted the publisher owns a private context
        and terminates it on close.
    """

    def __init__(self, bind_addr: str = DEFAULT_BIND_ADDR, context: Optional[zmq.Context] = None):
        self.bind_addr = bind_addr
        self._owns_context = context is None
        self._ctx = context or zmq.Context()
        self._socket = self._ctx.socket(zmq.PUB)
        self._socket.setsockopt(zmq.LINGER, 0)
        try:
            self._socket.bind(bind_addr)
        except zmq.ZMQError as e:
            self._close_socket()
            raise TransportError("bind", bind_addr, e) from e

        self._endpoint = self._socket.getsockopt_string(zmq.LAST_ENDPOINT)
        self._send_count = 0
        logger.info("JointStatePublisher bound to %s", self._endpoint)

    @property
    def endpoint(self) -> str:
        """The concrete address the socket is bound to."""
        return self._endpoint

    @property
    def send_count(self) -> int:
        return self._send_count

    def send_frame(self, frame: str) -> None:
        """Send one pre-encoded frame."""
        if self._socket is None:
            raise TransportError("send", self.bind_addr, RuntimeError("publisher is closed"))
        try:
            self._socket.send_string(frame)
        except zmq.ZMQError as e:
            raise TransportError("send", self._endpoint, e) from e
        self._send_count += 1

    def send_state(self, topic: str, state: RobotState) -> str:
        """Encode ``state`` under ``topic`` and send it. Returns the frame."""
        frame = encode(topic, state)
        self.send_frame(frame)
        return frame

    def close(self) -> None:
        """Clean up ZMQ resources."""
        self._close_socket()
        logger.info("JointStatePublisher closed after %d frames", self._send_count)

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        if self._owns_context and self._ctx is not None:
            self._ctx.term()
            self._ctx = None

    def __enter__(self) -> "JointStatePublisher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
