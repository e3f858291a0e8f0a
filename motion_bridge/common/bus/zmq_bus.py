"""
Bridge state channel over ZMQ.

The bridge node publishes one BridgeStatus per lifecycle change or accepted
transition on a single topic. The display front end subscribes to it.

Wire format: two frames, the topic and a UTF-8 JSON object holding the
BridgeStatus fields.
"""

import json
import logging
from dataclasses import asdict, fields
from typing import Optional

import zmq

from ..types import BridgeStatus

logger = logging.getLogger(__name__)

_STATUS_FIELDS = {f.name for f in fields(BridgeStatus)}
_REQUIRED_FIELDS = ("name", "state", "output_state")


class BusPorts:
    """Port and topic of the bridge state channel."""

    MOTION_BRIDGE = 5560    # Publishes: bridge_state

    TOPIC_BRIDGE_STATE = "bridge_state"

    @staticmethod
    def pub_endpoint(port: int) -> str:
        return f"tcp://*:{port}"

    @staticmethod
    def sub_endpoint(port: int, host: str = "localhost") -> str:
        return f"tcp://{host}:{port}"


def encode_status(status: BridgeStatus) -> bytes:
    """Encode a status snapshot as the JSON payload frame."""
    return json.dumps(asdict(status)).encode("utf-8")


def decode_status(payload: bytes) -> BridgeStatus:
    """
    Decode a JSON payload frame into a BridgeStatus.

    Unknown keys are ignored so newer publishers stay readable.

    Raises:
        ValueError: Payload is not a JSON object or lacks a required field
    """
    data = json.loads(payload.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Status payload must be a JSON object, got {type(data).__name__}")

    missing = [name for name in _REQUIRED_FIELDS if name not in data]
    if missing:
        raise ValueError(f"Status payload missing fields: {', '.join(missing)}")

    return BridgeStatus(**{k: v for k, v in data.items() if k in _STATUS_FIELDS})


class StatePublisher:
    """
    Publishes bridge status snapshots.

    Usage:
        pub = StatePublisher(BusPorts.MOTION_BRIDGE)
        pub.publish(bridge.status())
    """

    def __init__(self, port: int = BusPorts.MOTION_BRIDGE, hwm: int = 10):
        """
        Initialize publisher.

        Args:
            port: TCP port to bind on all interfaces
            hwm: High water mark (message queue limit)
        """
        self._endpoint = BusPorts.pub_endpoint(port)
        self._context = zmq.Context.instance()
        self._socket = self._context.socket(zmq.PUB)
        self._socket.setsockopt(zmq.SNDHWM, hwm)
        self._socket.bind(self._endpoint)
        self._last_status: Optional[BridgeStatus] = None
        logger.info(f"State publisher bound to {self._endpoint}")

    def publish(self, status: BridgeStatus) -> None:
        """Send one snapshot. Transport errors are logged, never raised."""
        self._last_status = status
        try:
            self._socket.send_multipart([
                BusPorts.TOPIC_BRIDGE_STATE.encode("utf-8"),
                encode_status(status),
            ])
        except zmq.ZMQError as e:
            logger.error(f"Failed to publish bridge state: {e}")

    @property
    def last_status(self) -> Optional[BridgeStatus]:
        """Most recent snapshot handed to publish()."""
        return self._last_status

    def close(self) -> None:
        """Close publisher socket."""
        self._socket.close(linger=0)
        logger.info(f"State publisher closed: {self._endpoint}")


class StateSubscriber:
    """
    Receives bridge status snapshots with a bounded wait.

    Usage:
        sub = StateSubscriber("display-host", BusPorts.MOTION_BRIDGE)
        status = sub.receive(timeout_ms=100)
    """

    def __init__(self, host: str = "localhost", port: int = BusPorts.MOTION_BRIDGE, hwm: int = 10):
        self._endpoint = BusPorts.sub_endpoint(port, host)
        self._context = zmq.Context.instance()
        self._socket = self._context.socket(zmq.SUB)
        self._socket.setsockopt(zmq.RCVHWM, hwm)
        self._socket.connect(self._endpoint)
        self._socket.setsockopt_string(zmq.SUBSCRIBE, BusPorts.TOPIC_BRIDGE_STATE)
        logger.info(f"State subscriber connected to {self._endpoint}")

    def receive(self, timeout_ms: int = 0) -> Optional[BridgeStatus]:
        """
        Wait up to timeout_ms for the next snapshot.

        Returns:
            BridgeStatus, or None on timeout or a malformed message
        """
        try:
            if self._socket.poll(timeout_ms) == 0:
                return None
            parts = self._socket.recv_multipart(zmq.NOBLOCK)
        except zmq.Again:
            return None

        if len(parts) != 2:
            logger.warning(f"Dropping state message with {len(parts)} frames")
            return None

        try:
            return decode_status(parts[1])
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed state message: {e}")
            return None

    def close(self) -> None:
        """Close subscriber socket."""
        self._socket.close(linger=0)
        logger.info(f"State subscriber closed: {self._endpoint}")
