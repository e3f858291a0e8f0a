"""Bridge state channel."""

from .zmq_bus import (
    BusPorts,
    StatePublisher,
    StateSubscriber,
    decode_status,
    encode_status,
)

__all__ = [
    "BusPorts",
    "StatePublisher",
    "StateSubscriber",
    "decode_status",
    "encode_status",
]
