"""
Tests for the bridge state channel.

Run with: pytest tests/test_zmq_bus.py -v
"""

import json
from unittest.mock import MagicMock

import pytest
import zmq
from motion_bridge.common.bus import (
    BusPorts,
    StatePublisher,
    StateSubscriber,
    decode_status,
    encode_status,
)
from motion_bridge.common.types import BridgeStatus


@pytest.fixture
def socket(monkeypatch):
    """Replace the shared ZMQ context so no real sockets are opened."""
    sock = MagicMock()
    context = MagicMock()
    context.socket.return_value = sock
    monkeypatch.setattr(zmq.Context, "instance", MagicMock(return_value=context))
    return sock


class TestPayload:
    """Test the JSON payload frame."""

    def test_encode_fields(self):
        status = BridgeStatus(name="motionsensor", state="RUNNING", output_state=True, transitions=3)
        data = json.loads(encode_status(status))

        assert data["name"] == "motionsensor"
        assert data["output_state"] is True
        assert data["transitions"] == 3
        assert "__type__" not in data

    def test_decode_rebuilds_status(self):
        status = BridgeStatus(name="motionsensor", state="STOPPED", output_state=False, bounced=4)

        result = decode_status(encode_status(status))

        assert result == status
        assert not result.is_running

    def test_decode_ignores_unknown_keys(self):
        payload = json.dumps({
            "name": "hall", "state": "RUNNING", "output_state": True, "firmware": "2.1",
        }).encode("utf-8")

        assert decode_status(payload).name == "hall"

    def test_decode_requires_core_fields(self):
        with pytest.raises(ValueError):
            decode_status(b'{"name": "hall"}')

    def test_decode_rejects_non_object(self):
        with pytest.raises(ValueError):
            decode_status(b"[1, 2]")


class TestStatePublisher:
    """Test publishing on the bridge_state topic."""

    def test_binds_port(self, socket):
        StatePublisher(5600)

        socket.bind.assert_called_once_with("tcp://*:5600")

    def test_publish_frames(self, socket):
        pub = StatePublisher()
        status = BridgeStatus(name="motionsensor", state="RUNNING", output_state=True)

        pub.publish(status)

        topic, payload = socket.send_multipart.call_args[0][0]
        assert topic == b"bridge_state"
        assert decode_status(payload) == status
        assert pub.last_status is status

    def test_send_error_is_logged_not_raised(self, socket):
        socket.send_multipart.side_effect = zmq.ZMQError()
        pub = StatePublisher()

        pub.publish(BridgeStatus(name="motionsensor", state="RUNNING", output_state=False))


class TestStateSubscriber:
    """Test receiving snapshots."""

    def test_subscribes_to_state_topic(self, socket):
        StateSubscriber("display", 5560)

        socket.connect.assert_called_once_with("tcp://display:5560")
        socket.setsockopt_string.assert_called_once_with(zmq.SUBSCRIBE, "bridge_state")

    def test_receive_status(self, socket):
        status = BridgeStatus(name="motionsensor", state="RUNNING", output_state=True)
        socket.poll.return_value = 1
        socket.recv_multipart.return_value = [b"bridge_state", encode_status(status)]

        assert StateSubscriber().receive(timeout_ms=10) == status

    def test_timeout_returns_none(self, socket):
        socket.poll.return_value = 0

        assert StateSubscriber().receive(timeout_ms=10) is None
        socket.recv_multipart.assert_not_called()

    def test_malformed_message_dropped(self, socket):
        socket.poll.return_value = 1
        socket.recv_multipart.return_value = [b"bridge_state", b"not json"]

        assert StateSubscriber().receive() is None


class TestBusPorts:
    def test_endpoints(self):
        assert BusPorts.pub_endpoint(BusPorts.MOTION_BRIDGE) == "tcp://*:5560"
        assert BusPorts.sub_endpoint(5560, "display") == "tcp://display:5560"
