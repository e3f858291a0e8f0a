"""
Bridge error hierarchy.

Configuration-time errors propagate to the caller. Per-event write
errors are caught at the transition handler and only logged.
"""


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ConfigurationError(BridgeError):
    """Bridge configuration is invalid."""


class ChannelUnavailableError(BridgeError):
    """A channel could not be reserved (in use, absent, or no permission)."""

    def __init__(self, channel_id: int, reason: str = ""):
        self.channel_id = channel_id
        self.reason = reason
        message = f"Channel {channel_id} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ChannelWriteError(BridgeError):
    """The GPIO layer failed to drive an output channel."""


class InvalidStateError(BridgeError):
    """Operation attempted outside the bridge state it requires."""


class AlreadyStartedError(BridgeError, RuntimeWarning):
    """start() called on a running bridge. Emitted as a warning."""
