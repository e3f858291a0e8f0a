"""GPIO event bridge module."""

from .errors import (
    BridgeError,
    ConfigurationError,
    ChannelUnavailableError,
    ChannelWriteError,
    InvalidStateError,
    AlreadyStartedError,
)
from .access import GpioAccess, Subscription
from .bridge import GpioEventBridge, BridgeConfig, configure
from .simulated import SimulatedGpio

__all__ = [
    "BridgeError",
    "ConfigurationError",
    "ChannelUnavailableError",
    "ChannelWriteError",
    "InvalidStateError",
    "AlreadyStartedError",
    "GpioAccess",
    "Subscription",
    "GpioEventBridge",
    "BridgeConfig",
    "configure",
    "SimulatedGpio",
]
