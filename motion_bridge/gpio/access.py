"""
GPIO access layer interface.

The bridge consumes exactly these five operations. Implementations live in
rpi.py (real hardware) and simulated.py (bench runs and tests).
"""

from typing import Any, Callable, Optional, Protocol

from ..common.types import Direction, EdgeMode

# Called with (channel_id, value) whenever the input level changes. value is
# None when the layer does not sample the level itself; read() it instead.
EdgeCallback = Callable[[int, Optional[bool]], None]


class Subscription(Protocol):
    """Handle returned by subscribe(); cancel() stops further notifications."""

    def cancel(self) -> None:
        ...


class GpioAccess(Protocol):
    """Pin-level primitives provided by the host's GPIO layer."""

    def reserve(self, channel_id: int, direction: Direction, edge_mode: EdgeMode) -> Any:
        """Claim a channel. Raises ChannelUnavailableError."""
        ...

    def write(self, handle: Any, value: bool) -> None:
        ...

    def read(self, handle: Any) -> bool:
        ...

    def subscribe(self, handle: Any, callback: EdgeCallback) -> Subscription:
        ...

    def release(self, handle: Any) -> None:
        ...
