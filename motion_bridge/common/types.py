"""
Core data types for the motion sensor bridge.

Channel descriptions and the status messages pushed to the front end.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
import time


class Direction(Enum):
    """Digital line direction."""
    INPUT = auto()
    OUTPUT = auto()


class EdgeMode(Enum):
    """Which level changes raise an edge notification."""
    NONE = auto()
    RISING = auto()
    FALLING = auto()
    BOTH = auto()

    @staticmethod
    def parse(value: str) -> "EdgeMode":
        """Parse a config string such as 'both' or 'RISING'."""
        try:
            return EdgeMode[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown edge mode: {value!r}") from None


class BridgeState(Enum):
    """Bridge lifecycle state."""
    UNCONFIGURED = auto()
    CONFIGURED = auto()
    RUNNING = auto()
    STOPPED = auto()


@dataclass
class Channel:
    """One addressable digital line owned by a bridge."""
    id: int
    direction: Direction
    edge_mode: EdgeMode = EdgeMode.NONE
    state: bool = False


@dataclass
class BridgeStatus:
    """Bridge snapshot published to the front end."""
    name: str
    state: str  # BridgeState name, kept as str for JSON transport
    output_state: bool
    transitions: int = 0
    bounced: int = 0
    failed_writes: int = 0
    timestamp: float = field(default_factory=time.time)

    @property
    def is_running(self) -> bool:
        return self.state == BridgeState.RUNNING.name
