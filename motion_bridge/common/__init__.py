"""Common utilities for the motion sensor bridge."""

from .types import (
    Direction,
    EdgeMode,
    BridgeState,
    Channel,
    BridgeStatus,
)
from .filters import EdgeDebouncer

__all__ = [
    # Types
    "Direction",
    "EdgeMode",
    "BridgeState",
    "Channel",
    "BridgeStatus",
    # Filters
    "EdgeDebouncer",
]
