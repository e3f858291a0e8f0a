"""
Simulated GPIO layer.

Keeps pin levels in memory so the bridge can run on a bench machine
without hardware. Edges are injected by the caller and delivered
synchronously on the calling thread.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ..common.types import Direction, EdgeMode
from .access import EdgeCallback
from .errors import ChannelUnavailableError, ChannelWriteError, InvalidStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimHandle:
    """Reservation token for a simulated pin."""
    channel_id: int
    direction: Direction
    edge_mode: EdgeMode


class _SimSubscription:
    def __init__(self, gpio: "SimulatedGpio", channel_id: int, callback: EdgeCallback):
        self._gpio = gpio
        self._channel_id = channel_id
        self._callback = callback

    def cancel(self) -> None:
        self._gpio._remove_callback(self._channel_id, self._callback)


class SimulatedGpio:
    """
    In-memory implementation of the GPIO access layer.

    Extra hooks for benches and tests:
    - mark_absent(pin): reserve() on that pin fails
    - fail_writes(pin): write() on that pin raises ChannelWriteError
    - inject_edge(pin, value): drive an input level and notify subscribers
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._levels: Dict[int, bool] = {}
        self._reserved: Dict[int, SimHandle] = {}
        self._callbacks: Dict[int, List[EdgeCallback]] = {}
        self._absent: Set[int] = set()
        self._failing: Set[int] = set()
        self.writes: List[Tuple[int, bool]] = []

        logger.info("SimulatedGpio initialized")

    # Access layer operations

    def reserve(self, channel_id: int, direction: Direction, edge_mode: EdgeMode) -> SimHandle:
        with self._lock:
            if channel_id in self._absent:
                raise ChannelUnavailableError(channel_id, "hardware not present")
            if channel_id in self._reserved:
                raise ChannelUnavailableError(channel_id, "already in use")

            handle = SimHandle(channel_id, direction, edge_mode)
            self._reserved[channel_id] = handle
            self._levels.setdefault(channel_id, False)

        logger.debug(f"Sim pin {channel_id} reserved as {direction.name} (edge={edge_mode.name})")
        return handle

    def write(self, handle: SimHandle, value: bool) -> None:
        self._check_reserved(handle)
        if handle.direction != Direction.OUTPUT:
            raise InvalidStateError(f"Pin {handle.channel_id} is not an output")

        with self._lock:
            if handle.channel_id in self._failing:
                raise ChannelWriteError(f"Simulated write failure on pin {handle.channel_id}")
            self._levels[handle.channel_id] = bool(value)
            self.writes.append((handle.channel_id, bool(value)))

    def read(self, handle: SimHandle) -> bool:
        self._check_reserved(handle)
        with self._lock:
            return self._levels.get(handle.channel_id, False)

    def subscribe(self, handle: SimHandle, callback: EdgeCallback) -> _SimSubscription:
        self._check_reserved(handle)
        if handle.direction != Direction.INPUT:
            raise InvalidStateError(f"Pin {handle.channel_id} is not an input")

        with self._lock:
            self._callbacks.setdefault(handle.channel_id, []).append(callback)
        return _SimSubscription(self, handle.channel_id, callback)

    def release(self, handle: SimHandle) -> None:
        with self._lock:
            if self._reserved.get(handle.channel_id) != handle:
                return
            del self._reserved[handle.channel_id]
            self._callbacks.pop(handle.channel_id, None)
        logger.debug(f"Sim pin {handle.channel_id} released")

    # Simulation hooks

    def mark_absent(self, channel_id: int, absent: bool = True) -> None:
        """Make reserve() fail for channel_id, as if the pin did not exist."""
        with self._lock:
            if absent:
                self._absent.add(channel_id)
            else:
                self._absent.discard(channel_id)

    def fail_writes(self, channel_id: int, failing: bool = True) -> None:
        """Make write() on channel_id raise ChannelWriteError."""
        with self._lock:
            if failing:
                self._failing.add(channel_id)
            else:
                self._failing.discard(channel_id)

    def inject_edge(self, channel_id: int, value: Optional[bool] = None) -> int:
        """
        Drive an input pin and notify its subscribers.

        Args:
            channel_id: Input pin
            value: New level (toggles the current level if None)

        Returns:
            Number of callbacks notified
        """
        with self._lock:
            previous = self._levels.get(channel_id, False)
            level = (not previous) if value is None else bool(value)
            self._levels[channel_id] = level

            handle = self._reserved.get(channel_id)
            if handle is None or not _edge_matches(handle.edge_mode, previous, level):
                return 0
            callbacks = list(self._callbacks.get(channel_id, []))

        for callback in callbacks:
            callback(channel_id, level)
        return len(callbacks)

    def level(self, channel_id: int) -> bool:
        """Current simulated level of a pin."""
        with self._lock:
            return self._levels.get(channel_id, False)

    def is_reserved(self, channel_id: int) -> bool:
        with self._lock:
            return channel_id in self._reserved

    @property
    def reserved(self) -> Set[int]:
        with self._lock:
            return set(self._reserved)

    def _remove_callback(self, channel_id: int, callback: EdgeCallback) -> None:
        with self._lock:
            callbacks = self._callbacks.get(channel_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def _check_reserved(self, handle: SimHandle) -> None:
        with self._lock:
            if self._reserved.get(handle.channel_id) != handle:
                raise InvalidStateError(f"Pin {handle.channel_id} is not reserved")


def _edge_matches(mode: EdgeMode, previous: bool, level: bool) -> bool:
    """Check whether a previous -> level change raises a notification in mode."""
    if mode == EdgeMode.BOTH:
        return previous != level
    if mode == EdgeMode.RISING:
        return level and not previous
    if mode == EdgeMode.FALLING:
        return previous and not level
    return False
