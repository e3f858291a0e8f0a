"""
Raspberry Pi GPIO access layer.

Adapts RPi.GPIO to the five-operation interface the bridge consumes.
RPi.GPIO delivers edge callbacks on its own event thread.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..common.types import Direction, EdgeMode
from .access import EdgeCallback
from .errors import ChannelUnavailableError, ChannelWriteError, InvalidStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RPiHandle:
    """Reservation token for a Raspberry Pi pin."""
    channel_id: int
    direction: Direction
    edge_mode: EdgeMode


class _RPiSubscription:
    def __init__(self, access: "RPiGpioAccess", channel_id: int):
        self._access = access
        self._channel_id = channel_id
        self._cancelled = False

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._access._remove_event_detect(self._channel_id)


class RPiGpioAccess:
    """
    GPIO access layer backed by RPi.GPIO.

    Pins are numbered BCM (SoC) or BOARD (header position). Inputs get
    the internal pull-up or pull-down resistor.
    """

    def __init__(
        self,
        numbering: str = "BOARD",
        pull_up: bool = False,
        bouncetime_ms: Optional[int] = None,
        gpio_module: Any = None,
    ):
        """
        Initialize the adapter.

        Args:
            numbering: "BCM" or "BOARD"
            pull_up: Use pull-up (True) or pull-down (False) on inputs
            bouncetime_ms: Optional kernel-side bounce filter for add_event_detect
            gpio_module: RPi.GPIO compatible module (imported if None)
        """
        if gpio_module is None:
            import RPi.GPIO as gpio_module

        self._gpio = gpio_module
        self._pull_up = pull_up
        self._bouncetime_ms = bouncetime_ms
        self._lock = threading.Lock()
        self._reserved: Dict[int, RPiHandle] = {}

        numbering = numbering.upper()
        if numbering == "BCM":
            self._gpio.setmode(self._gpio.BCM)
        elif numbering == "BOARD":
            self._gpio.setmode(self._gpio.BOARD)
        else:
            raise ValueError(f"Unknown GPIO numbering: {numbering}")
        self._gpio.setwarnings(False)

        logger.info(f"RPiGpioAccess initialized (numbering={numbering}, pull_up={pull_up})")

    def reserve(self, channel_id: int, direction: Direction, edge_mode: EdgeMode) -> RPiHandle:
        with self._lock:
            if channel_id in self._reserved:
                raise ChannelUnavailableError(channel_id, "already in use")

            try:
                if direction == Direction.INPUT:
                    pull = self._gpio.PUD_UP if self._pull_up else self._gpio.PUD_DOWN
                    self._gpio.setup(channel_id, self._gpio.IN, pull_up_down=pull)
                else:
                    self._gpio.setup(channel_id, self._gpio.OUT)
            except (RuntimeError, ValueError, OSError) as e:
                raise ChannelUnavailableError(channel_id, str(e)) from e

            handle = RPiHandle(channel_id, direction, edge_mode)
            self._reserved[channel_id] = handle

        logger.info(f"GPIO pin {channel_id} reserved as {direction.name}")
        return handle

    def write(self, handle: RPiHandle, value: bool) -> None:
        try:
            self._gpio.output(handle.channel_id, self._gpio.HIGH if value else self._gpio.LOW)
        except (RuntimeError, ValueError, OSError) as e:
            raise ChannelWriteError(f"Write to pin {handle.channel_id} failed: {e}") from e

    def read(self, handle: RPiHandle) -> bool:
        return bool(self._gpio.input(handle.channel_id))

    def subscribe(self, handle: RPiHandle, callback: EdgeCallback) -> _RPiSubscription:
        if handle.edge_mode == EdgeMode.NONE:
            raise InvalidStateError(f"Pin {handle.channel_id} has no edge detection configured")

        edge = {
            EdgeMode.RISING: self._gpio.RISING,
            EdgeMode.FALLING: self._gpio.FALLING,
            EdgeMode.BOTH: self._gpio.BOTH,
        }[handle.edge_mode]

        def on_event(channel):
            # Runs on the RPi.GPIO event thread; the pin may be released by now,
            # so the level is left for the subscriber to read under its own lock.
            try:
                callback(channel, None)
            except Exception as e:
                logger.error(f"Edge callback error on pin {channel}: {e}", exc_info=True)

        kwargs = {"callback": on_event}
        if self._bouncetime_ms:
            kwargs["bouncetime"] = self._bouncetime_ms

        try:
            self._gpio.add_event_detect(handle.channel_id, edge, **kwargs)
        except RuntimeError as e:
            raise ChannelUnavailableError(handle.channel_id, f"edge detection failed: {e}") from e

        logger.debug(f"Edge detection enabled on pin {handle.channel_id} ({handle.edge_mode.name})")
        return _RPiSubscription(self, handle.channel_id)

    def release(self, handle: RPiHandle) -> None:
        with self._lock:
            if self._reserved.get(handle.channel_id) != handle:
                return
            del self._reserved[handle.channel_id]

        try:
            self._gpio.cleanup(handle.channel_id)
            logger.info(f"GPIO pin {handle.channel_id} released")
        except Exception as e:
            logger.error(f"GPIO cleanup error on pin {handle.channel_id}: {e}")

    def _remove_event_detect(self, channel_id: int) -> None:
        try:
            self._gpio.remove_event_detect(channel_id)
        except Exception as e:
            logger.error(f"Failed to remove edge detection on pin {channel_id}: {e}")
