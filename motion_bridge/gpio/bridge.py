"""
GPIO event bridge.

Turns noisy edge notifications on one input line (motion sensor) into a
clean toggle of one output line (LED).

Lifecycle:
    UNCONFIGURED -> CONFIGURED -> RUNNING -> STOPPED

A stopped bridge cannot be restarted; configure a new one instead.
"""

import logging
import threading
import time
import warnings
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from ..common.filters import EdgeDebouncer
from ..common.types import BridgeState, BridgeStatus, Channel, Direction, EdgeMode
from .access import GpioAccess, Subscription
from .errors import (
    AlreadyStartedError,
    ConfigurationError,
    InvalidStateError,
)

logger = logging.getLogger(__name__)

StatusListener = Callable[[BridgeStatus], None]
LifecycleHook = Callable[[], None]


@dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration."""
    input_channel: int = 8  # Motion sensor pin
    output_channel: int = 7  # LED pin
    initial_output_state: bool = False
    debounce_ms: float = 50.0  # Minimum gap between accepted edges
    input_edge: EdgeMode = EdgeMode.BOTH
    name: str = "motionsensor"

    def validate(self) -> None:
        """Raise ConfigurationError if the configuration is unusable."""
        if self.input_channel == self.output_channel:
            raise ConfigurationError(
                f"Input and output must be different channels (both are {self.input_channel})"
            )
        if self.debounce_ms < 0:
            raise ConfigurationError(f"debounce_ms must be >= 0, got {self.debounce_ms}")
        if self.input_edge == EdgeMode.NONE:
            raise ConfigurationError("Input edge mode must not be NONE")


class GpioEventBridge:
    """
    Debounced input-to-output edge bridge.

    Edge notifications may arrive on a GPIO library thread. The handler
    and stop() are serialized by one lock, so no event is processed
    concurrently with another and no channel is touched after stop()
    returns.

    Use configure() to build one; the constructor does not reserve pins.
    """

    def __init__(
        self,
        config: BridgeConfig,
        gpio: GpioAccess,
        clock: Callable[[], float] = time.monotonic,
        on_start: Optional[LifecycleHook] = None,
        on_stop: Optional[LifecycleHook] = None,
        on_status: Optional[StatusListener] = None,
    ):
        """
        Initialize bridge.

        Args:
            config: Bridge configuration
            gpio: GPIO access layer owning the pins
            clock: Monotonic time source in seconds
            on_start: Called after the bridge starts running
            on_stop: Called after the bridge stops
            on_status: Called with a BridgeStatus on start, on each
                accepted transition and on stop
        """
        self.config = config
        self._gpio = gpio
        self._clock = clock
        self._on_start = on_start
        self._on_stop = on_stop
        self._listeners: List[StatusListener] = []
        if on_status is not None:
            self._listeners.append(on_status)

        self._lock = threading.Lock()
        self._state = BridgeState.UNCONFIGURED
        self._debouncer = EdgeDebouncer(debounce_ms=config.debounce_ms, clock=clock)

        self._input = Channel(config.input_channel, Direction.INPUT, config.input_edge)
        self._output = Channel(config.output_channel, Direction.OUTPUT)
        self._input_handle: Any = None
        self._output_handle: Any = None
        self._subscription: Optional[Subscription] = None

        # Mirrors the parity of accepted transitions since start
        self._output_state = config.initial_output_state

        self._transitions = 0
        self._bounced = 0
        self._failed_writes = 0

    def _reserve(self) -> None:
        """Reserve both channels. Releases the input if the output fails."""
        if self._state != BridgeState.UNCONFIGURED:
            raise InvalidStateError(f"Cannot configure bridge in state {self._state.name}")

        self._input_handle = self._gpio.reserve(
            self._input.id, Direction.INPUT, self._input.edge_mode
        )
        try:
            self._output_handle = self._gpio.reserve(
                self._output.id, Direction.OUTPUT, EdgeMode.NONE
            )
        except Exception:
            self._gpio.release(self._input_handle)
            self._input_handle = None
            raise

        self._state = BridgeState.CONFIGURED
        logger.info(
            f"Bridge '{self.config.name}' configured "
            f"(input={self._input.id}, output={self._output.id}, "
            f"debounce={self.config.debounce_ms}ms)"
        )

    def start(self) -> None:
        """
        Start listening for edges and drive the output to its initial state.

        A second call on a running bridge is a no-op reported as an
        AlreadyStartedError warning.

        Raises:
            InvalidStateError: Bridge is not configured, or already stopped
        """
        with self._lock:
            if self._state == BridgeState.RUNNING:
                logger.warning(f"Bridge '{self.config.name}' already started")
                warnings.warn(
                    AlreadyStartedError(f"Bridge '{self.config.name}' is already running"),
                    stacklevel=2,
                )
                return
            if self._state != BridgeState.CONFIGURED:
                raise InvalidStateError(
                    f"Cannot start bridge in state {self._state.name}"
                )

            self._state = BridgeState.RUNNING
            try:
                self._output_state = self.config.initial_output_state
                self._write_output(self._output_state)
                # Driving the initial level counts as the first output transition
                self._debouncer.mark(self._clock())
                self._subscription = self._gpio.subscribe(self._input_handle, self._on_edge)
            except Exception:
                self._state = BridgeState.CONFIGURED
                raise
            status = self._snapshot()

        logger.info(
            f"Bridge '{self.config.name}' started (output={self._output_state})"
        )
        if self._on_start is not None:
            self._on_start()
        self._notify(status)

    def stop(self) -> None:
        """
        Unsubscribe and release both channels.

        Safe from every state and idempotent. Waits for an in-flight edge
        handler to finish before releasing anything.
        """
        with self._lock:
            if self._state == BridgeState.STOPPED:
                return
            previous = self._state
            self._state = BridgeState.STOPPED
            subscription = self._subscription
            self._subscription = None
            status = self._snapshot()

        if subscription is not None:
            subscription.cancel()

        for handle in (self._input_handle, self._output_handle):
            if handle is None:
                continue
            try:
                self._gpio.release(handle)
            except Exception as e:
                logger.error(f"Failed to release channel {handle}: {e}")
        self._input_handle = None
        self._output_handle = None

        logger.info(f"Bridge '{self.config.name}' stopped (was {previous.name})")
        if self._on_stop is not None:
            self._on_stop()
        self._notify(status)

    def read_input(self) -> bool:
        """
        Read the current input level.

        Raises:
            InvalidStateError: Bridge is not running
        """
        with self._lock:
            if self._state != BridgeState.RUNNING:
                raise InvalidStateError(f"Cannot read input in state {self._state.name}")
            value = bool(self._gpio.read(self._input_handle))
            self._input.state = value
            return value

    def status(self) -> BridgeStatus:
        """Snapshot of the bridge state."""
        with self._lock:
            return self._snapshot()

    def _on_edge(self, channel_id: int, value: Optional[bool]) -> None:
        """Handle one raw edge notification from the GPIO layer."""
        try:
            with self._lock:
                if self._state != BridgeState.RUNNING:
                    return

                if value is None:
                    value = self._gpio.read(self._input_handle)
                self._input.state = bool(value)
                now = self._clock()
                if not self._debouncer.accept(now):
                    self._bounced += 1
                    logger.debug(f"Edge on pin {channel_id} discarded as bounce")
                    return

                self._output_state = not self._output_state
                self._transitions += 1
                try:
                    self._write_output(self._output_state)
                except Exception as e:
                    self._failed_writes += 1
                    logger.error(
                        f"Failed to write pin {self._output.id}={self._output_state}: {e}"
                    )
                status = self._snapshot()

            logger.info(
                f"Motion edge on pin {channel_id} -> output {status.output_state}"
            )
            self._notify(status)
        except Exception as e:
            logger.error(f"Edge handler error on pin {channel_id}: {e}", exc_info=True)

    def _write_output(self, value: bool) -> None:
        if self._state != BridgeState.RUNNING:
            raise InvalidStateError(f"Cannot write output in state {self._state.name}")
        self._gpio.write(self._output_handle, value)
        self._output.state = value

    def _snapshot(self) -> BridgeStatus:
        return BridgeStatus(
            name=self.config.name,
            state=self._state.name,
            output_state=self._output_state,
            transitions=self._transitions,
            bounced=self._bounced,
            failed_writes=self._failed_writes,
        )

    def _notify(self, status: BridgeStatus) -> None:
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error(f"Status listener failed: {e}")

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def output_state(self) -> bool:
        return self._output_state

    @property
    def last_transition_time(self) -> Optional[float]:
        return self._debouncer.last_accepted

    @property
    def input_channel(self) -> Channel:
        return self._input

    @property
    def output_channel(self) -> Channel:
        return self._output


def configure(
    config: BridgeConfig,
    gpio: GpioAccess,
    **kwargs,
) -> GpioEventBridge:
    """
    Validate config and reserve both channels.

    Args:
        config: Bridge configuration
        gpio: GPIO access layer
        **kwargs: clock, on_start, on_stop, on_status for GpioEventBridge

    Returns:
        Bridge in the CONFIGURED state

    Raises:
        ConfigurationError: Invalid config, nothing reserved
        ChannelUnavailableError: A channel could not be reserved
    """
    config.validate()

    bridge = GpioEventBridge(config, gpio, **kwargs)
    bridge._reserve()
    return bridge
