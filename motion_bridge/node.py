"""
Motion sensor node.

Host-facing module: exposes a name, a path and start()/stop(), wires a
GPIO event bridge to the ZMQ bus so the display front end can follow
the LED state.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import yaml

from .common.bus import BusPorts, StatePublisher
from .common.types import BridgeState, BridgeStatus, EdgeMode
from .gpio.access import GpioAccess
from .gpio.bridge import BridgeConfig, GpioEventBridge, configure
from .gpio.errors import ConfigurationError

logger = logging.getLogger(__name__)

BACKENDS = ("rpi", "simulated")
NUMBERINGS = ("BCM", "BOARD")


@dataclass
class NodeConfig:
    """Motion sensor node configuration."""
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    backend: str = "rpi"  # "rpi" or "simulated"
    numbering: str = "BOARD"  # Header positions; pins 8 and 7 are physical pins
    pull_up: bool = False  # PIR sensors drive the line high on motion
    publish_enabled: bool = True
    publish_port: int = BusPorts.MOTION_BRIDGE
    path: str = ""  # Module directory reported to the host


def _flag(section: dict, key: str, default: bool) -> bool:
    """Read a YAML boolean. Quoted strings such as "false" are rejected."""
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key} must be true or false, got {value!r}")
    return value


def load_node_config(config_yaml: str) -> NodeConfig:
    """
    Load configuration from YAML file.

    A missing file falls back to defaults.

    Raises:
        ConfigurationError: A value is out of range or unknown
    """
    path = os.path.dirname(os.path.abspath(config_yaml))

    if not os.path.exists(config_yaml):
        logger.warning(f"Config not found at {config_yaml}, using defaults")
        return NodeConfig(path=path)

    with open(config_yaml, 'r') as f:
        cfg = yaml.safe_load(f) or {}

    gpio_cfg = cfg.get('gpio', {}) or {}
    publish_cfg = cfg.get('publish', {}) or {}

    backend = str(gpio_cfg.get('backend', 'rpi')).lower()
    if backend not in BACKENDS:
        raise ConfigurationError(f"Unknown GPIO backend: {backend}")

    numbering = str(gpio_cfg.get('numbering', 'BOARD')).upper()
    if numbering not in NUMBERINGS:
        raise ConfigurationError(f"Unknown GPIO numbering: {numbering}")

    try:
        input_edge = EdgeMode.parse(gpio_cfg.get('input_edge', 'both'))
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    try:
        bridge = BridgeConfig(
            input_channel=int(gpio_cfg.get('input_pin', 8)),
            output_channel=int(gpio_cfg.get('output_pin', 7)),
            initial_output_state=_flag(gpio_cfg, 'initial_output', False),
            debounce_ms=float(gpio_cfg.get('debounce_ms', 50.0)),
            input_edge=input_edge,
            name=cfg.get('name', 'motionsensor'),
        )
        publish_port = int(publish_cfg.get('port', BusPorts.MOTION_BRIDGE))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value in {config_yaml}: {e}") from e

    bridge.validate()

    return NodeConfig(
        bridge=bridge,
        backend=backend,
        numbering=numbering,
        pull_up=_flag(gpio_cfg, 'pull_up', False),
        publish_enabled=_flag(publish_cfg, 'enabled', True),
        publish_port=publish_port,
        path=path,
    )


def create_gpio(config: NodeConfig) -> GpioAccess:
    """Build the GPIO access layer selected by config.backend."""
    if config.backend == "simulated":
        from .gpio.simulated import SimulatedGpio
        return SimulatedGpio()

    from .gpio.rpi import RPiGpioAccess
    return RPiGpioAccess(numbering=config.numbering, pull_up=config.pull_up)


class MotionSensorNode:
    """
    Motion sensor module as seen by the host.

    The host calls start() and stop(); every start after a stop
    configures a fresh bridge.
    """

    def __init__(
        self,
        config: NodeConfig,
        gpio: Optional[GpioAccess] = None,
        publisher: Optional[StatePublisher] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize node.

        Args:
            config: Node configuration
            gpio: GPIO access layer (built from config.backend if None)
            publisher: State publisher (bound to config.publish_port if None
                and publishing is enabled)
            clock: Time source handed to the bridge
        """
        self.config = config
        self.name = config.bridge.name
        self.path = config.path

        self._gpio = gpio
        self._publisher = publisher
        self._owns_publisher = publisher is None
        self._clock = clock
        self._bridge: Optional[GpioEventBridge] = None
        self._running = False

        logger.info(f"MotionSensorNode '{self.name}' initialized (backend={config.backend})")

    def start(self) -> None:
        """Reserve pins and start the bridge."""
        if self._bridge is not None and self._bridge.state == BridgeState.RUNNING:
            self._bridge.start()  # reports AlreadyStartedError
            return

        logger.info(f"Starting {self.name}...")

        if self._gpio is None:
            self._gpio = create_gpio(self.config)
        if self._publisher is None and self.config.publish_enabled:
            self._publisher = StatePublisher(self.config.publish_port)
            self._owns_publisher = True

        self._bridge = configure(
            self.config.bridge,
            self._gpio,
            clock=self._clock,
            on_status=self._publish_status,
        )
        try:
            self._bridge.start()
        except Exception:
            self._bridge.stop()
            raise
        self._running = True

    def stop(self) -> None:
        """Stop the bridge and close the publisher."""
        self._running = False
        if self._bridge is not None:
            self._bridge.stop()
        if self._publisher is not None and self._owns_publisher:
            self._publisher.close()
            self._publisher = None
        logger.info(f"{self.name} stopped")

    def run(self, poll_interval_s: float = 1.0) -> None:
        """Start and block until interrupted."""
        self.start()
        try:
            while self._running:
                time.sleep(poll_interval_s)
        except KeyboardInterrupt:
            logger.info(f"{self.name} interrupted")
        finally:
            self.stop()

    def _publish_status(self, status: BridgeStatus) -> None:
        if self._publisher is not None:
            self._publisher.publish(status)

    @property
    def bridge(self) -> Optional[GpioEventBridge]:
        return self._bridge

    @property
    def gpio(self) -> Optional[GpioAccess]:
        return self._gpio
