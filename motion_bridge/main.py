"""
Main entry point for the motion sensor bridge.
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from .common.bus import BusPorts, StateSubscriber
from .gpio.bridge import configure
from .gpio.simulated import SimulatedGpio
from .node import MotionSensorNode, load_node_config


class _ScriptedClock:
    """Clock that reports whatever time the simulate command sets."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def simulate(config_path: str, edge_times_ms: List[float]) -> bool:
    """
    Drive a simulated bridge with edges at the given times.

    Returns:
        Final output state
    """
    node_config = load_node_config(config_path)
    gpio = SimulatedGpio()
    clock = _ScriptedClock()

    bridge = configure(node_config.bridge, gpio, clock=clock)
    bridge.start()
    try:
        for t in sorted(edge_times_ms):
            clock.now = t / 1000.0
            gpio.inject_edge(node_config.bridge.input_channel)
        return bridge.output_state
    finally:
        status = bridge.status()
        bridge.stop()
        logging.getLogger("main").info(
            f"Simulation done: transitions={status.transitions}, bounced={status.bounced}"
        )


def monitor(host: str, port: int, duration_s: Optional[float] = None) -> None:
    """Print bridge status messages published on the bus."""
    logger = logging.getLogger("main")
    subscriber = StateSubscriber(host, port)

    deadline = time.time() + duration_s if duration_s else None
    try:
        while deadline is None or time.time() < deadline:
            status = subscriber.receive(timeout_ms=500)
            if status is None:
                continue
            logger.info(f"State: {status}")
    except KeyboardInterrupt:
        logger.info("Monitor interrupted")
    finally:
        subscriber.close()


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Motion Sensor Bridge",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run        - Run the motion sensor node until Ctrl+C
  monitor    - Print bridge state published on the bus
  simulate   - Feed edge times (ms) to a simulated bridge

Examples:
  python -m motion_bridge.main run --config configs/motion_bridge.yaml
  python -m motion_bridge.main simulate 0 10 40 120
        """
    )

    parser.add_argument(
        "command",
        choices=["run", "monitor", "simulate"],
        help="Command to run"
    )
    parser.add_argument(
        "edges",
        nargs="*",
        type=float,
        help="Edge times in ms (simulate only)"
    )
    parser.add_argument(
        "--config",
        default="configs/motion_bridge.yaml",
        help="Configuration file"
    )
    parser.add_argument(
        "--host",
        default="localhost",
        help="Publisher host (monitor only)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=BusPorts.MOTION_BRIDGE,
        help="Publisher port (monitor only)"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logger = logging.getLogger("main")
    logger.info(f"Command: {args.command}")

    try:
        if args.command == "run":
            node = MotionSensorNode(load_node_config(args.config))
            node.run()

        elif args.command == "monitor":
            monitor(args.host, args.port)

        elif args.command == "simulate":
            output = simulate(args.config, args.edges)
            print(f"output={output}")

    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
