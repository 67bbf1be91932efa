"""
Joint Subscriber — applies received joint snapshots to a MuJoCo model.

Each viewer frame makes one bounded receive attempt, applies the snapshot
if it is newer than the last one accepted, syncs the viewer and advances the
simulation one step. Closing the viewer (or Ctrl-C) ends the loop.

Usage:
    python -m joint_pubsub.services.joint_subscriber
    python -m joint_pubsub.services.joint_subscriber --model hand.xml --debug
    python -m joint_pubsub.services.joint_subscriber --headless --max-iterations 1000
"""

import argparse
import dataclasses
import logging
import sys
import time
from typing import Callable, Optional, Sequence

from joint_pubsub.shared.bus.errors import TransportError
from joint_pubsub.shared.bus.subscriber import JointStateSubscriber
from joint_pubsub.shared.config.link_config import LinkConfig
from joint_pubsub.shared.utils.logging_config import setup_logging
from joint_pubsub.simulation.mujoco_engine import MuJoCoEngine, SimulationConfig
from joint_pubsub.subscriber.loop import SubscriberLoop

logger = logging.getLogger("joint_pubsub.subscriber")


class _IterationBudget:
    """Keeps a loop going until a limit is reached (None = unlimited)."""

    def __init__(self, limit: Optional[int], also: Optional[Callable[[], bool]] = None):
        self.limit = limit
        self.also = also
        self.count = 0

    def __call__(self) -> bool:
        if self.limit is not None and self.count >= self.limit:
            return False
        if self.also is not None and not self.also():
            return False
        self.count += 1
        return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apply robot joint snapshots to a MuJoCo model")
    parser.add_argument("--connect", help="ZeroMQ connect address (env JOINT_SUB_CONNECT, default tcp://localhost:5555)")
    parser.add_argument("--topic", help="Topic to accept (env JOINT_TOPIC, default robot_joints)")
    parser.add_argument("--timeout-ms", type=int, help="Receive timeout per loop iteration (env JOINT_RECV_TIMEOUT_MS)")
    parser.add_argument("--model", help="MJCF model path (default: built-in six-joint arm)")
    parser.add_argument(
        "--filter-prefix", action="append", default=[],
        help="Only apply model joints with these name prefixes (repeatable or comma-separated)",
    )
    parser.add_argument("--headless", action="store_true", help="Run without the MuJoCo viewer")
    parser.add_argument("--no-realtime", action="store_true", help="Do not sleep one timestep per step")
    parser.add_argument("--max-iterations", type=int, help="Stop after this many loop iterations")
    parser.add_argument("--log-dir", help="Directory for the rotating log file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def resolve_config(args: argparse.Namespace, base: Optional[LinkConfig] = None) -> LinkConfig:
    """Apply command-line overrides on top of the environment config."""
    config = base or LinkConfig.from_env()
    overrides = {}
    if args.connect:
        overrides["connect_addr"] = args.connect
    if args.topic:
        overrides["topic"] = args.topic
    if args.timeout_ms is not None:
        overrides["recv_timeout_ms"] = args.timeout_ms
    return dataclasses.replace(config, **overrides)


def load_engine(args: argparse.Namespace) -> MuJoCoEngine:
    engine = MuJoCoEngine(SimulationConfig(realtime=not args.no_realtime))
    if args.model:
        engine.load_path(args.model)
    else:
        engine.load_default_model()
    return engine


def run_loop(loop: SubscriberLoop, engine: MuJoCoEngine, headless: bool, max_iterations: Optional[int]) -> int:
    """Drive the subscriber loop from the viewer (or headless) until shutdown."""
    timestep = engine.timestep

    def advance() -> None:
        engine.step()
        if engine.config.realtime:
            time.sleep(timestep)

    if headless:
        return loop.run(_IterationBudget(max_iterations), step=advance)

    with engine.launch_viewer() as viewer:
        def step() -> None:
            viewer.sync()
            advance()

        return loop.run(_IterationBudget(max_iterations, also=viewer.is_running), step=step)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(server_name="joint_subscriber", log_dir=args.log_dir, debug=args.debug)

    try:
        config = resolve_config(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        engine = load_engine(args)
    except (ImportError, OSError, ValueError) as e:
        logger.error("Failed to load simulation model: %s", e)
        sys.exit(1)

    prefixes = [p.strip() for value in args.filter_prefix for p in value.split(",") if p.strip()]
    registry = engine.build_registry(prefixes)
    logger.info("Registry holds %d joints: %s", len(registry), ", ".join(registry.names))

    try:
        subscriber = JointStateSubscriber(config.connect_addr, config.topic)
    except TransportError as e:
        logger.error("Cannot start subscriber: %s", e)
        sys.exit(1)

    loop = SubscriberLoop(
        subscriber,
        registry,
        topic=config.topic,
        sink=engine,
        timeout_ms=config.recv_timeout_ms,
    )
    try:
        run_loop(loop, engine, args.headless, args.max_iterations)
    except KeyboardInterrupt:
        logger.info("Shutting down joint subscriber")
    finally:
        subscriber.close()
    logger.info("Subscriber finished: %s", loop.stats)


if __name__ == "__main__":
    main()
