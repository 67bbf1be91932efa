"""
Joint Publisher — publishes RobotState snapshots over ZeroMQ.

Headless mode publishes a simulated sinusoidal trajectory. Manual-control
mode (``--model``) builds a joint registry from an MJCF model, optionally
applies a hand preset and ``--set`` overrides, and publishes the registry
values with estimated velocities.

Usage:
    python -m joint_pubsub.services.joint_publisher
    python -m joint_pubsub.services.joint_publisher --interval-ms 20 --debug
    python -m joint_pubsub.services.joint_publisher --model hand.xml --preset fist
"""

import argparse
import dataclasses
import logging
import sys
import time
from typing import Optional, Sequence

from joint_pubsub.publisher.loop import PublisherLoop
from joint_pubsub.publisher.sources import DEFAULT_JOINT_NAMES, RegistrySource, SineTrajectorySource
from joint_pubsub.registry.joint_registry import JointRegistry
from joint_pubsub.registry.presets import HandPreset
from joint_pubsub.shared.bus.errors import TransportError
from joint_pubsub.shared.bus.publisher import JointStatePublisher
from joint_pubsub.shared.config.link_config import LinkConfig
from joint_pubsub.shared.utils.logging_config import setup_logging

logger = logging.getLogger("joint_pubsub.publisher")


def _split_csv(values: Sequence[str]) -> list[str]:
    out: list[str] = []
    for value in values:
        out.extend(part.strip() for part in value.split(",") if part.strip())
    return out


def _parse_assignment(text: str) -> tuple[str, float]:
    name, sep, raw = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    try:
        return name.strip(), float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"value for {name.strip()!r} is not a number: {raw!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish robot joint snapshots over ZeroMQ")
    parser.add_argument("--bind", help="ZeroMQ bind address (env JOINT_PUB_BIND, default tcp://*:5555)")
    parser.add_argument("--topic", help="Frame topic (env JOINT_TOPIC, default robot_joints)")
    parser.add_argument("--interval-ms", type=int, help="Publish interval in ms (env JOINT_PUBLISH_INTERVAL_MS)")
    parser.add_argument("--rate-hz", type=float, help="Publish rate in Hz; overrides --interval-ms")
    parser.add_argument("--robot-id", help="Robot identifier in each snapshot (env JOINT_ROBOT_ID)")
    parser.add_argument("--warmup-ms", type=int, help="Delay before the first publish (env JOINT_WARMUP_MS)")
    parser.add_argument(
        "--joints", action="append", default=[],
        help="Joint names for the simulated trajectory (repeatable or comma-separated)",
    )
    parser.add_argument("--model", help="MJCF model for manual control; publishes registry values")
    parser.add_argument(
        "--filter-prefix", action="append", default=[],
        help="Only control model joints with these name prefixes (repeatable or comma-separated)",
    )
    parser.add_argument(
        "--preset", choices=[p.name.lower() for p in HandPreset],
        help="Hand preset applied to the registry before publishing",
    )
    parser.add_argument(
        "--set", dest="assignments", action="append", default=[], type=_parse_assignment,
        metavar="NAME=VALUE", help="Set a registry joint (radians, clamped to its bounds)",
    )
    parser.add_argument("--max-ticks", type=int, help="Stop after this many snapshots")
    parser.add_argument("--log-dir", help="Directory for the rotating log file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def resolve_config(args: argparse.Namespace, base: Optional[LinkConfig] = None) -> LinkConfig:
    """Apply command-line overrides on top of the environment config."""
    config = base or LinkConfig.from_env()
    overrides = {}
    if args.bind:
        overrides["bind_addr"] = args.bind
    if args.topic:
        overrides["topic"] = args.topic
    if args.robot_id:
        overrides["robot_id"] = args.robot_id
    if args.warmup_ms is not None:
        overrides["warmup_ms"] = args.warmup_ms
    if args.rate_hz is not None:
        if args.rate_hz <= 0:
            raise ValueError(f"--rate-hz must be positive, got {args.rate_hz}")
        overrides["publish_interval_ms"] = max(1, round(1000.0 / args.rate_hz))
    elif args.interval_ms is not None:
        overrides["publish_interval_ms"] = args.interval_ms
    return dataclasses.replace(config, **overrides)


def build_manual_registry(args: argparse.Namespace) -> JointRegistry:
    """Registry from the MJCF model, with preset and assignments applied."""
    from joint_pubsub.simulation.mujoco_engine import MuJoCoEngine

    engine = MuJoCoEngine()
    engine.load_path(args.model)
    registry = engine.build_registry(_split_csv(args.filter_prefix), sort_names=True)
    if len(registry) == 0:
        raise ValueError(f"no controllable joints found in {args.model}")

    if args.preset:
        preset = HandPreset.from_name(args.preset)
        written = preset.apply(registry)
        logger.info("Applied preset %s to %d joints", preset.label, written)
    for name, value in args.assignments:
        if not registry.set_value(name, value):
            logger.warning("--set %s: no such joint in %s", name, args.model)
    return registry


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(server_name="joint_publisher", log_dir=args.log_dir, debug=args.debug)

    try:
        config = resolve_config(args)
    except ValueError as e:
        parser.error(str(e))

    if args.model:
        try:
            registry = build_manual_registry(args)
        except (ImportError, OSError, ValueError) as e:
            logger.error("Failed to load model %s: %s", args.model, e)
            sys.exit(1)
        source = RegistrySource(registry)
        logger.info("Manual control: %d joints from %s", len(registry), args.model)
    else:
        if args.preset or args.assignments:
            parser.error("--preset and --set require --model")
        joint_names = _split_csv(args.joints) or list(DEFAULT_JOINT_NAMES)
        try:
            source = SineTrajectorySource(joint_names)
        except ValueError as e:
            parser.error(str(e))

    try:
        publisher = JointStatePublisher(config.bind_addr)
    except TransportError as e:
        logger.error("Cannot start publisher: %s", e)
        sys.exit(1)

    exit_code = 0
    try:
        if config.warmup_s > 0:
            logger.info("Waiting %.1fs for subscribers to connect...", config.warmup_s)
            time.sleep(config.warmup_s)
        loop = PublisherLoop(
            publisher,
            source,
            topic=config.topic,
            robot_id=config.robot_id,
            interval_s=config.publish_interval_s,
        )
        loop.run(max_ticks=args.max_ticks)
    except TransportError as e:
        logger.error("Publisher stopped: %s", e)
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("Shutting down joint publisher")
    finally:
        publisher.close()

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
