#!/usr/bin/env python3
"""
Main entry point for running the file-backed producer/consumer pair.

Usage:
    # Run until interrupted
    python -m filelog.main --data-dir ./data

    # Five iterations of each loop, one batch of 3 orders per second
    python -m filelog.main --batch-size 3 --producer-interval-ms 1000 --iterations 5
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from filelog.consumer.consumer import Consumer, ConsumerConfig
from filelog.consumer.offset import OffsetStore
from filelog.core.errors import LogError, UnterminatedLogError
from filelog.core.log.log import Log
from filelog.producer.generator import OrderGenerator, parse_order_id
from filelog.producer.producer import Producer, ProducerConfig
from filelog.scheduler import Scheduler
from filelog.utils.config import Config, ConfigError
from filelog.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="FileLog - a publish/subscribe log emulated with local files"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML file overriding config/default.yaml",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory holding the log and offset files",
    )

    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Orders generated per producer cycle",
    )

    parser.add_argument(
        "--producer-interval-ms",
        type=int,
        default=None,
        help="Pause between producer cycles",
    )

    parser.add_argument(
        "--consumer-interval-ms",
        type=int,
        default=None,
        help="Pause between consumer cycles",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible order payloads",
    )

    parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Stop each loop after this many cycles (default: run forever)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["json", "console"],
        help="Log output format",
    )

    return parser.parse_args(argv)


def apply_args(config: Config, args: argparse.Namespace) -> None:
    """Overlay command-line flags on the loaded configuration."""
    overrides = {
        "storage.data_dir": args.data_dir,
        "producer.batch_size": args.batch_size,
        "producer.interval_ms": args.producer_interval_ms,
        "producer.seed": args.seed,
        "consumer.interval_ms": args.consumer_interval_ms,
        "logging.level": args.log_level,
        "logging.format": args.log_format,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)


def build_scheduler(config: Config, max_iterations: Optional[int] = None) -> Scheduler:
    """
    Wire log, offset store, producer and consumer from configuration.

    The log is scanned first so the generator resumes after the last id
    already on disk. A log ending in a torn record is refused.

    Args:
        config: Loaded configuration
        max_iterations: Optional per-loop iteration limit

    Returns:
        Scheduler ready to start

    Raises:
        UnterminatedLogError: If the log ends in an unterminated record
    """
    data_dir = Path(config.get("storage.data_dir", "./data"))
    log_path = data_dir / config.get("storage.log_file", "orders.jsonl")
    offset_path = data_dir / config.get("storage.offset_file", "offset.txt")

    log = Log(log_path, fsync_on_append=bool(config.get("storage.fsync_on_append", False)))
    recovery = log.recover()
    if recovery.torn_bytes:
        raise UnterminatedLogError(log_path, recovery.valid_bytes + recovery.torn_bytes)

    producer_config = ProducerConfig(
        batch_size=int(config.get("producer.batch_size", 10)),
        interval_ms=int(config.get("producer.interval_ms", 2000)),
        seed=config.get("producer.seed"),
        id_width=int(config.get("producer.id_width", 4)),
    )
    generator = OrderGenerator(
        seed=producer_config.seed,
        start_id=parse_order_id(recovery.last_id),
        id_width=producer_config.id_width,
    )
    producer = Producer(log, config=producer_config, generator=generator)

    consumer_config = ConsumerConfig(
        interval_ms=int(config.get("consumer.interval_ms", 2000)),
        max_records=config.get("consumer.max_records"),
        auto_offset_reset=config.get("consumer.auto_offset_reset", "earliest"),
    )
    consumer = Consumer(log, OffsetStore(offset_path), config=consumer_config)

    return Scheduler(producer, consumer, max_iterations=max_iterations)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = Config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    apply_args(config, args)

    configure_logging(
        log_level=config.get("logging.level", "INFO"),
        log_format=config.get("logging.format", "json"),
        log_output=config.get("logging.output", "stdout"),
    )

    logger.info(
        "Starting FileLog",
        data_dir=config.get("storage.data_dir"),
        iterations=args.iterations,
    )

    try:
        scheduler = build_scheduler(config, max_iterations=args.iterations)
    except (LogError, ValueError) as e:
        logger.error("Startup failed", error=str(e), exc_info=True)
        return 1

    def handle_signal(signum, frame):
        logger.info("Received signal, shutting down", signal=signal.Signals(signum).name)
        scheduler.stop_event.set()

    previous_handlers = {
        sig: signal.signal(sig, handle_signal)
        for sig in (signal.SIGTERM, signal.SIGINT)
    }

    try:
        scheduler.start()

        # Poll so the main thread stays responsive to signals.
        while scheduler.is_running():
            scheduler.wait(timeout=0.5)
    finally:
        scheduler.stop()
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    return 0


if __name__ == "__main__":
    sys.exit(main())
