#!/usr/bin/env python3
"""
Precious-metals polling service.

Long-running service that:
1. Resets quota windows that have elapsed
2. Polls the price feed (or serves cached quotes while cooling down)
3. Appends fresh quotes to the persisted history
4. Repeats every poll interval

Usage:
    python -m cli.track [--config CONFIG] [--once] [--simulate] [--verbose]
"""
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from metalwatch.automation.scheduler import Scheduler
from metalwatch.automation.tracker import PollStatus

from cli.common import build_tracker, load_config, setup_logging


# Global flag for graceful shutdown
shutdown_requested = False


def signal_handler(signum, frame):
    """Handle shutdown signals (SIGTERM, SIGINT)."""
    global shutdown_requested
    logger = logging.getLogger(__name__)
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    shutdown_requested = True


def log_poll(results, logger: logging.Logger):
    for instrument, result in results.items():
        if result.status == PollStatus.UNAVAILABLE:
            logger.warning(f"{instrument.value}: no price available ({result.message})")
        else:
            logger.info(
                f"{instrument.value}: {result.quote.price:.4f} USD/g "
                f"[{result.status.value}] at {result.quote.timestamp:%Y-%m-%d %H:%M:%S}"
            )


def main(argv: Optional[List[str]] = None) -> int:
    """Main service loop."""
    parser = argparse.ArgumentParser(description="Precious-metals price tracking service")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to tracker config file (default: configs/metalwatch.yaml if present)"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Poll once and exit"
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use the offline simulated feed instead of the live API"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)"
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(Path(config.log_path) if config.log_path else None, args.verbose)
    logger = logging.getLogger(__name__)

    logger.info("=" * 80)
    logger.info("MetalWatch Tracking Service Starting")
    logger.info("=" * 80)
    logger.info(f"Instruments: {', '.join(i.value for i in config.instruments)}")
    logger.info(f"Feed: {'simulated' if args.simulate else config.feed_source}")
    logger.info(f"Poll interval: {config.poll_interval_seconds:.0f}s")

    try:
        tracker = build_tracker(config, simulate=args.simulate)
    except Exception as e:
        logger.exception(f"Failed to initialize components: {e}")
        return 1

    if args.once:
        log_poll(tracker.tick(), logger)
        return 0

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    scheduler = Scheduler(interval_seconds=config.poll_interval_seconds, timezone=config.timezone)
    logger.info("Entering main service loop...")
    try:
        scheduler.run(
            lambda: log_poll(tracker.tick(), logger),
            should_stop=lambda: shutdown_requested,
        )
    except Exception as e:
        logger.exception(f"Fatal error in main loop: {e}")
        return 1
    finally:
        logger.info("Service stopped")

    return 0


if __name__ == "__main__":
    sys.exit(main())
