#!/usr/bin/env python3
"""
Main entry point for the Page Watcher.

Loads configuration, sets up logging and notifiers, then checks the watched
page once immediately and again on every tick of a fixed interval:
fetch → parse → match → notify

A cycle that overruns the interval delays the next tick; ticks are never
run concurrently and missed ticks are skipped rather than queued.
"""

import os
import sys
import time
from typing import Callable, Optional, Sequence

import requests

from page_watcher.config import Config, ConfigError, load_config
from page_watcher.fetch import create_session
from page_watcher.notify import Notifier, build_notifiers
from page_watcher.pipeline import run_check
from page_watcher.utils import get_logger, setup_logging


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_ENV_ERROR = 2


def run_cycle(
    config: Config,
    session: requests.Session,
    notifiers: Sequence[Notifier]
) -> None:
    """Run one check, containing any unexpected error to this cycle."""
    logger = get_logger("main")

    try:
        run_check(config, session, notifiers)
    except Exception as e:
        logger.exception(f"Unexpected error during check: {e}")


def next_tick(previous: float, interval: float, now: float) -> float:
    """
    Return the first tick after now on the grid previous + k * interval.

    Ticks that passed while a cycle was running are dropped.
    """
    tick = previous + interval
    if tick <= now:
        missed = int((now - tick) // interval) + 1
        tick += missed * interval
    return tick


def run_forever(
    config: Config,
    session: requests.Session,
    notifiers: Sequence[Notifier],
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    max_cycles: Optional[int] = None
) -> int:
    """
    Check the page now and then once per interval.

    Args:
        config: Loaded configuration.
        session: HTTP session reused across cycles.
        notifiers: Notifiers to call on a match.
        sleep: Sleep function, replaceable in tests.
        clock: Monotonic clock, replaceable in tests.
        max_cycles: Stop after this many cycles. None runs until interrupted.

    Returns:
        Number of cycles run.
    """
    cycles = 0
    tick = clock()

    while True:
        run_cycle(config, session, notifiers)
        cycles += 1

        if max_cycles is not None and cycles >= max_cycles:
            return cycles

        tick = next_tick(tick, config.check_interval, clock())
        delay = tick - clock()
        if delay > 0:
            sleep(delay)


def main() -> int:
    """
    Main entry point for the Page Watcher.

    Sets up logging, validates configuration and runs the watch loop with
    proper error handling.

    Returns:
        Exit code for the process.
    """
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    setup_logging(log_level)
    logger = get_logger("main")

    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ENV_ERROR

    logger.info("Starting web scraper...")
    logger.info(f"Website: {config.website_url}")
    logger.info(f"Search text: {config.search_text}")
    logger.info(f"Check interval: {config.check_interval:g}s")

    if config.dry_run:
        logger.info("Running in DRY RUN mode - notifications will be skipped")

    session = create_session()
    notifiers = build_notifiers(config, session=session)

    try:
        run_forever(
            config,
            session,
            notifiers,
            max_cycles=1 if config.run_once else None
        )
        return EXIT_SUCCESS

    except KeyboardInterrupt:
        logger.warning("Watcher interrupted by user")
        return EXIT_FAILURE

    except Exception as e:
        logger.exception(f"Unexpected error in watcher: {e}")
        return EXIT_FAILURE

    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
