#!/usr/bin/env python3
"""
Balance Monitor Worker
Wires configuration, fetcher, history and notifier into the daily check loop
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from .checker import BalanceChecker
from .config import Config, load
from .errors import BalanceMonitorError, ConfigError
from .fetcher import BalanceClient
from .history import HistoryStore
from .notifier import TelegramNotifier
from .scheduler import DailyCheckScheduler


logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def build_checker(config: Config) -> BalanceChecker:
    """Assemble a checker with the production collaborators"""
    return BalanceChecker(
        config=config,
        client=BalanceClient(),
        history=HistoryStore(config.days_for_avg),
        notifier=TelegramNotifier(config.telegram.token),
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="balance-monitor",
        description="Poll provider balances daily and report spend to Telegram",
    )
    parser.add_argument("--config", default="config.yaml", help="Path to configuration file")
    parser.add_argument("--run-once", action="store_true",
                        help="Run balance check immediately and exit")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main worker entry point"""
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = load(args.config)
    except ConfigError as e:
        logger.error(f"Load config failed: {e}")
        return 1

    try:
        checker = build_checker(config)
    except BalanceMonitorError as e:
        logger.error(f"Init failed: {e}")
        return 1

    logger.info(
        f"Loaded {len(config.services)} service(s) and "
        f"{len(config.static_services)} static service(s)"
    )

    if args.run_once:
        error = checker.run_once()
        if error is not None:
            logger.error(f"Run once failed: {error}")
            return 1
        return 0

    def _request_stop(signum, _frame):
        logger.info(f"Received signal {signum}, shutting down...")
        checker.stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    scheduler = DailyCheckScheduler(
        job=checker.run_once,
        trigger_time=config.schedule.trigger_time(),
        location=checker.location,
    )
    scheduler.start(checker.stop_requested)
    return 0


if __name__ == "__main__":
    sys.exit(main())
