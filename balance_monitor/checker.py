"""
Balance Checker Module
Runs one check cycle: fetch balances, update history, format and notify
"""

import logging
import os
import threading
from datetime import datetime
from typing import List, Optional

from .calculator import BalanceReport, RunwayCalculator
from .config import Config, ServiceConfig, StaticServiceConfig, sanitize_identifier
from .formatter import compose_failure_message, compose_message, compose_static_message
from .history import HistoryStore
from .reminders import headline, notice_kind


logger = logging.getLogger(__name__)


class BalanceChecker:
    """Coordinates balance polling and the notification workflow"""

    def __init__(self, config: Config, client, history: HistoryStore, notifier):
        """
        Initialize checker

        Args:
            config: Validated configuration
            client: Fetcher exposing fetch_balance(service)
            history: History store for spend tracking
            notifier: Notifier exposing notify(chat_ids, message)
        """
        self.config = config
        self.client = client
        self.history = history
        self.notifier = notifier
        self.calculator = RunwayCalculator(config.minimum_days_left)
        self.location = config.schedule.location()
        self.stop_requested = threading.Event()
        self._run_lock = threading.Lock()

    def run_once(self, now: Optional[datetime] = None) -> Optional[Exception]:
        """
        Check every service and send due reminders

        A failing service is reported and skipped; the remaining services
        are still checked.

        Args:
            now: Check time (defaults to now in the configured timezone)

        Returns:
            The first error encountered, or None when everything succeeded
        """
        with self._run_lock:
            if now is None:
                now = datetime.now(self.location)
            return self._run(now)

    def _run(self, now: datetime) -> Optional[Exception]:
        first_error = None
        chat_ids = self.config.telegram.chat_ids

        for service in self.config.services:
            if self.stop_requested.is_set():
                logger.info("Stop requested, skipping remaining services")
                return first_error

            try:
                message = self.process_service(service, now)
            except Exception as e:
                logger.error(f"Service check failed for {service.name}: {e}")
                if first_error is None:
                    first_error = e
                self._notify_failure(service.name, e)
                continue

            try:
                self.notifier.notify(chat_ids, message)
            except Exception as e:
                logger.error(f"Failed to notify for {service.name}: {e}")
                if first_error is None:
                    first_error = e

        for static_service in self.config.static_services:
            if self.stop_requested.is_set():
                logger.info("Stop requested, skipping remaining reminders")
                return first_error

            message = self.process_static_service(static_service, now)
            if message is None:
                continue

            try:
                self.notifier.notify(chat_ids, message)
            except Exception as e:
                logger.error(f"Failed to notify for {static_service.name}: {e}")
                if first_error is None:
                    first_error = e

        return first_error

    def process_service(self, service: ServiceConfig, now: datetime) -> str:
        """
        Fetch balances for one service and build its report message

        Raises:
            FetchError: Balance could not be fetched
            HistoryIOError, CorruptRecordError: History could not be updated
        """
        entries = self.client.fetch_balance(service)
        multiple = len(entries) > 1

        reports: List[BalanceReport] = []
        for index, entry in enumerate(entries):
            currency = entry.currency.strip() or service.currency_symbol

            history_path = service.history_file
            if multiple:
                history_path = history_path_for_entry(service.history_file, index, currency)

            stats = self.history.update(history_path, entry.amount, now)
            report = self.calculator.build_report(currency, entry.amount, stats.average, service.billing_mode)
            reports.append(report)

            logger.info(
                f"Service check entry: service={service.name} index={index} "
                f"balance={entry.amount} avg_daily={report.average} "
                f"days_left={report.days_left} currency={currency}"
            )

        logger.info(f"Service check complete: service={service.name} entries={len(reports)}")
        return compose_message(service.name, service.billing_mode, reports)

    def process_static_service(self, service: StaticServiceConfig, now: datetime) -> Optional[str]:
        kind = notice_kind(service, now.date())
        if kind is None:
            return None

        logger.info(f"Static service reminder: service={service.name} kind={kind.value}")
        return compose_static_message(service, headline(kind, service.notify_before_days))

    def _notify_failure(self, service_name: str, error: Exception):
        try:
            self.notifier.notify(self.config.telegram.chat_ids, compose_failure_message(service_name, error))
        except Exception as e:
            logger.error(f"Failed to notify about error for {service_name}: {e}")


def history_path_for_entry(base: str, index: int, currency: str) -> str:
    """
    Derive a per-balance history file from the service's base file

    'data/openai.json' with index 0 and currency 'USD' gives
    'data/openai_01_usd.json'.
    """
    directory, filename = os.path.split(base)
    name, ext = os.path.splitext(filename)

    suffix_parts = [f"{index + 1:02d}"]
    sanitized = sanitize_identifier(currency)
    if sanitized:
        suffix_parts.append(sanitized)

    return os.path.join(directory, f"{name}_{'_'.join(suffix_parts)}{ext}")
