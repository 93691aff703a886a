"""
Daily Check Scheduler Module
Triggers the balance check once a day at the configured local time
"""

import logging
import threading
from datetime import datetime, time, timedelta, tzinfo
from typing import Any, Callable, Dict, Optional

import schedule


logger = logging.getLogger(__name__)


class DailyCheckScheduler:
    """Runs a job once per day inside a short window after the trigger time"""

    def __init__(self, job: Callable[[], Any], trigger_time: time, location: tzinfo,
                 window_minutes: int = 10):
        """
        Initialize scheduler

        Args:
            job: Callable running one check cycle; a returned exception marks failure
            trigger_time: Local time the job becomes due
            location: Timezone the trigger time is expressed in
            window_minutes: How long after the trigger time a missed tick may still run
        """
        self.job = job
        self.scheduled_time = trigger_time
        self.location = location
        self.window = timedelta(minutes=window_minutes)
        self.last_run: Optional[datetime] = None
        self.is_running = False

    def _now(self) -> datetime:
        return datetime.now(self.location)

    def should_run_now(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check if the job is due

        Args:
            current_time: Optional datetime for testing

        Returns:
            True inside today's window when the job has not run today
        """
        if current_time is None:
            current_time = self._now()

        start_window = current_time.replace(
            hour=self.scheduled_time.hour,
            minute=self.scheduled_time.minute,
            second=0,
            microsecond=0,
        )
        end_window = start_window + self.window

        if not (start_window <= current_time <= end_window):
            return False

        if self.last_run and self.last_run.date() == current_time.date():
            return False

        return True

    def run_if_due(self, current_time: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Execute the job when due

        Returns:
            Job result with status success, error or skipped
        """
        if self.is_running:
            return {"status": "error", "message": "Job already running"}

        if current_time is None:
            current_time = self._now()

        if not self.should_run_now(current_time):
            return {"status": "skipped", "message": "Outside scheduled window or already ran today"}

        self.is_running = True
        self.last_run = current_time
        logger.info(f"Starting scheduled balance check at {current_time.isoformat()}")

        try:
            error = self.job()
        finally:
            self.is_running = False

        if error is not None:
            logger.error(f"Scheduled balance check finished with error: {error}")
            return {"status": "error", "message": str(error)}

        logger.info("Scheduled balance check completed successfully")
        return {"status": "success", "ran_at": current_time.isoformat()}

    def get_next_run_time(self, now: Optional[datetime] = None) -> datetime:
        """Get next scheduled run time"""
        if now is None:
            now = self._now()

        next_run = now.replace(
            hour=self.scheduled_time.hour,
            minute=self.scheduled_time.minute,
            second=0,
            microsecond=0,
        )

        already_ran_today = self.last_run is not None and self.last_run.date() == now.date()
        if now > next_run + self.window or already_ran_today:
            next_run += timedelta(days=1)

        return next_run

    def start(self, stop_event: threading.Event, poll_seconds: int = 30):
        """
        Poll until stop_event is set

        A cycle already in progress completes before the loop notices the stop.
        """
        jobs = schedule.Scheduler()
        jobs.every(poll_seconds).seconds.do(self.run_if_due)

        logger.info(
            f"Scheduler started: daily at {self.scheduled_time.strftime('%H:%M')} "
            f"({self.location}), next run {self.get_next_run_time().isoformat()}"
        )

        while not stop_event.is_set():
            try:
                jobs.run_pending()
            except Exception as e:
                logger.error(f"Scheduler loop error: {str(e)}")
            stop_event.wait(1)

        jobs.clear()
        logger.info("Scheduler stopped")
