"""
Scheduling service for periodic cache warming
"""

import logging
import threading
from datetime import datetime, timedelta
from croniter import croniter
from bdayfeed.config import get_scheduler_config

logger = logging.getLogger(__name__)

CHECK_INTERVAL_SECONDS = 60


class SchedulerService:
    """Runs a warm-up function whenever a cron schedule fires"""

    def __init__(self, warm_func, warm_schedule=None, startup_delay=None):
        self.warm_func = warm_func

        config = get_scheduler_config()
        self.warm_schedule = warm_schedule if warm_schedule is not None else config['warm_schedule']
        self.startup_delay = startup_delay if startup_delay is not None else config['startup_delay']

        if self.warm_schedule and not croniter.is_valid(self.warm_schedule):
            raise ValueError(f"Invalid cron schedule '{self.warm_schedule}'")

        self.last_run = None
        self._stop = threading.Event()
        self._thread = None

    @property
    def enabled(self):
        return bool(self.warm_schedule)

    def _next_run_time(self, now=None):
        """Calculate next run time based on cron schedule"""
        cron = croniter(self.warm_schedule, now or datetime.now())
        return cron.get_next(datetime)

    def _should_run(self, now=None):
        """Check if the schedule fired during the last minute"""
        now = now or datetime.now()
        cron = croniter(self.warm_schedule, now - timedelta(minutes=1))
        return cron.get_next(datetime) <= now

    def run_pending(self, now=None):
        """Run the warm-up if the schedule is due. Returns True when it ran."""
        if not self._should_run(now):
            return False
        self._perform_warm()
        return True

    def _perform_warm(self):
        try:
            logger.info("Starting cache warm-up...")
            self.warm_func()
            self.last_run = datetime.now()
            logger.info("Cache warm-up completed successfully")
            return True
        except Exception as e:
            logger.error(f"Cache warm-up failed: {e}")
            return False

    def _loop(self):
        if self.startup_delay > 0:
            logger.info(f"Waiting {self.startup_delay} seconds before starting...")
            if self._stop.wait(self.startup_delay):
                return

        logger.info("Running initial warm-up...")
        self._perform_warm()

        while not self._stop.is_set():
            try:
                self.run_pending()
            except Exception as e:
                logger.error(f"Error in scheduling loop: {e}")
            self._stop.wait(CHECK_INTERVAL_SECONDS)

        logger.info("Scheduler stopped")

    def start(self):
        """Start the warm-up loop in a daemon thread"""
        if not self.enabled:
            logger.info("No warm-up schedule configured, scheduler not started")
            return None

        logger.info(f"Warm-up schedule: {self.warm_schedule}")
        logger.info(f"Next warm-up: {self._next_run_time().strftime('%Y-%m-%d %H:%M:%S')}")
        self._thread = threading.Thread(target=self._loop, name='bdayfeed-scheduler', daemon=True)
        self._thread.start()
        return self._thread

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
