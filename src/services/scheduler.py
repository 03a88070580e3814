# src/services/scheduler.py

"""Background scheduling of price sweeps."""

import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from src.config.settings import Settings
from src.services.price_monitor import PriceMonitor

logger = logging.getLogger("price_tracker.scheduler")


class SweepScheduler:
    """Runs sweeps on a cron schedule and on demand.

    Scheduled and manual sweeps share the monitor's in-flight guard, so
    they never overlap; a manual trigger during a sweep is rejected
    rather than queued, because the running sweep already covers every
    active item.
    """

    SCHEDULED_JOB_ID = "price-sweep"
    MANUAL_JOB_ID = "price-sweep-manual"

    def __init__(
        self,
        monitor: PriceMonitor,
        cron: str | None = None,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self.monitor = monitor
        self.cron = cron or Settings.SWEEP_CRON
        self._scheduler = scheduler or BackgroundScheduler()

    @property
    def running(self) -> bool:
        """True while the background scheduler is started."""
        return bool(self._scheduler.running)

    @property
    def next_run_time(self) -> datetime | None:
        """When the cron job fires next, if it is scheduled."""
        job = self._scheduler.get_job(self.SCHEDULED_JOB_ID)
        # Pending jobs (scheduler not started) have no next_run_time yet
        return getattr(job, "next_run_time", None) if job else None

    def start(self) -> None:
        """Install the cron job and start the background scheduler."""
        self.monitor.resume()
        self._scheduler.add_job(
            self.monitor.run_sweep,
            trigger=CronTrigger.from_crontab(self.cron),
            kwargs={"trigger": "scheduled"},
            id=self.SCHEDULED_JOB_ID,
            name="Check prices",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info("Price checking scheduled with cron '%s'", self.cron)

    def run_sweep_now(self) -> bool:
        """Queue an immediate sweep and return without waiting.

        Returns False when a sweep is already running.
        """
        if self.monitor.is_sweeping:
            logger.info("Manual sweep rejected: a sweep is in progress")
            return False
        # No trigger: APScheduler runs the job once, as soon as possible
        self._scheduler.add_job(
            self.monitor.run_sweep,
            kwargs={"trigger": "manual"},
            id=self.MANUAL_JOB_ID,
            name="Check prices now",
            replace_existing=True,
        )
        logger.info("Manual price check started")
        return True

    def stop(self, wait: bool = True) -> None:
        """Cancel any running sweep and shut the scheduler down."""
        self.monitor.stop()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        logger.info("Scheduler stopped")
