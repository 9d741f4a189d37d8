import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import get_settings
from database import session_scope
from recurrence import local_today
from services import dismissal_cutoff_month, purge_dismissed_suggestions


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class SchedulerManager:
    def __init__(self) -> None:
        settings = get_settings()
        self.retention_months = settings.dismissal_retention_months
        self.scheduler = BackgroundScheduler(timezone=settings.timezone)

    def _run_job(self, source: str = "manual") -> int:
        cutoff = dismissal_cutoff_month(local_today(), self.retention_months)
        logger.info(f"dismissal_purge: source={source} cutoff={cutoff}")
        with session_scope() as session:
            count = purge_dismissed_suggestions(session, cutoff)
        logger.info(f"dismissal_purge: source={source} removed={count}")
        return count

    def start(self) -> None:
        trigger = CronTrigger(hour=3, minute=30)
        self.scheduler.add_job(
            self._run_job,
            trigger,
            args=["daily_03:30"],
            id="dismissal_purge_daily",
            replace_existing=True,
            misfire_grace_time=3600,
        )
        self.scheduler.start()
        logger.info("Scheduler started with daily 03:30 dismissal purge")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
