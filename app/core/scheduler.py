"""APScheduler configuration for the daily activation job."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import SessionLocal
from app.schemas.activation import ActivationSummary
from app.services.activation import ActivationService

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


def get_db_session() -> Session:
    """Get a database session for scheduler jobs."""
    return SessionLocal()


def daily_activation_job() -> ActivationSummary | None:
    """
    Activate students created today and deactivate everyone else.
    Runs shortly after midnight in the portal timezone.
    """
    logger.info("Starting daily activation job")

    db = get_db_session()
    try:
        summary = ActivationService(db).run_daily_activation()
        db.commit()
        logger.info(
            f"Daily activation done: {summary.activated} activated, "
            f"{summary.deactivated} deactivated"
        )
        return summary
    except Exception as e:
        logger.exception(f"Error running daily activation: {e}")
        db.rollback()
        return None
    finally:
        db.close()


def init_scheduler() -> AsyncIOScheduler:
    """Initialize and configure the scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler(
        timezone=settings.SCHEDULER_TIMEZONE,
        job_defaults={
            "coalesce": True,  # Combine missed runs
            "max_instances": 1,
            "misfire_grace_time": 3600,
        },
    )

    scheduler.add_job(
        daily_activation_job,
        trigger=CronTrigger(
            hour=settings.ACTIVATION_HOUR,
            minute=settings.ACTIVATION_MINUTE,
            timezone=settings.SCHEDULER_TIMEZONE,
        ),
        id="daily_activation",
        name="Daily student activation",
        replace_existing=True,
    )

    logger.info(
        f"Scheduler initialized with daily activation at "
        f"{settings.ACTIVATION_HOUR:02d}:{settings.ACTIVATION_MINUTE:02d} ({settings.SCHEDULER_TIMEZONE})"
    )
    return scheduler


def start_scheduler():
    """Start the scheduler."""
    global scheduler
    if scheduler is None:
        scheduler = init_scheduler()

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


def trigger_daily_activation() -> ActivationSummary | None:
    """Run the activation job outside the schedule."""
    return daily_activation_job()
