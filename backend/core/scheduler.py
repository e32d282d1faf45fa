"""
Background Task Scheduler for maintenance jobs.

Uses APScheduler for reliable scheduled task execution:
- Contact rate limiter sweep (memory bound only)
- Consent log purge (GDPR retention)
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from models.config import settings
from repositories.database import SessionLocal


# Global scheduler instance
scheduler: BackgroundScheduler | None = None


def rate_limit_sweep_job() -> int:
    """
    Scheduled job to drop expired contact windows and idle chat records.

    Returns:
        Number of records removed
    """
    from services.rate_limit_service import (
        get_chat_rate_limiter,
        get_contact_rate_limiter,
    )

    return get_contact_rate_limiter().sweep() + get_chat_rate_limiter().sweep()


def consent_log_purge_job() -> int:
    """
    Scheduled job to delete consent records past their retention period.

    Creates its own database session for isolation.
    """
    from services.consent_service import ConsentService

    logger.info("Running scheduled consent log purge")

    db = SessionLocal()
    try:
        return ConsentService.purge_expired(db)
    except Exception as e:
        logger.error(f"Consent log purge failed: {e}")
        raise
    finally:
        db.close()


def setup_scheduler() -> None:
    """
    Configure and start the background scheduler.

    Schedules:
    - Rate limit sweep: every RATE_LIMIT_SWEEP_INTERVAL_MINUTES
    - Consent log purge: Daily at 3:00 AM
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return

    scheduler = BackgroundScheduler()

    scheduler.add_job(
        rate_limit_sweep_job,
        IntervalTrigger(minutes=settings.RATE_LIMIT_SWEEP_INTERVAL_MINUTES),
        id="rate_limit_sweep",
        name="Rate Limit Sweep",
        replace_existing=True,
        coalesce=True,
    )

    scheduler.add_job(
        consent_log_purge_job,
        CronTrigger(hour=3, minute=0),
        id="consent_log_purge",
        name="Consent Log Purge",
        replace_existing=True,
        misfire_grace_time=3600,  # 1 hour grace for missed jobs
    )

    scheduler.start()
    logger.info(
        f"Background scheduler started: rate limit sweep every "
        f"{settings.RATE_LIMIT_SWEEP_INTERVAL_MINUTES} min, consent purge at 3:00 AM"
    )


def shutdown_scheduler() -> None:
    """Gracefully shutdown the scheduler."""
    global scheduler

    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")
    scheduler = None


def get_scheduler_status() -> dict:
    """Get current scheduler status for monitoring."""
    global scheduler

    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append(
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat() if job.next_run_time else None
                ),
            }
        )

    return {"running": scheduler.running, "jobs": jobs}
