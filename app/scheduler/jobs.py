"""AdPulse — Scheduler Jobs.

APScheduler interval job that fails uploads stuck in ``processing``
after a crash or a killed worker.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import settings
from app.database import engine
from app.services.upload_service import fail_stale_uploads
from app.store.record_store import RecordStore
from app.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def stale_upload_job():
    """Mark uploads processing for longer than the configured window as failed."""
    try:
        swept = fail_stale_uploads(RecordStore(engine), settings.stale_upload_minutes)
        if swept:
            logger.info(f"Stale upload sweep failed {swept} uploads")
    except Exception as e:
        logger.error(f"Stale upload sweep failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        stale_upload_job,
        "interval",
        minutes=settings.stale_sweep_interval_minutes,
        id="stale_upload_sweep",
        replace_existing=True,
        misfire_grace_time=600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Stale upload sweep every {settings.stale_sweep_interval_minutes} min")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
