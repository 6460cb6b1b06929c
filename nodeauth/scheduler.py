"""Background scheduler that prunes expired login phrases."""

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from nodeauth.config import settings
from nodeauth.database import SessionLocal
from nodeauth.errors import StoreError
from nodeauth.services.phrase_service import cleanup_expired_phrases

logger = structlog.get_logger()

scheduler = BackgroundScheduler()


def cleanup_job() -> None:
    db = SessionLocal()
    try:
        deleted = cleanup_expired_phrases(db, settings.login_phrase_max_age_ms)
        if deleted:
            logger.info("expired_phrases_deleted", count=deleted)
    except StoreError as e:
        logger.error("phrase_cleanup_failed", error_name=e.name, error=e.message)
    finally:
        db.close()


def start_scheduler() -> None:
    """Start the background scheduler."""
    scheduler.add_job(
        cleanup_job,
        trigger=IntervalTrigger(minutes=settings.cleanup_interval_minutes),
        id="cleanup_expired_phrases",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("scheduler_started", interval_minutes=settings.cleanup_interval_minutes)


def shutdown_scheduler() -> None:
    scheduler.shutdown()
    logger.info("scheduler_stopped")
