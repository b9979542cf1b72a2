"""Dedicated APScheduler worker process for nightly stats refreshes."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.services.job_runner import refresh_stats_for_all_users


logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running stats refresh once on startup")
            run_user_stats_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_user_stats_job,
        trigger="cron",
        hour=settings.stats_job_hour,
        minute=settings.stats_job_minute,
        id="user_stats_job",
        replace_existing=True,
    )
    logger.info(
        "Registered user stats job (daily at %02d:%02d %s)",
        settings.stats_job_hour,
        settings.stats_job_minute,
        settings.scheduler_timezone,
    )


def run_user_stats_job() -> None:
    session = SessionLocal()
    try:
        result = refresh_stats_for_all_users(session)
        logger.info(
            "User stats job complete: users=%s, updated=%s, failures=%s",
            result.users_processed,
            result.users_updated,
            result.failures,
        )
    except Exception:  # pragma: no cover
        logger.exception("User stats job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
