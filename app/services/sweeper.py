"""Periodic expired-session sweep, owned by the application lifespan."""

import logging
from collections.abc import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.services.sessions import cleanup_expired_sessions

logger = logging.getLogger(__name__)

JOB_ID = "cleanup_expired_sessions"


class SessionSweeper:
    """
    Runs cleanup_expired_sessions on a fixed interval in a background thread.

    Each run opens its own DB session from session_factory. start() and
    shutdown() are called from the FastAPI lifespan.
    """

    def __init__(self, session_factory: Callable[[], Session], interval_minutes: int) -> None:
        self.session_factory = session_factory
        self.interval_minutes = interval_minutes
        self._scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def run_once(self) -> int:
        """Run a single sweep. Failures are logged; the scheduler keeps running."""
        db = self.session_factory()
        try:
            return cleanup_expired_sessions(db)
        except Exception as e:
            db.rollback()
            logger.exception("Session cleanup failed: %s", e)
            return 0
        finally:
            db.close()

    def start(self) -> None:
        if self.running:
            return
        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Session sweeper started: interval_minutes=%s", self.interval_minutes)

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Session sweeper stopped")
