"""
CLI entrypoint for a one-off expired session sweep. Run from cron when the
in-process sweeper is disabled (SESSION_CLEANUP_ENABLED=false), e.g.:

  python -m app.session_cleanup

Or hourly: 0 * * * * cd /path/to/betting-tips-api && .venv/bin/python -m app.session_cleanup
"""

import logging
import sys

from app.core.database import SessionLocal
from app.services.sessions import cleanup_expired_sessions

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete all sessions whose expiry has passed."""
    db = SessionLocal()
    try:
        deleted = cleanup_expired_sessions(db)
        logger.info("Session cleanup completed: sessions_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("Session cleanup failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
