import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.models.activity import ActivityLogEntry

logger = logging.getLogger(__name__)


class ActivityService:
    """
    Append-only activity log, capped to the newest ``settings.activity_log_cap`` rows.

    Entries are flushed, not committed: they join the caller's transaction so a
    rolled-back action leaves no trace.
    """

    def __init__(self, db: Session, cap: Optional[int] = None):
        self.db = db
        self.cap = cap or settings.activity_log_cap

    def log_action(
        self,
        action: str,
        details: str = "",
        user: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Optional[ActivityLogEntry]:
        try:
            entry = ActivityLogEntry(action=action, details=details, user=user or "Unknown", user_id=user_id)
            self.db.add(entry)
            self.db.flush()
            self.prune()
            return entry
        except Exception as e:
            logger.error(f"FAILED TO LOG ACTIVITY: {e}", exc_info=True)
            return None  # Never break the main app flow because of a logging failure

    def prune(self) -> int:
        """Delete everything older than the newest ``cap`` entries."""
        threshold = (
            self.db.query(ActivityLogEntry.id)
            .order_by(ActivityLogEntry.id.desc())
            .offset(self.cap - 1)
            .limit(1)
            .scalar()
        )
        if threshold is None:
            return 0
        return (
            self.db.query(ActivityLogEntry)
            .filter(ActivityLogEntry.id < threshold)
            .delete(synchronize_session=False)
        )

    def recent(self, limit: int = 100, user_id: Optional[int] = None, action: Optional[str] = None) -> List[ActivityLogEntry]:
        query = self.db.query(ActivityLogEntry)
        if user_id is not None:
            query = query.filter(ActivityLogEntry.user_id == user_id)
        if action is not None:
            query = query.filter(ActivityLogEntry.action == action)
        return query.order_by(ActivityLogEntry.id.desc()).limit(limit).all()

    def clear(self) -> int:
        return self.db.query(ActivityLogEntry).delete(synchronize_session=False)

    # Static wrapper so routes can log in one line
    @staticmethod
    def log(db: Session, action: str, details: str = "", user: Optional[str] = None, user_id: Optional[int] = None):
        return ActivityService(db).log_action(action, details, user, user_id)
