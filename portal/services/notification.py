from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from portal.core.exceptions import NotFoundError
from portal.models.company import Company
from portal.models.notification import Notification


class NotificationService:
    @staticmethod
    def create_notification(db: Session, company_id: int, subject: str, message: str) -> Notification:
        notification = Notification(company_id=company_id, subject=subject, message=message)
        db.add(notification)
        return notification

    @staticmethod
    def send(db: Session, subject: str, message: str, company_id: Optional[int] = None) -> List[Notification]:
        """
        Send to one company, or fan out one row per company when no id is given.
        The caller commits.
        """
        if company_id is not None:
            if db.get(Company, company_id) is None:
                raise NotFoundError("Company")
            targets = [company_id]
        else:
            targets = [cid for (cid,) in db.query(Company.id).order_by(Company.id).all()]

        created = [
            NotificationService.create_notification(db, cid, subject, message)
            for cid in targets
        ]
        db.flush()
        return created

    @staticmethod
    def mark_read(notification: Notification) -> Notification:
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
        return notification
