from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from portal.core.exceptions import NotFoundError
from portal.core.schemas import ApiResponse
from portal.database import get_db
from portal.models.notification import Notification
from portal.models.user import User
from portal.routers.auth_deps import get_current_user, require_admin, require_company_context, scope_company_id
from portal.schemas.notification import NotificationCreate, NotificationResponse
from portal.services.activity import ActivityService
from portal.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=ApiResponse[List[NotificationResponse]])
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Notification)
    scoped = scope_company_id(current_user)
    if scoped is not None:
        query = query.filter(Notification.company_id == scoped)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    notifications = query.order_by(Notification.sent_at.desc(), Notification.id.desc()).all()
    return ApiResponse.ok([NotificationResponse.model_validate(n) for n in notifications])


@router.post("", response_model=ApiResponse[List[NotificationResponse]], status_code=201)
def send_notification(
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    created = NotificationService.send(db, payload.subject.strip(), payload.message.strip(), payload.company_id)
    target = f"company {payload.company_id}" if payload.company_id is not None else f"all companies ({len(created)})"
    ActivityService.log(db, "notification", f"Sent '{payload.subject}' to {target}", current_user.email, current_user.id)
    db.commit()
    for notification in created:
        db.refresh(notification)
    return ApiResponse.ok(
        [NotificationResponse.model_validate(n) for n in created],
        message="Notification sent successfully",
    )


@router.post("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_company_context)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.company_id == current_user.company_id
    ).first()

    if not notification:
        raise NotFoundError("Notification")

    NotificationService.mark_read(notification)
    db.commit()
    db.refresh(notification)
    return ApiResponse.ok(NotificationResponse.model_validate(notification))


@router.post("/mark-all-read", response_model=ApiResponse[None])
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_company_context)
):
    unread = db.query(Notification).filter(
        Notification.company_id == current_user.company_id,
        Notification.is_read == False  # noqa: E712
    ).all()
    for notification in unread:
        NotificationService.mark_read(notification)
    db.commit()
    return ApiResponse.ok(message=f"{len(unread)} notification(s) marked as read")
