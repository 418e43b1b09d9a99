from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.schemas import ApiResponse
from portal.database import get_db
from portal.models.user import User, UserRole
from portal.routers.auth_deps import get_current_user, require_admin
from portal.schemas.activity import ActivityResponse
from portal.services.activity import ActivityService

router = APIRouter(prefix="/activity", tags=["Activity"])


@router.get("", response_model=ApiResponse[List[ActivityResponse]])
def get_activity(
    limit: int = Query(settings.activity_log_cap, ge=1, le=settings.activity_log_cap),
    action: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Admins see the whole log; companies only their own entries (login history)."""
    user_filter = None if current_user.role == UserRole.ADMIN else current_user.id
    entries = ActivityService(db).recent(limit=limit, user_id=user_filter, action=action)
    return ApiResponse.ok([ActivityResponse.model_validate(e) for e in entries])


@router.delete("", response_model=ApiResponse[None])
def clear_activity(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    removed = ActivityService(db).clear()
    db.commit()
    return ApiResponse.ok(message=f"Activity log cleared ({removed} entries)")
