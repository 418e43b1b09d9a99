from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.core.exceptions import AppException, ConflictError, NotFoundError
from portal.core.schemas import ApiResponse
from portal.database import get_db
from portal.models.document_request import DocumentRequest, RequestStatus
from portal.models.user import User
from portal.routers.auth_deps import get_current_user, require_admin, require_company_context, scope_company_id
from portal.schemas.document_request import (
    DocumentRequestCreate,
    DocumentRequestResponse,
    DocumentRequestUpdate,
)
from portal.services.activity import ActivityService

router = APIRouter(prefix="/requests", tags=["Document Requests"])


@router.get("", response_model=ApiResponse[List[DocumentRequestResponse]])
def list_requests(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    query = db.query(DocumentRequest)
    scoped = scope_company_id(current_user)
    if scoped is not None:
        query = query.filter(DocumentRequest.company_id == scoped)
    requests = query.order_by(DocumentRequest.requested_at.desc(), DocumentRequest.id.desc()).all()
    return ApiResponse.ok([DocumentRequestResponse.model_validate(r) for r in requests])


@router.post("", response_model=ApiResponse[DocumentRequestResponse], status_code=201)
def create_request(
    payload: DocumentRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_company_context)
):
    request = DocumentRequest(
        company_id=current_user.company_id,
        doc_type=payload.doc_type.strip(),
        description=payload.description.strip(),
        status=RequestStatus.PENDING,
    )
    db.add(request)
    ActivityService.log(db, "request", f"Requested document: {request.doc_type}", current_user.email, current_user.id)
    db.commit()
    db.refresh(request)
    return ApiResponse.ok(DocumentRequestResponse.model_validate(request), message="Request sent successfully")


@router.put("/{request_id}", response_model=ApiResponse[DocumentRequestResponse])
def update_request_status(
    request_id: int,
    payload: DocumentRequestUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """A request moves from pending to completed exactly once."""
    request = db.get(DocumentRequest, request_id)
    if request is None:
        raise NotFoundError("Request")
    if payload.status != RequestStatus.COMPLETED:
        raise AppException("Requests can only be marked as completed", status_code=400, error_code="INVALID_TRANSITION")
    if request.status == RequestStatus.COMPLETED:
        raise ConflictError("Request is already completed")

    request.status = RequestStatus.COMPLETED
    request.completed_at = datetime.now(timezone.utc)
    ActivityService.log(db, "request", f"Completed document request: {request.doc_type}", current_user.email, current_user.id)
    db.commit()
    db.refresh(request)
    return ApiResponse.ok(DocumentRequestResponse.model_validate(request), message="Request marked as completed")
