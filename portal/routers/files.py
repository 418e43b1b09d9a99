from datetime import date
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, File as FormFile, Form, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.exceptions import AppException, NotFoundError, StorageError
from portal.core.schemas import ApiResponse
from portal.database import get_db
from portal.models.company import Company
from portal.models.file import File, FileCategory, FileRead
from portal.models.user import User
from portal.routers.auth_deps import (
    ensure_company_access,
    get_current_user,
    require_admin,
    require_company_context,
    scope_company_id,
)
from portal.schemas.file import FileResponse, SignedUrl, UploadFailure, UploadResult
from portal.services.activity import ActivityService
from portal.services.storage import LocalObjectStore, get_storage, sign_storage_path
from portal.services.upload import process_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


def _get_file(db: Session, file_id: int) -> File:
    record = db.get(File, file_id)
    if record is None:
        raise NotFoundError("File")
    return record


@router.get("", response_model=ApiResponse[List[FileResponse]])
def list_files(
    category: Optional[FileCategory] = None,
    company_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Admin: every file, optionally filtered by company.
    Company: only its own files, whatever company filter was sent.
    """
    query = db.query(File)
    scoped = scope_company_id(current_user, company_id)
    if scoped is not None:
        query = query.filter(File.company_id == scoped)
    if category is not None:
        query = query.filter(File.category == category)
    if search:
        query = query.filter(File.name.ilike(f"%{search.strip()}%"))
    files = query.order_by(File.uploaded_at.desc(), File.id.desc()).all()
    return ApiResponse.ok([FileResponse.model_validate(f) for f in files])


@router.post("/upload", response_model=ApiResponse[UploadResult], status_code=status.HTTP_201_CREATED)
async def upload_files(
    company_id: int = Form(...),
    category: FileCategory = Form(...),
    expiry_date: Optional[date] = Form(None),
    files: List[UploadFile] = FormFile(...),
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    current_user: User = Depends(require_admin)
):
    """
    Store one or more files for a company under a category.

    Best effort per file: 201 when all were stored, 207 when only some were,
    502 when none were. ``data.failed`` names each rejected file.
    """
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company")
    if expiry_date is not None and expiry_date < date.today():
        raise AppException("Expiry date cannot be in the past", status_code=400, error_code="VALIDATION_ERROR")

    logger.info(f"Upload request: {len(files)} file(s) for company {company.id} ({category.value}) by {current_user.email}")
    outcome = await process_upload(
        db,
        storage,
        company,
        category,
        files,
        uploaded_by=current_user.email,
        expiry_date=expiry_date,
    )

    if outcome.uploaded:
        names = ", ".join(f.name for f in outcome.uploaded)
        ActivityService.log(db, "upload", f"Uploaded {len(outcome.uploaded)} file(s) to {company.name}: {names}", current_user.email, current_user.id)
        db.commit()

    result = UploadResult(
        uploaded=[FileResponse.model_validate(f) for f in outcome.uploaded],
        failed=[UploadFailure(**failure) for failure in outcome.failed],
    )
    if outcome.complete:
        status_code, message = status.HTTP_201_CREATED, f"{len(result.uploaded)} file(s) uploaded"
    elif outcome.uploaded:
        status_code, message = status.HTTP_207_MULTI_STATUS, f"{len(result.uploaded)} file(s) uploaded, {len(result.failed)} failed"
    else:
        status_code, message = status.HTTP_502_BAD_GATEWAY, "Upload failed"

    body = ApiResponse(success=outcome.complete, data=result, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.delete("/{file_id}", response_model=ApiResponse[None])
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    current_user: User = Depends(require_admin)
):
    record = _get_file(db, file_id)
    storage_path, name = record.storage_path, record.name

    db.delete(record)
    ActivityService.log(db, "delete", f"Deleted file: {name}", current_user.email, current_user.id)
    db.commit()

    try:
        storage.delete(storage_path)
    except StorageError as e:
        logger.error(f"Orphaned stored object {storage_path} after deleting file {file_id}: {e.message}")

    return ApiResponse.ok(message="File deleted")


@router.post("/{file_id}/mark-read", response_model=ApiResponse[FileResponse])
def mark_file_read(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_company_context)
):
    """Add the caller to the file's read-set. Repeated calls change nothing."""
    record = _get_file(db, file_id)
    ensure_company_access(current_user, record.company_id)

    already_read = db.query(FileRead).filter(
        FileRead.file_id == record.id,
        FileRead.user_id == current_user.id
    ).first()
    if already_read is None:
        db.add(FileRead(file_id=record.id, user_id=current_user.id))
        try:
            db.commit()
        except IntegrityError:
            # A concurrent call inserted the same pair first
            db.rollback()
        db.refresh(record)

    return ApiResponse.ok(FileResponse.model_validate(record))


@router.get("/{file_id}/url", response_model=ApiResponse[SignedUrl])
def get_file_url(
    file_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Short-lived signed URL for viewing or downloading the file."""
    record = _get_file(db, file_id)
    ensure_company_access(current_user, record.company_id)

    expires_in = settings.signed_url_expire_seconds
    token = sign_storage_path(record.storage_path, record.name, expires_in=expires_in)
    url = str(request.url_for("download_stored_file", token=token))
    return ApiResponse.ok(SignedUrl(url=url, expires_in=expires_in))
