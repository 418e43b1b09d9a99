import csv
import io
import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from portal.core.exceptions import ConflictError, NotFoundError, StorageError
from portal.core.schemas import ApiResponse
from portal.database import get_db
from portal.models.company import Company
from portal.models.user import User, UserRole
from portal.routers.auth_deps import require_admin
from portal.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate
from portal.services import auth as auth_service
from portal.services.activity import ActivityService
from portal.services.storage import LocalObjectStore, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])


def _get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company")
    return company


def _email_taken(db: Session, email: str, exclude_user_id: int = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


@router.get("", response_model=ApiResponse[List[CompanyResponse]])
def list_companies(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    companies = db.query(Company).order_by(Company.created_at.desc(), Company.id.desc()).all()
    return ApiResponse.ok([CompanyResponse.model_validate(c) for c in companies])


@router.get("/export")
def export_companies(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    """CSV export of the company list. Credentials are never included."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["Name", "Email", "Phone", "Files", "Created"])
    for company in db.query(Company).order_by(Company.name).all():
        writer.writerow([
            company.name,
            company.email,
            company.phone or "",
            company.file_count,
            company.created_at.date().isoformat() if company.created_at else "",
        ])

    ActivityService.log(db, "export", "Exported companies list", current_user.email, current_user.id)
    db.commit()

    filename = f"companies_{date.today().isoformat()}.csv"
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=ApiResponse[CompanyResponse], status_code=201)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    if _email_taken(db, payload.email) or db.query(Company).filter(Company.email == payload.email).first():
        raise ConflictError("A company or user with this email already exists")

    company = Company(name=payload.name.strip(), email=payload.email, phone=(payload.phone or "").strip() or None)
    db.add(company)
    db.flush()

    db.add(User(
        email=payload.email,
        hashed_password=auth_service.get_password_hash(payload.password),
        role=UserRole.COMPANY,
        company_id=company.id,
        is_active=True,
    ))
    ActivityService.log(db, "company", f"Created company: {company.name}", current_user.email, current_user.id)
    db.commit()
    db.refresh(company)

    logger.info(f"Company {company.id} created by {current_user.email}")
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Company created")


@router.put("/{company_id}", response_model=ApiResponse[CompanyResponse])
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    company = _get_company(db, company_id)
    login = db.query(User).filter(User.company_id == company.id).first()

    if payload.email and payload.email != company.email:
        taken_by_company = db.query(Company).filter(Company.email == payload.email, Company.id != company.id).first()
        if taken_by_company or _email_taken(db, payload.email, exclude_user_id=login.id if login else None):
            raise ConflictError("A company or user with this email already exists")
        company.email = payload.email
        if login:
            login.email = payload.email

    if payload.name is not None:
        company.name = payload.name.strip()
    if payload.phone is not None:
        company.phone = payload.phone.strip() or None
    if payload.password and login:
        login.hashed_password = auth_service.get_password_hash(payload.password)

    ActivityService.log(db, "company", f"Updated company: {company.name}", current_user.email, current_user.id)
    db.commit()
    db.refresh(company)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Company updated")


@router.delete("/{company_id}", response_model=ApiResponse[None])
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    current_user: User = Depends(require_admin)
):
    company = _get_company(db, company_id)
    name = company.name
    storage_paths = [f.storage_path for f in company.files]

    # Rows first (ORM cascade), then the bytes they pointed to
    db.delete(company)
    ActivityService.log(db, "company", f"Deleted company: {name} ({len(storage_paths)} file(s))", current_user.email, current_user.id)
    db.commit()

    for path in storage_paths:
        try:
            storage.delete(path)
        except StorageError as e:
            logger.error(f"Orphaned stored object {path} after deleting company {company_id}: {e.message}")

    logger.info(f"Company {company_id} deleted with {len(storage_paths)} file(s)")
    return ApiResponse.ok(message="Company deleted")
