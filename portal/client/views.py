"""
Rendering layer: pure functions from store contents to view models.

Nothing here mutates state or talks to the network; a view is recomputed in
full whenever its collection is replaced.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from portal.client.store import PortalStore
from portal.schemas.activity import ActivityResponse
from portal.schemas.company import CompanyResponse
from portal.schemas.file import FileResponse

EXPIRY_WARNING_DAYS = 7
SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


@dataclass(frozen=True)
class FileCard:
    id: int
    name: str
    category: str
    size: str
    icon: str
    uploaded_at: Optional[datetime]
    is_new: bool
    expiring_soon: bool


@dataclass(frozen=True)
class RequestRow:
    id: int
    company: str
    doc_type: str
    description: str
    status: str
    requested_at: Optional[datetime]
    completed_at: Optional[datetime]


@dataclass(frozen=True)
class NotificationRow:
    id: int
    company: str
    subject: str
    message: str
    read: bool
    sent_at: Optional[datetime]


@dataclass(frozen=True)
class AdminStats:
    companies: int
    files: int
    notifications: int
    pending_requests: int


@dataclass(frozen=True)
class CompanyStats:
    files: int
    unread_files: int
    unread_notifications: int
    pending_requests: int


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    value, exponent = float(size), 0
    while value >= 1024 and exponent < len(SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {SIZE_UNITS[exponent]}"


def file_icon(content_type: str) -> str:
    content_type = (content_type or "").lower()
    if "pdf" in content_type:
        return "file-pdf"
    if "image" in content_type:
        return "file-image"
    if "sheet" in content_type or "excel" in content_type:
        return "file-excel"
    if "word" in content_type or "document" in content_type:
        return "file-word"
    return "file"


def is_expiring_soon(expiry_date: Optional[date], today: Optional[date] = None) -> bool:
    if expiry_date is None:
        return False
    today = today or date.today()
    return expiry_date < today + timedelta(days=EXPIRY_WARNING_DAYS)


def password_strength(password: str) -> str:
    score = sum([
        len(password) >= 6,
        len(password) >= 10,
        bool(re.search(r"[a-z]", password) and re.search(r"[A-Z]", password)),
        bool(re.search(r"\d", password)),
        bool(re.search(r"[^a-zA-Z\d]", password)),
    ])
    if score >= 4:
        return "Strong"
    if score >= 3:
        return "Medium"
    return "Weak"


def filter_files(
    files: Iterable[FileResponse],
    query: str = "",
    company_id: Optional[int] = None,
    category: Optional[str] = None,
) -> List[FileResponse]:
    query = query.strip().lower()
    return [
        f for f in files
        if (not query or query in f.name.lower())
        and (company_id is None or f.company_id == company_id)
        and (not category or f.category.value == category)
    ]


def filter_companies(companies: Iterable[CompanyResponse], query: str = "") -> List[CompanyResponse]:
    """Case-insensitive match on company name or email."""
    query = query.strip().lower()
    return [
        c for c in companies
        if not query or query in c.name.lower() or query in c.email.lower()
    ]


def file_cards(files: Sequence[FileResponse], viewer_id: Optional[int] = None, today: Optional[date] = None) -> List[FileCard]:
    """
    ``viewer_id`` is the company user looking at the list; files it has not
    opened carry the NEW badge. Admin listings pass None.
    """
    return [
        FileCard(
            id=f.id,
            name=f.name,
            category=f.category.value,
            size=format_file_size(f.size),
            icon=file_icon(f.type),
            uploaded_at=f.uploaded_at,
            is_new=viewer_id is not None and viewer_id not in f.read_by,
            expiring_soon=is_expiring_soon(f.expiry_date, today),
        )
        for f in files
    ]


def admin_stats(store: PortalStore) -> AdminStats:
    return AdminStats(
        companies=len(store.companies),
        files=len(store.files),
        notifications=len(store.notifications),
        pending_requests=sum(1 for r in store.requests if r.status.value == "pending"),
    )


def company_stats(store: PortalStore, viewer_id: int) -> CompanyStats:
    return CompanyStats(
        files=len(store.files),
        unread_files=sum(1 for f in store.files if viewer_id not in f.read_by),
        unread_notifications=sum(1 for n in store.notifications if not n.read),
        pending_requests=sum(1 for r in store.requests if r.status.value == "pending"),
    )


def company_name(store: PortalStore, company_id: int) -> str:
    for company in store.companies:
        if company.id == company_id:
            return company.name
    return "Deleted Company"


def request_rows(store: PortalStore) -> List[RequestRow]:
    """Admin request table: company name resolved from the companies collection."""
    return [
        RequestRow(
            id=r.id,
            company=company_name(store, r.company_id),
            doc_type=r.doc_type,
            description=r.description,
            status=r.status.value,
            requested_at=r.requested_at,
            completed_at=r.completed_at,
        )
        for r in store.requests
    ]


def notification_rows(store: PortalStore) -> List[NotificationRow]:
    return [
        NotificationRow(
            id=n.id,
            company=company_name(store, n.company_id),
            subject=n.subject,
            message=n.message,
            read=n.read,
            sent_at=n.sent_at,
        )
        for n in store.notifications
    ]


def login_history(entries: Iterable[ActivityResponse], user_id: int, limit: int = 5) -> List[ActivityResponse]:
    return [e for e in entries if e.action == "login" and e.user_id == user_id][:limit]
