# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, company, file, notification, document_request, activity

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .company import Company
from .file import File, FileCategory, FileRead
from .notification import Notification
from .document_request import DocumentRequest, RequestStatus
from .activity import ActivityLogEntry

__all__ = [
    "User",
    "UserRole",
    "Company",
    "File",
    "FileCategory",
    "FileRead",
    "Notification",
    "DocumentRequest",
    "RequestStatus",
    "ActivityLogEntry",
]
