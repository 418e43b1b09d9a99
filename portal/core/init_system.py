import logging
from typing import Optional

from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.database import SessionLocal
from portal.models.user import User, UserRole
from portal.services import auth as auth_service

logger = logging.getLogger(__name__)


def ensure_admin(db: Session, email: str, password: str, reset_password: bool = False) -> User:
    """Create the admin account if missing; optionally reset its password."""
    admin = db.query(User).filter(User.email == email).first()
    if admin is None:
        admin = User(
            email=email,
            hashed_password=auth_service.get_password_hash(password),
            role=UserRole.ADMIN,
            is_active=True,
        )
        db.add(admin)
        logger.info(f"✓ Created admin account: {email}")
    elif admin.role != UserRole.ADMIN:
        raise ValueError(f"{email} already belongs to a company account")
    elif reset_password:
        admin.hashed_password = auth_service.get_password_hash(password)
        logger.info(f"✓ Reset password for admin account: {email}")
    db.commit()
    db.refresh(admin)
    return admin


def init_system_data(db: Optional[Session] = None):
    """
    Bootstraps the admin account from ADMIN_EMAIL / ADMIN_PASSWORD when set.
    """
    if not (settings.admin_email and settings.admin_password):
        logger.info("System initialization check: no bootstrap admin configured.")
        return

    owns_session = db is None
    db = db or SessionLocal()
    try:
        ensure_admin(db, settings.admin_email, settings.admin_password)
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        if owns_session:
            db.close()
