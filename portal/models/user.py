"""
User Model.
A credential record: the single admin, or the login of one company.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from portal.database import Base


class UserRole(str, enum.Enum):
    """
    - ADMIN: manages every company, uploads files, sends notifications
    - COMPANY: tenant account, sees only rows of its own company
    """
    ADMIN = "admin"
    COMPANY = "company"


class User(Base):
    __tablename__ = "users"
    # Ids are never reused; activity entries reference them
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.COMPANY, nullable=False)

    # Company identity for company accounts; NULL for the admin
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    company = relationship("Company", back_populates="users")
    file_reads = relationship("FileRead", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def company_name(self):
        return self.company.name if self.company else None
