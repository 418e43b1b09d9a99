from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from portal.database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Deleting a company removes everything it owns
    users = relationship("User", back_populates="company", cascade="all, delete-orphan")
    files = relationship("File", back_populates="company", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="company", cascade="all, delete-orphan")
    requests = relationship("DocumentRequest", back_populates="company", cascade="all, delete-orphan")

    @property
    def file_count(self) -> int:
        return len(self.files)
