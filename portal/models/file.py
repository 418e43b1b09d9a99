from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from portal.database import Base


class FileCategory(str, enum.Enum):
    TAX = "Tax"
    GST = "GST"
    FINANCIAL = "Financial"
    LEGAL = "Legal"
    AUDIT = "Audit"
    OTHER = "Other"


class File(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False, default="application/octet-stream")
    size = Column(Integer, nullable=False, default=0)
    category = Column(Enum(FileCategory), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    storage_path = Column(String, nullable=False, unique=True)
    uploaded_by = Column(String, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())
    expiry_date = Column(Date, nullable=True)

    company = relationship("Company", back_populates="files")
    reads = relationship("FileRead", back_populates="file", cascade="all, delete-orphan")

    @property
    def read_by(self):
        """Ids of the company users who have viewed this file."""
        return sorted(r.user_id for r in self.reads)


class FileRead(Base):
    """One row per (file, viewer): the file's read-set."""
    __tablename__ = "file_reads"
    __table_args__ = (UniqueConstraint("file_id", "user_id", name="uq_file_reads_file_user"),)

    id = Column(Integer, primary_key=True, index=True)
    file_id = Column(Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    read_at = Column(DateTime(timezone=True), server_default=func.now())

    file = relationship("File", back_populates="reads")
    user = relationship("User", back_populates="file_reads")
