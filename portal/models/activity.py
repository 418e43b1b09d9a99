from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from portal.database import Base


class ActivityLogEntry(Base):
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, nullable=False, index=True)
    details = Column(Text, nullable=False, default="")
    user = Column(String, nullable=False, default="Unknown", index=True)
    # Actor account; survives changes to its email
    user_id = Column(Integer, nullable=True, index=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())
