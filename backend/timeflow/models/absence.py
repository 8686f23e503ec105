from sqlalchemy import Column, String, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from timeflow.core.database import Base
from timeflow.models._ids import new_id


class Absence(Base):
    """Vacation / leave request. Only approved rows matter to analytics."""
    __tablename__ = "absences"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    absence_type = Column(String, nullable=True)  # vacation, sick_leave, personal, ...
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    status = Column(String, default="pending", nullable=False)  # pending, approved, rejected

    created_at = Column(DateTime(timezone=True), server_default=func.now())
