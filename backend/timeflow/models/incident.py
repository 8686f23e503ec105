from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from timeflow.core.database import Base
from timeflow.models._ids import new_id


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    type = Column(String, nullable=False)  # late_arrival, missed_clock_out, ...
    description = Column(Text, nullable=True)
    status = Column(String, default="pending", nullable=False)  # pending, resolved, dismissed

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
