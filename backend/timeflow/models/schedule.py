from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.sql import func
from timeflow.core.database import Base
from timeflow.models._ids import new_id


class ScheduledHours(Base):
    """Shift assigned by the owner: one row per employee per day."""
    __tablename__ = "scheduled_hours"
    __table_args__ = (UniqueConstraint("company_id", "user_id", "date", name="uq_scheduled_hours_day"),)

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    expected_hours = Column(Numeric(5, 2), nullable=False, default=0)
    start_time = Column(String(5), nullable=True)  # "HH:MM", company local time
    end_time = Column(String(5), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
