"""Clock events and the work sessions derived from them.

Both tables are written by the clock gate; analytics only reads them.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, BigInteger
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from timeflow.core.database import Base
from timeflow.models._ids import new_id
import enum


class EventType(str, enum.Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    PAUSE_START = "pause_start"
    PAUSE_END = "pause_end"


class TimeEvent(Base):
    """Individual fichaje: clock in/out or pause start/end."""
    __tablename__ = "time_events"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    event_type = Column(String, nullable=False)
    event_time = Column(DateTime(timezone=True), nullable=False, index=True)

    # GPS location (optional)
    latitude = Column(Numeric(10, 7), nullable=True)
    longitude = Column(Numeric(10, 7), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("Profile")


class WorkSession(Base):
    """One clock-in → clock-out span, pauses included."""
    __tablename__ = "work_sessions"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    clock_in_time = Column(DateTime(timezone=True), nullable=False, index=True)
    clock_out_time = Column(DateTime(timezone=True), nullable=True)

    # Milliseconds
    total_pause_duration = Column(BigInteger, nullable=True)
    total_work_duration = Column(BigInteger, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
