from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from timeflow.core.database import Base
from timeflow.models._ids import new_id


class Profile(Base):
    """Employee / member profile. Auth lives elsewhere; this is the display record."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or "Unknown employee"
