"""
SQLAlchemy database models for persisted study schedules.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.sql import func

from .database import Base


class StudySchedule(Base):
    """One generated schedule for a user. Only the newest is active."""
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, index=True)

    # Identity from the external auth provider (e-mail or subject)
    user_id = Column(String(255), nullable=False, index=True)

    # List of ScheduleDay dicts
    schedule_data = Column(JSON, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_schedule_user_active", "user_id", "is_active"),
    )
