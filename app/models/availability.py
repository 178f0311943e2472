# ===== app/models/availability.py =====
from sqlalchemy import Column, String, Integer, Boolean, Time, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.models.base import Base
from app.services.scheduling.time_utils import ensure_utc
import uuid


class WeeklyAvailabilityRule(Base):
    """Standing weekly hours, one row per day of week"""
    __tablename__ = "availability"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    day_of_week = Column(Integer, nullable=False, unique=True)  # 0=Sunday, 6=Saturday
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)

    is_active = Column(Boolean, default=True)

    def to_dict(self):
        return {
            "id": str(self.id),
            "day_of_week": self.day_of_week,
            "is_active": self.is_active,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
        }


class BlockedInterval(Base):
    """Explicit unavailability (vacation, personal time). Created or deleted, never edited."""
    __tablename__ = "blocked_times"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    start_datetime = Column(DateTime(timezone=True), nullable=False, index=True)
    end_datetime = Column(DateTime(timezone=True), nullable=False, index=True)
    reason = Column(String, nullable=True)  # "Vacation", "Personal", etc.
    is_all_day = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            "id": str(self.id),
            "start_datetime": ensure_utc(self.start_datetime).isoformat(),
            "end_datetime": ensure_utc(self.end_datetime).isoformat(),
            "reason": self.reason,
            "is_all_day": self.is_all_day,
        }
