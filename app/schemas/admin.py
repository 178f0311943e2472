# app/schemas/admin.py
"""
Pydantic schemas for admin endpoints
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Any, Literal
import datetime as dt

from app.models.appointment import AppointmentStatus
from app.services.scheduling.time_utils import parse_hhmm


class DayAvailability(BaseModel):
    value: int = Field(..., ge=0, le=6, description="Day of week, 0=Sunday")
    is_active: bool
    start_time: str
    end_time: str
    id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        parsed = parse_hhmm(v)
        return f"{parsed.hour:02d}:{parsed.minute:02d}"

    @model_validator(mode="after")
    def same_day_window(self) -> "DayAvailability":
        # Windows may not cross midnight, even for inactive days
        if parse_hhmm(self.start_time) >= parse_hhmm(self.end_time):
            raise ValueError(
                f"start_time must be before end_time (day {self.value}); "
                f"windows crossing midnight are not supported"
            )
        return self


class AvailabilityUpdateRequest(BaseModel):
    availability: List[DayAvailability]

    @field_validator("availability")
    @classmethod
    def unique_days(cls, v: List[DayAvailability]) -> List[DayAvailability]:
        days = [d.value for d in v]
        if len(days) != len(set(days)):
            raise ValueError("Each day_of_week may appear only once")
        return v


class BlockedTimeCreateRequest(BaseModel):
    block_type: Literal["full-day", "time-range"]
    start_date: dt.date
    end_date: dt.date
    start_time: str = "00:00"
    end_time: str = "23:59"
    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        parsed = parse_hhmm(v)
        return f"{parsed.hour:02d}:{parsed.minute:02d}"

    @model_validator(mode="after")
    def end_after_start(self) -> "BlockedTimeCreateRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.block_type == "time-range" and self.start_date == self.end_date:
            if parse_hhmm(self.start_time) >= parse_hhmm(self.end_time):
                raise ValueError("end_time must be after start_time")
        return self


class AppointmentUpdateRequest(BaseModel):
    status: Optional[AppointmentStatus] = None
    admin_notes: Optional[str] = None


class SettingUpdateRequest(BaseModel):
    key: str = Field(..., min_length=1)
    value: Any = None
