# app/schemas/booking.py
"""
Pydantic schemas for the public booking flow
"""
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List
import datetime as dt

from app.models.appointment import PaymentMethod
from app.services.scheduling.time_utils import parse_hhmm


# ============================================================================
# Request Schemas
# ============================================================================

class ClientInfo(BaseModel):
    first_name: str = Field(..., min_length=1, description="First name is required")
    last_name: str = Field(..., min_length=1, description="Last name is required")
    email: EmailStr
    phone: str = Field(..., min_length=10, description="Phone number is required")

    @field_validator("first_name", "last_name", "phone")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BookingRequest(BaseModel):
    service_id: str = Field(..., min_length=1)
    date: dt.date = Field(..., description="Business-local date, YYYY-MM-DD")
    time: str = Field(..., description="Business-local start time, HH:mm")
    client: ClientInfo
    notes: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.PAY_AT_APPOINTMENT
    payment_token: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        parsed = parse_hhmm(v)
        return f"{parsed.hour:02d}:{parsed.minute:02d}"

    @model_validator(mode="after")
    def token_required_for_online_payment(self) -> "BookingRequest":
        if self.payment_method == PaymentMethod.PAY_ONLINE and not self.payment_token:
            raise ValueError("payment_token is required when payment_method is pay_online")
        return self


# ============================================================================
# Response Schemas
# ============================================================================

class ServiceInfo(BaseModel):
    """A bookable service, from the local table or the Square catalog"""
    id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0)
    price_cents: Optional[int] = None
    price_display: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    square_catalog_id: Optional[str] = None
    square_variation_id: Optional[str] = None


class SlotOut(BaseModel):
    time: str
    available: bool


class AvailableSlotsResponse(BaseModel):
    date: dt.date
    slots: List[SlotOut]


class NextAvailableResponse(BaseModel):
    date: Optional[dt.date] = None


class AppointmentOut(BaseModel):
    """Client-facing view of an appointment; admin notes are never included"""
    id: str
    service_name: Optional[str] = None
    start_datetime: dt.datetime
    end_datetime: dt.datetime
    duration_minutes: int
    status: str
    payment_method: str
    payment_status: str
    client: dict
    notes: Optional[str] = None
    cancellation_token: Optional[str] = None


class BookingResponse(BaseModel):
    success: bool = True
    appointment: AppointmentOut
