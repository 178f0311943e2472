# app/schemas/task_payloads.py
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime, timezone

NotificationKind = Literal[
    "booking_request",     # to admin: new pending request with accept/reject links
    "booking_confirmed",   # to client: booking confirmed immediately
    "booking_approved",    # to client: admin accepted the request
    "booking_rejected",    # to client: admin declined the request
]


class NotificationEvent(BaseModel):
    """Post-commit side effect emitted by the booking core"""
    kind: NotificationKind = Field(..., description="Which email to send")
    appointment_id: str = Field(..., description="Appointment the email is about")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
