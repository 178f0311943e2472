# app/schemas/__init__.py
from .booking import (
    ClientInfo,
    BookingRequest,
    ServiceInfo,
    SlotOut,
    AvailableSlotsResponse,
    NextAvailableResponse,
    AppointmentOut,
    BookingResponse,
)

from .admin import (
    DayAvailability,
    AvailabilityUpdateRequest,
    BlockedTimeCreateRequest,
    AppointmentUpdateRequest,
    SettingUpdateRequest,
)

from .task_payloads import NotificationEvent

__all__ = [
    "ClientInfo",
    "BookingRequest",
    "ServiceInfo",
    "SlotOut",
    "AvailableSlotsResponse",
    "NextAvailableResponse",
    "AppointmentOut",
    "BookingResponse",
    "DayAvailability",
    "AvailabilityUpdateRequest",
    "BlockedTimeCreateRequest",
    "AppointmentUpdateRequest",
    "SettingUpdateRequest",
    "NotificationEvent",
]
