# app/models/__init__.py
from .base import Base
from .service import Service
from .client import Client
from .availability import WeeklyAvailabilityRule, BlockedInterval
from .appointment import Appointment, AppointmentStatus, PaymentMethod, PaymentStatus
from .admin_setting import AdminSetting

__all__ = [
    "Base",
    "Service",
    "Client",
    "WeeklyAvailabilityRule",
    "BlockedInterval",
    "Appointment",
    "AppointmentStatus",
    "PaymentMethod",
    "PaymentStatus",
    "AdminSetting",
]
