# ===== app/models/appointment.py =====
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, DDL, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
import enum
import uuid


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class PaymentMethod(str, enum.Enum):
    PAY_AT_APPOINTMENT = "pay_at_appointment"
    PAY_ONLINE = "pay_online"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


# Allowed status moves; anything not listed is rejected
STATUS_TRANSITIONS = {
    AppointmentStatus.PENDING.value: {
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.CANCELLED.value,
    },
    AppointmentStatus.CONFIRMED.value: {
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.NO_SHOW.value,
    },
    AppointmentStatus.CANCELLED.value: set(),
    AppointmentStatus.COMPLETED.value: set(),
    AppointmentStatus.NO_SHOW.value: set(),
}


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=True)

    # Appointment details (absolute instants, end = start + service duration)
    start_datetime = Column(DateTime(timezone=True), nullable=False, index=True)
    end_datetime = Column(DateTime(timezone=True), nullable=False)
    service_name = Column(String(200), nullable=True)
    client_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String, default=AppointmentStatus.PENDING.value, nullable=False, index=True)
    cancellation_token = Column(String(64), nullable=False, index=True)

    # Payment
    payment_method = Column(String, default=PaymentMethod.PAY_AT_APPOINTMENT.value, nullable=False)
    payment_status = Column(String, default=PaymentStatus.UNPAID.value, nullable=False)
    square_payment_id = Column(String(64), nullable=True)

    # Square sync (square mode)
    square_booking_id = Column(String(64), nullable=True)
    square_variation_id = Column(String(64), nullable=True)

    # Reminders & notifications
    confirmation_sent = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    client = relationship("Client", backref="appointments", lazy="joined")
    service = relationship("Service", lazy="joined")

    def __repr__(self):
        return f"<Appointment(id={self.id}, start={self.start_datetime}, status={self.status})>"


# Storage-level double-booking guard. Range types and gist exclusion are
# PostgreSQL-only, so the constraint is attached only for that dialect.
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        "ALTER TABLE appointments ADD CONSTRAINT appointments_no_overlap "
        "EXCLUDE USING gist (tstzrange(start_datetime, end_datetime, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    ).execute_if(dialect="postgresql"),
)
