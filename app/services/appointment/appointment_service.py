# ============================================================================
# app/services/appointment/appointment_service.py
# ============================================================================
"""
Booking lifecycle: create, respond (accept/reject), admin updates.

Every write that claims a time interval re-checks it with BookingConflictGuard
inside the same transaction as the insert. Side effects (emails) are not sent
here; they are returned as NotificationEvent objects for the caller to
dispatch once the transaction has committed.
"""
import logging
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.errors import NotFound, PaymentFailed, SlotConflict, UpstreamUnavailable, ValidationFailed
from app.models.appointment import (
    STATUS_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from app.schemas.booking import AppointmentOut, BookingRequest, ServiceInfo
from app.schemas.task_payloads import NotificationEvent
from app.services.catalog.catalog_service import CatalogService
from app.services.client.client_service import ClientService
from app.services.payment.payment_service import PaymentService
from app.services.scheduling.availability_resolver import AvailabilityResolver
from app.services.scheduling.conflict_guard import BookingConflictGuard
from app.services.scheduling.obstructions import ObstructionAggregator
from app.services.scheduling.time_utils import (
    ensure_utc,
    local_day_bounds,
    local_wall_clock,
    minutes_of_day,
    overlaps,
    parse_hhmm,
)
from app.services.settings.settings_service import SettingsService
from app.services.square.client import SquareClient, get_square_client

logger = logging.getLogger(__name__)

RESPOND_ACTIONS = {"accept", "reject"}


@dataclass
class BookingResult:
    appointment: Appointment
    service: ServiceInfo
    events: List[NotificationEvent] = field(default_factory=list)


@dataclass
class AppointmentChange:
    appointment: Appointment
    outcome: str  # resulting status, or "already_processed"
    events: List[NotificationEvent] = field(default_factory=list)


def _local_service_uuid(service: ServiceInfo) -> Optional[uuid.UUID]:
    # Square catalog ids are not UUIDs; only local services get a foreign key
    try:
        return uuid.UUID(service.id)
    except ValueError:
        return None


def _parse_appointment_id(appointment_id: Any) -> uuid.UUID:
    try:
        return uuid.UUID(str(appointment_id))
    except ValueError:
        raise NotFound("Appointment not found")


def duration_minutes(appointment: Appointment) -> int:
    start = ensure_utc(appointment.start_datetime)
    end = ensure_utc(appointment.end_datetime)
    return int((end - start).total_seconds() // 60)


def serialize_public(appointment: Appointment, include_token: bool = False) -> AppointmentOut:
    """Client-safe view: first name and email only, no admin notes"""
    return AppointmentOut(
        id=str(appointment.id),
        service_name=appointment.service_name,
        start_datetime=ensure_utc(appointment.start_datetime),
        end_datetime=ensure_utc(appointment.end_datetime),
        duration_minutes=duration_minutes(appointment),
        status=appointment.status,
        payment_method=appointment.payment_method,
        payment_status=appointment.payment_status,
        client={
            "first_name": appointment.client.first_name,
            "email": appointment.client.email,
        },
        notes=appointment.client_notes,
        cancellation_token=appointment.cancellation_token if include_token else None,
    )


def serialize_admin(appointment: Appointment) -> Dict[str, Any]:
    return {
        "id": str(appointment.id),
        "service_id": str(appointment.service_id) if appointment.service_id else None,
        "service_name": appointment.service_name,
        "start_datetime": ensure_utc(appointment.start_datetime).isoformat(),
        "end_datetime": ensure_utc(appointment.end_datetime).isoformat(),
        "duration_minutes": duration_minutes(appointment),
        "status": appointment.status,
        "payment_method": appointment.payment_method,
        "payment_status": appointment.payment_status,
        "client": appointment.client.to_dict() if appointment.client else None,
        "client_notes": appointment.client_notes,
        "admin_notes": appointment.admin_notes,
        "square_booking_id": appointment.square_booking_id,
        "square_payment_id": appointment.square_payment_id,
        "created_at": ensure_utc(appointment.created_at).isoformat() if appointment.created_at else None,
        "cancelled_at": ensure_utc(appointment.cancelled_at).isoformat() if appointment.cancelled_at else None,
    }


class AppointmentService:
    """Handles appointment operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: Any) -> Appointment:
        appointment = db.query(Appointment).filter(
            Appointment.id == _parse_appointment_id(appointment_id)
        ).first()
        if not appointment:
            raise NotFound("Appointment not found")
        return appointment

    @staticmethod
    async def create_booking(
            db: Session,
            request: BookingRequest,
            square: Optional[SquareClient] = None,
            now: Optional[datetime] = None,
            correlation_id: Optional[str] = None,
    ) -> BookingResult:
        """
        Book the requested slot.

        Local backend: the appointment is confirmed immediately.
        Square backend: it is stored as a pending request for the admin to
        accept or reject; Square itself is only written on accept.

        Raises:
            NotFound: unknown service
            ValidationFailed: start in the past, online payment for a variable-price
                service, or (local backend) a closed day or a time outside business hours
            SlotConflict: the interval overlaps a non-cancelled appointment or,
                on the local backend, a blocked interval or the buffer before
                another appointment
            PaymentFailed: online charge failed; the appointment is left cancelled
        """
        settings = get_settings()
        now = now or datetime.now(timezone.utc)
        service = await CatalogService.get_service(db, request.service_id, square)

        time_of_day = parse_hhmm(request.time)
        start = local_wall_clock(request.date, time_of_day)
        end = start + timedelta(minutes=service.duration_minutes)

        if start <= now:
            raise ValidationFailed("Cannot book a time in the past")
        if request.payment_method == PaymentMethod.PAY_ONLINE and service.price_cents is None:
            raise ValidationFailed("This service does not have a fixed price and cannot be paid online")

        square_mode = settings.SCHEDULING_BACKEND == "square"
        status = AppointmentStatus.PENDING if square_mode else AppointmentStatus.CONFIRMED

        # Square enforces its own hours; locally the stored rules and blocks apply
        if not square_mode:
            AppointmentService._check_business_hours(db, request.date, time_of_day, service.duration_minutes)
            AppointmentService._check_obstructions(db, request.date, start, end)

        client = ClientService.find_or_create(db, request.client)

        if BookingConflictGuard.exists_overlapping(db, start, end):
            db.rollback()
            logger.info(f"Slot conflict for {request.date} {request.time} ({service.name})")
            raise SlotConflict()

        appointment = Appointment(
            client_id=client.id,
            service_id=_local_service_uuid(service),
            service_name=service.name,
            start_datetime=start,
            end_datetime=end,
            client_notes=request.notes,
            status=status.value,
            cancellation_token=secrets.token_urlsafe(32),
            payment_method=request.payment_method.value,
            payment_status=PaymentStatus.UNPAID.value,
            square_variation_id=service.square_variation_id,
        )
        db.add(appointment)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if BookingConflictGuard.is_overlap_violation(e):
                logger.info(f"Slot conflict (constraint) for {request.date} {request.time} ({service.name})")
                raise SlotConflict()
            raise
        db.refresh(appointment)

        logger.info(
            f"Created {appointment.status} appointment {appointment.id} "
            f"for {client.email} at {start.isoformat()}"
        )

        if request.payment_method == PaymentMethod.PAY_ONLINE:
            await AppointmentService._capture_payment(db, appointment, service, request.payment_token, square, now)

        kind = "booking_request" if square_mode else "booking_confirmed"
        events = [NotificationEvent(kind=kind, appointment_id=str(appointment.id), correlation_id=correlation_id)]
        return BookingResult(appointment=appointment, service=service, events=events)

    @staticmethod
    def _check_business_hours(db: Session, day: date, time_of_day: time, duration: int) -> None:
        window = AvailabilityResolver.resolve(db, day)
        if not window.open:
            raise ValidationFailed("We are closed on that day", details={"date": day.isoformat()})

        first_minute = minutes_of_day(time_of_day)
        if (first_minute < minutes_of_day(window.window_start)
                or first_minute + duration > minutes_of_day(window.window_end)):
            raise ValidationFailed(
                "That time is outside business hours",
                details={"date": day.isoformat(), "time": time_of_day.strftime("%H:%M")},
            )

    @staticmethod
    def _check_obstructions(db: Session, day: date, start: datetime, end: datetime) -> None:
        """Same rules as the slot list: buffer before appointments, blocked time compared raw"""
        obstructions = ObstructionAggregator.for_day(db, day)
        buffer = timedelta(minutes=SettingsService.load(db).buffer_time_minutes)

        if any(overlaps(start, end, block.start, block.end) for block in obstructions.blocked):
            logger.info(f"Booking at {start.isoformat()} falls in blocked time")
            raise SlotConflict()
        if any(overlaps(start, end, appt.start - buffer, appt.end) for appt in obstructions.appointments):
            logger.info(f"Booking at {start.isoformat()} runs into the buffer before another appointment")
            raise SlotConflict()

    @staticmethod
    async def _capture_payment(
            db: Session,
            appointment: Appointment,
            service: ServiceInfo,
            payment_token: str,
            square: Optional[SquareClient],
            now: datetime,
    ) -> None:
        try:
            payment = await PaymentService.charge(square or get_square_client(), appointment, service, payment_token)
        except PaymentFailed:
            appointment.status = AppointmentStatus.CANCELLED.value
            appointment.payment_status = PaymentStatus.FAILED.value
            appointment.cancelled_at = now
            db.commit()
            logger.warning(f"Appointment {appointment.id} cancelled after failed payment")
            raise

        appointment.payment_status = PaymentStatus.PAID.value
        appointment.square_payment_id = payment.get("id")
        db.commit()
        db.refresh(appointment)

    @staticmethod
    async def respond(
            db: Session,
            appointment_id: Any,
            action: str,
            token: str,
            square: Optional[SquareClient] = None,
            now: Optional[datetime] = None,
            correlation_id: Optional[str] = None,
    ) -> AppointmentChange:
        """
        Admin accept/reject of a pending request via the emailed link.

        A request that is no longer pending is reported as already processed
        and left untouched. Accept in square mode creates the Square booking
        first; if Square fails the request stays pending.
        """
        if action not in RESPOND_ACTIONS:
            raise ValidationFailed("Invalid action", details={"action": action})

        appointment = AppointmentService.get_appointment(db, appointment_id)
        if not token or not secrets.compare_digest(token.encode(), appointment.cancellation_token.encode()):
            raise ValidationFailed("Invalid or expired link")

        if appointment.status != AppointmentStatus.PENDING.value:
            logger.info(f"Appointment {appointment.id} already processed ({appointment.status})")
            return AppointmentChange(appointment=appointment, outcome="already_processed")

        now = now or datetime.now(timezone.utc)

        if action == "accept":
            if get_settings().SCHEDULING_BACKEND == "square":
                await AppointmentService._push_to_square(db, appointment, square or get_square_client())
            appointment.status = AppointmentStatus.CONFIRMED.value
            kind = "booking_approved"
        else:
            appointment.status = AppointmentStatus.CANCELLED.value
            appointment.cancelled_at = now
            kind = "booking_rejected"
            if appointment.payment_status == PaymentStatus.PAID.value:
                logger.warning(f"Rejected appointment {appointment.id} was paid online; refund manually")

        db.commit()
        db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} {appointment.status} via respond link")

        return AppointmentChange(
            appointment=appointment,
            outcome=appointment.status,
            events=[NotificationEvent(kind=kind, appointment_id=str(appointment.id), correlation_id=correlation_id)],
        )

    @staticmethod
    async def _push_to_square(db: Session, appointment: Appointment, square: SquareClient) -> None:
        if not appointment.square_variation_id:
            raise ValidationFailed("Appointment is not linked to a Square service variation")

        try:
            customer_id = await ClientService.ensure_square_customer(db, appointment.client, square)
            booking = await square.create_booking(
                service_variation_id=appointment.square_variation_id,
                start_at=ensure_utc(appointment.start_datetime),
                duration_minutes=duration_minutes(appointment),
                customer_id=customer_id,
                customer_note=appointment.client_notes,
            )
        except UpstreamUnavailable:
            db.rollback()
            logger.error(f"Square booking failed for appointment {appointment.id}; left pending")
            raise

        appointment.square_booking_id = booking.get("id")
        logger.info(f"Created Square booking {appointment.square_booking_id} for appointment {appointment.id}")

    @staticmethod
    def list_appointments(
            db: Session,
            status: Optional[str] = None,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Paginated appointment list, dates are business-local and inclusive"""
        query = db.query(Appointment)

        if start_date:
            query = query.filter(Appointment.start_datetime >= local_day_bounds(start_date)[0])
        if end_date:
            query = query.filter(Appointment.start_datetime < local_day_bounds(end_date)[1])
        if status:
            query = query.filter(Appointment.status == status)

        query = query.order_by(Appointment.start_datetime.asc())
        total = query.count()
        appointments = query.offset(skip).limit(limit).all()

        return {
            "total_appointments": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": status,
            },
            "appointments": [serialize_admin(appt) for appt in appointments]
        }

    @staticmethod
    async def update_appointment(
            db: Session,
            appointment_id: Any,
            status: Optional[AppointmentStatus] = None,
            admin_notes: Optional[str] = None,
            square: Optional[SquareClient] = None,
            now: Optional[datetime] = None,
            correlation_id: Optional[str] = None,
    ) -> AppointmentChange:
        """
        Admin edit of status and notes.

        Status moves must follow STATUS_TRANSITIONS. Cancelling an appointment
        that has a Square booking also cancels it in Square; a Square failure
        there is logged and does not block the local cancellation.
        """
        appointment = AppointmentService.get_appointment(db, appointment_id)
        events: List[NotificationEvent] = []

        if status is not None and status.value != appointment.status:
            allowed = STATUS_TRANSITIONS.get(appointment.status, set())
            if status.value not in allowed:
                raise ValidationFailed(
                    f"Cannot change status from {appointment.status} to {status.value}",
                    details={"allowed": sorted(allowed)},
                )

            previous = appointment.status
            appointment.status = status.value

            if status == AppointmentStatus.CANCELLED:
                appointment.cancelled_at = now or datetime.now(timezone.utc)
                if appointment.square_booking_id:
                    await AppointmentService._cancel_in_square(appointment, square or get_square_client())

            if previous == AppointmentStatus.PENDING.value:
                kind = "booking_approved" if status == AppointmentStatus.CONFIRMED else "booking_rejected"
                events.append(NotificationEvent(
                    kind=kind, appointment_id=str(appointment.id), correlation_id=correlation_id
                ))

        if admin_notes is not None:
            appointment.admin_notes = admin_notes

        db.commit()
        db.refresh(appointment)
        logger.info(f"Updated appointment {appointment.id} (status={appointment.status})")

        return AppointmentChange(appointment=appointment, outcome=appointment.status, events=events)

    @staticmethod
    async def _cancel_in_square(appointment: Appointment, square: SquareClient) -> None:
        try:
            await square.cancel_booking(appointment.square_booking_id)
            logger.info(f"Cancelled Square booking {appointment.square_booking_id}")
        except UpstreamUnavailable as e:
            logger.error(f"Failed to cancel Square booking {appointment.square_booking_id}: {e.message}")
