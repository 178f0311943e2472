# ===== app/tasks/email_tasks.py =====
import logging
import smtplib
import uuid
from typing import Callable, Optional

from app.config.celery_config import celery_app
from app.config.database import get_db
from app.models.appointment import Appointment
from app.services.email.email_service import EmailService
from app.services.settings.settings_service import BookingSettings, SettingsService

logger = logging.getLogger(__name__)


def _send_for_appointment(
        task,
        appointment_id: str,
        label: str,
        send: Callable[[Appointment, BookingSettings], bool],
        correlation_id: Optional[str] = None,
):
    """Load the appointment, send one email, retry on SMTP failure"""
    db = next(get_db())
    try:
        appointment = db.query(Appointment).filter(Appointment.id == uuid.UUID(appointment_id)).first()
        if not appointment:
            logger.warning(f"[{correlation_id}] Appointment {appointment_id} not found, skipping {label} email")
            return {"status": "skipped", "reason": "appointment_not_found"}

        logger.info(f"[{correlation_id}] Sending {label} email for appointment {appointment_id}")
        sent = send(appointment, SettingsService.load(db))

        if sent and label in ("confirmation", "approval"):
            appointment.confirmation_sent = True
            db.commit()

        return {"status": "success" if sent else "skipped", "appointment_id": appointment_id}

    except (smtplib.SMTPException, OSError) as exc:
        logger.error(f"[{correlation_id}] Failed to send {label} email for {appointment_id}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise task.retry(
            exc=exc,
            countdown=60 * (2 ** task.request.retries)
        )
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def send_booking_request_email(self, appointment_id: str, correlation_id: Optional[str] = None):
    """Tell the admin about a new pending request (accept/reject links)"""
    return _send_for_appointment(
        self, appointment_id, "request",
        EmailService.send_booking_request_email,
        correlation_id,
    )


@celery_app.task(bind=True, max_retries=3)
def send_booking_confirmation_email(self, appointment_id: str, correlation_id: Optional[str] = None):
    """Tell the client their booking is confirmed"""
    return _send_for_appointment(
        self, appointment_id, "confirmation",
        EmailService.send_booking_confirmation_email,
        correlation_id,
    )


@celery_app.task(bind=True, max_retries=3)
def send_booking_approved_email(self, appointment_id: str, correlation_id: Optional[str] = None):
    """Tell the client the admin accepted their request"""
    return _send_for_appointment(
        self, appointment_id, "approval",
        lambda appointment, booking_settings: EmailService.send_booking_confirmation_email(
            appointment, booking_settings, approved=True
        ),
        correlation_id,
    )


@celery_app.task(bind=True, max_retries=3)
def send_booking_rejected_email(self, appointment_id: str, correlation_id: Optional[str] = None):
    """Tell the client the admin declined their request"""
    return _send_for_appointment(
        self, appointment_id, "rejection",
        EmailService.send_booking_rejected_email,
        correlation_id,
    )
