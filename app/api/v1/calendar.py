# ============================================================================
# FILE: app/api/v1/calendar.py
# Calendar export for a booked appointment
# ============================================================================
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.api.dependencies import get_booking_settings
from app.config.database import get_db
from app.core.errors import NotFound
from app.models.appointment import AppointmentStatus
from app.services.appointment.appointment_service import AppointmentService
from app.services.calendar.ics import build_ics, google_calendar_url
from app.services.settings.settings_service import BookingSettings

router = APIRouter(prefix="/calendar")


@router.get("/ics/{appointment_id}")
async def download_ics(
        appointment_id: str,
        db: Session = Depends(get_db),
        booking_settings: BookingSettings = Depends(get_booking_settings),
):
    appointment = AppointmentService.get_appointment(db, appointment_id)
    if appointment.status == AppointmentStatus.CANCELLED.value:
        raise NotFound("Appointment not found")

    content = build_ics(
        appointment,
        business_name=booking_settings.business_name,
        business_email=booking_settings.business_email,
        business_phone=booking_settings.business_phone,
    )
    return Response(
        content=content,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="appointment-{appointment.id}.ics"'},
    )


@router.get("/google/{appointment_id}")
async def google_calendar_link(
        appointment_id: str,
        db: Session = Depends(get_db),
        booking_settings: BookingSettings = Depends(get_booking_settings),
):
    appointment = AppointmentService.get_appointment(db, appointment_id)
    return {"url": google_calendar_url(appointment, booking_settings.business_name, booking_settings.business_phone)}
