# ============================================================================
# FILE: app/api/v1/public/appointments.py
# Public booking endpoints: slots, next available date, booking, respond links
# ============================================================================
import logging
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_booking_settings, get_correlation_id, get_square
from app.config.database import get_db
from app.core.errors import BookingError, ValidationFailed
from app.schemas.booking import (
    AppointmentOut,
    AvailableSlotsResponse,
    BookingRequest,
    BookingResponse,
    NextAvailableResponse,
    SlotOut,
)
from app.services.appointment.appointment_service import AppointmentService, serialize_public
from app.services.catalog.catalog_service import CatalogService
from app.services.email.email_service import format_appointment_time
from app.services.notifications.dispatcher import dispatch_events
from app.services.scheduling.providers import get_slot_provider
from app.services.scheduling.time_utils import business_today, parse_iso_date
from app.services.settings.settings_service import BookingSettings
from app.services.square.client import SquareClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments")


def _require_date(value: Optional[str], name: str = "date"):
    if not value:
        raise ValidationFailed(f"{name} is required")
    try:
        return parse_iso_date(value)
    except ValueError as e:
        raise ValidationFailed(str(e), details={"field": name})


@router.get("/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
        date: Optional[str] = Query(None, description="YYYY-MM-DD, business-local"),
        service_id: Optional[str] = Query(None),
        db: Session = Depends(get_db),
        booking_settings: BookingSettings = Depends(get_booking_settings),
        square: SquareClient = Depends(get_square),
):
    """Every candidate start time for the day, each flagged available or not"""
    day = _require_date(date)
    if not service_id:
        raise ValidationFailed("service_id is required")

    service = await CatalogService.get_service(db, service_id, square)
    provider = get_slot_provider(db, booking_settings, square_client=square)
    slots = await provider.get_slots(day, service)

    return AvailableSlotsResponse(
        date=day,
        slots=[SlotOut(time=s.time, available=s.available) for s in slots],
    )


@router.get("/next-available", response_model=NextAvailableResponse)
async def get_next_available(
        service_id: Optional[str] = Query(None),
        from_date: Optional[str] = Query(None, alias="from", description="YYYY-MM-DD, defaults to today"),
        db: Session = Depends(get_db),
        booking_settings: BookingSettings = Depends(get_booking_settings),
        square: SquareClient = Depends(get_square),
):
    if not service_id:
        raise ValidationFailed("service_id is required")

    start = _require_date(from_date, "from") if from_date else business_today()
    service = await CatalogService.get_service(db, service_id, square)
    provider = get_slot_provider(db, booking_settings, square_client=square)

    return NextAvailableResponse(date=await provider.find_next_available_date(service, start))


@router.post("", response_model=BookingResponse, status_code=201)
async def create_appointment(
        request: BookingRequest,
        db: Session = Depends(get_db),
        square: SquareClient = Depends(get_square),
        correlation_id: Optional[str] = Depends(get_correlation_id),
):
    result = await AppointmentService.create_booking(db, request, square=square, correlation_id=correlation_id)

    # Booking is committed; email failures must not affect the response
    dispatch_events(result.events)

    return BookingResponse(appointment=serialize_public(result.appointment, include_token=True))


@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_appointment(appointment_id: str, db: Session = Depends(get_db)):
    return serialize_public(AppointmentService.get_appointment(db, appointment_id))


def _respond_page(title: str, message: str, status_code: int = 200) -> HTMLResponse:
    html = f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="UTF-8"><title>{escape(title)}</title></head>
    <body style="font-family: Arial, sans-serif; max-width: 520px; margin: 80px auto; text-align: center; color: #333;">
        <h1 style="font-size: 26px;">{escape(title)}</h1>
        <p style="font-size: 16px; color: #555;">{escape(message)}</p>
    </body>
    </html>
    """
    return HTMLResponse(content=html, status_code=status_code)


@router.get("/{appointment_id}/respond", response_class=HTMLResponse)
async def respond_to_request(
        appointment_id: str,
        action: str = Query(""),
        token: str = Query(""),
        db: Session = Depends(get_db),
        square: SquareClient = Depends(get_square),
        correlation_id: Optional[str] = Depends(get_correlation_id),
):
    """Target of the accept/reject links in the admin request email"""
    try:
        result = await AppointmentService.respond(
            db, appointment_id, action, token, square=square, correlation_id=correlation_id
        )
    except BookingError as e:
        logger.info(f"Respond link for {appointment_id} failed: {e.message}")
        return _respond_page("Something went wrong", e.message, status_code=e.status_code)

    dispatch_events(result.events)

    appointment = result.appointment
    who = appointment.client.full_name
    when = format_appointment_time(appointment)

    if result.outcome == "already_processed":
        return _respond_page("Already processed", f"This request is already {appointment.status}.")
    if result.outcome == "confirmed":
        return _respond_page("Booking accepted", f"{who} is booked for {when}. They will get a confirmation email.")
    return _respond_page("Booking rejected", f"The request from {who} for {when} was declined. They will be notified.")
