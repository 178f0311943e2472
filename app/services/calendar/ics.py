# app/services/calendar/ics.py
"""iCalendar export and "add to Google Calendar" links for a booked appointment"""
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from app.models.appointment import Appointment
from app.services.scheduling.time_utils import ensure_utc

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"


def _ics_stamp(instant: datetime) -> str:
    return ensure_utc(instant).strftime("%Y%m%dT%H%M%SZ")


def _escape(text: str) -> str:
    # RFC 5545 TEXT escaping
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _fold(line: str, limit: int = 75) -> str:
    """Split a content line into CRLF-space continuations of at most `limit` octets"""
    parts = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        # Continuation lines spend one octet on the leading space
        budget = limit if not parts else limit - 1
        if size + width > budget:
            parts.append(current)
            current, size = "", 0
        current += char
        size += width
    parts.append(current)
    return "\r\n ".join(parts)


def event_title(appointment: Appointment, business_name: str) -> str:
    return f"{appointment.service_name or 'Appointment'} - {business_name}"


def event_details(appointment: Appointment, business_phone: Optional[str] = None) -> str:
    lines = [f"Service: {appointment.service_name or 'Appointment'}"]
    if appointment.client_notes:
        lines.append(f"Notes: {appointment.client_notes}")
    if business_phone:
        lines.append(f"Questions? Call {business_phone}")
    return "\n".join(lines)


def build_ics(
        appointment: Appointment,
        business_name: str,
        business_email: Optional[str] = None,
        business_phone: Optional[str] = None,
        now: Optional[datetime] = None,
) -> str:
    """Single-event VCALENDAR document, CRLF line endings"""
    now = now or datetime.now(timezone.utc)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{_escape(business_name)}//Booking//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{appointment.id}@booking",
        f"DTSTAMP:{_ics_stamp(now)}",
        f"DTSTART:{_ics_stamp(appointment.start_datetime)}",
        f"DTEND:{_ics_stamp(appointment.end_datetime)}",
        f"SUMMARY:{_escape(event_title(appointment, business_name))}",
        f"DESCRIPTION:{_escape(event_details(appointment, business_phone))}",
    ]
    if business_email:
        lines.append(f"ORGANIZER;CN={_escape(business_name)}:mailto:{business_email}")
    lines.extend([
        "STATUS:CONFIRMED" if appointment.status == "confirmed" else "STATUS:TENTATIVE",
        "BEGIN:VALARM",
        "TRIGGER:-PT1H",
        "ACTION:DISPLAY",
        "DESCRIPTION:Appointment reminder",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ])
    return "\r\n".join(_fold(line) for line in lines) + "\r\n"


def google_calendar_url(
        appointment: Appointment,
        business_name: str,
        business_phone: Optional[str] = None,
) -> str:
    params = {
        "action": "TEMPLATE",
        "text": event_title(appointment, business_name),
        "dates": f"{_ics_stamp(appointment.start_datetime)}/{_ics_stamp(appointment.end_datetime)}",
        "details": event_details(appointment, business_phone),
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"
