# ===== app/services/email/email_service.py =====
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import List, Optional
import logging

from app.config.settings import settings
from app.models.appointment import Appointment
from app.services.calendar.ics import google_calendar_url
from app.services.scheduling.time_utils import ensure_utc, business_zone
from app.services.settings.settings_service import BookingSettings

logger = logging.getLogger(__name__)


def format_appointment_time(appointment: Appointment) -> str:
    """e.g. 'Monday, March 3, 2025 at 9:00 AM' in the business time zone"""
    local = ensure_utc(appointment.start_datetime).astimezone(business_zone())
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local:%A, %B} {local.day}, {local.year} at {hour}:{local.minute:02d} {meridiem}"


def respond_url(appointment: Appointment, action: str) -> str:
    return (
        f"{settings.API_BASE_URL}/appointments/{appointment.id}/respond"
        f"?action={action}&token={appointment.cancellation_token}"
    )


def _layout(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background-color: #2f4858; padding: 24px; text-align: center; border-radius: 10px 10px 0 0;">
            <h1 style="color: white; margin: 0; font-size: 24px;">{title}</h1>
        </div>
        <div style="background-color: #ffffff; padding: 30px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
            {body}
        </div>
    </body>
    </html>
    """


def _button(url: str, label: str, color: str) -> str:
    return (
        f'<a href="{url}" style="background-color: {color}; color: white; padding: 12px 32px; '
        f'text-decoration: none; border-radius: 5px; font-weight: bold; display: inline-block; margin: 0 8px;">'
        f'{label}</a>'
    )


def _details_block(appointment: Appointment) -> str:
    rows = [
        ("Service", appointment.service_name or "Appointment"),
        ("When", format_appointment_time(appointment)),
    ]
    if appointment.client_notes:
        rows.append(("Notes", appointment.client_notes))
    cells = "".join(
        f'<tr><td style="padding: 4px 12px 4px 0; color: #777;">{label}</td>'
        f'<td style="padding: 4px 0;">{escape(value)}</td></tr>'
        for label, value in rows
    )
    return f'<table style="font-size: 15px; margin: 20px 0;">{cells}</table>'


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None,
            cc: Optional[List[str]] = None,
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses
        """
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        msg['To'] = to_email
        if cc:
            msg['Cc'] = ', '.join(cc)

        if plain_text:
            msg.attach(MIMEText(plain_text, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        recipients = [to_email] + (cc or [])

        try:
            server = EmailService._get_smtp_connection()
            server.sendmail(settings.EMAIL_FROM_ADDRESS, recipients, msg.as_string())
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

        logger.info(f"Email sent successfully to {to_email}")
        return True

    @staticmethod
    def send_booking_request_email(appointment: Appointment, booking_settings: BookingSettings) -> bool:
        """New pending request to the admin, with one-click accept/reject links"""
        admin_email = settings.ADMIN_EMAIL or booking_settings.business_email
        if not admin_email:
            logger.warning(f"No admin email configured; request {appointment.id} not announced")
            return False

        client = appointment.client
        body = f"""
            <p style="font-size: 16px;">New booking request from <strong>{escape(client.full_name)}</strong>
            ({escape(client.email)}, {escape(client.phone)}).</p>
            {_details_block(appointment)}
            <div style="text-align: center; margin: 30px 0;">
                {_button(respond_url(appointment, "accept"), "Accept", "#2e7d32")}
                {_button(respond_url(appointment, "reject"), "Reject", "#c62828")}
            </div>
        """
        plain_text = (
            f"New booking request from {client.full_name} ({client.email}, {client.phone})\n"
            f"{appointment.service_name} on {format_appointment_time(appointment)}\n\n"
            f"Accept: {respond_url(appointment, 'accept')}\n"
            f"Reject: {respond_url(appointment, 'reject')}\n"
        )

        return EmailService.send_email(
            to_email=admin_email,
            subject=f"Booking request: {client.full_name} - {format_appointment_time(appointment)}",
            html_content=_layout("New Booking Request", body),
            plain_text=plain_text,
        )

    @staticmethod
    def send_booking_confirmation_email(
            appointment: Appointment,
            booking_settings: BookingSettings,
            approved: bool = False
    ) -> bool:
        """Confirmed booking to the client, with calendar links"""
        client = appointment.client
        business = booking_settings.business_name
        calendar_link = google_calendar_url(appointment, business, booking_settings.business_phone)
        ics_link = f"{settings.API_BASE_URL}/calendar/ics/{appointment.id}"

        intro = (
            f"Good news! {escape(business)} has accepted your booking request."
            if approved else
            f"Your appointment with {escape(business)} is confirmed."
        )
        payment_note = ""
        if appointment.payment_method == "pay_at_appointment" and booking_settings.venmo_handle:
            payment_note = (
                f'<p style="font-size: 14px; color: #555;">Payment is due at your appointment. '
                f'Venmo: @{escape(booking_settings.venmo_handle)}</p>'
            )

        body = f"""
            <h2 style="color: #333; margin-top: 0;">Hi {escape(client.first_name)}!</h2>
            <p style="font-size: 16px; color: #555;">{intro}</p>
            {_details_block(appointment)}
            {payment_note}
            <div style="text-align: center; margin: 30px 0;">
                {_button(calendar_link, "Add to Google Calendar", "#2f4858")}
                {_button(ics_link, "Download .ics", "#607d8b")}
            </div>
        """
        plain_text = (
            f"Hi {client.first_name},\n\n"
            f"Your {appointment.service_name} appointment with {business} is confirmed for "
            f"{format_appointment_time(appointment)}.\n\n"
            f"Add to calendar: {calendar_link}\n"
        )

        subject = "Your booking request was accepted" if approved else "Your appointment is confirmed"
        return EmailService.send_email(
            to_email=client.email,
            subject=f"{subject} - {business}",
            html_content=_layout("Appointment Confirmed", body),
            plain_text=plain_text,
        )

    @staticmethod
    def send_booking_rejected_email(appointment: Appointment, booking_settings: BookingSettings) -> bool:
        client = appointment.client
        business = booking_settings.business_name
        contact = booking_settings.business_phone or booking_settings.business_email

        body = f"""
            <h2 style="color: #333; margin-top: 0;">Hi {escape(client.first_name)},</h2>
            <p style="font-size: 16px; color: #555;">
                Unfortunately {escape(business)} can't take your booking request for the time below.
                Please pick another time and submit a new request.
            </p>
            {_details_block(appointment)}
            {f'<p style="font-size: 14px; color: #777;">Questions? Contact us at {escape(contact)}.</p>' if contact else ''}
            <div style="text-align: center; margin: 30px 0;">
                {_button(f"{settings.FRONTEND_URL}/book", "Choose Another Time", "#2f4858")}
            </div>
        """
        plain_text = (
            f"Hi {client.first_name},\n\n"
            f"Unfortunately we can't take your {appointment.service_name} request for "
            f"{format_appointment_time(appointment)}. Please choose another time at "
            f"{settings.FRONTEND_URL}/book\n"
        )

        return EmailService.send_email(
            to_email=client.email,
            subject=f"Your booking request - {business}",
            html_content=_layout("Booking Request Update", body),
            plain_text=plain_text,
        )
