# app/services/notifications/dispatcher.py
"""Hands post-commit NotificationEvents to the Celery email tasks"""
import logging
from typing import Iterable

from kombu.exceptions import OperationalError

from app.schemas.task_payloads import NotificationEvent
from app.tasks.email_tasks import (
    send_booking_approved_email,
    send_booking_confirmation_email,
    send_booking_rejected_email,
    send_booking_request_email,
)

logger = logging.getLogger(__name__)

TASKS_BY_KIND = {
    "booking_request": send_booking_request_email,
    "booking_confirmed": send_booking_confirmation_email,
    "booking_approved": send_booking_approved_email,
    "booking_rejected": send_booking_rejected_email,
}


def dispatch_events(events: Iterable[NotificationEvent]) -> int:
    """
    Enqueue one email task per event. Returns how many were queued.

    Must only be called after the booking transaction committed. A broker
    failure is logged and the remaining events are still attempted; the
    booking itself is never affected.
    """
    queued = 0
    for event in events:
        task = TASKS_BY_KIND[event.kind]
        try:
            task.delay(event.appointment_id, event.correlation_id)
            queued += 1
        except OperationalError as e:
            logger.error(
                f"[{event.correlation_id}] Failed to queue {event.kind} email "
                f"for appointment {event.appointment_id}: {e}"
            )
    return queued
