"""
Booking domain errors and their HTTP mapping.
Services raise these; a single exception handler turns them into JSON responses
so routes stay thin.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(BookingError):
    status_code = 404


class ValidationFailed(BookingError):
    status_code = 400


class SlotConflict(BookingError):
    """The requested interval overlaps a non-cancelled appointment.

    Routine under concurrent load: the caller re-fetches slots and resubmits.
    """

    status_code = 409

    def __init__(self, message: str = "This time slot is no longer available", details: Optional[Any] = None):
        super().__init__(message, details)


class PaymentFailed(BookingError):
    status_code = 402


class UpstreamUnavailable(BookingError):
    status_code = 502


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")

    body = {"error": exc.message}
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
