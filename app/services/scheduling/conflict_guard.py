# app/services/scheduling/conflict_guard.py
"""
Commit-time double-booking check.

The slot list a client saw may be stale, so every booking re-checks the exact
interval against storage right before the insert, in the same transaction.
On PostgreSQL the `appointments_no_overlap` exclusion constraint is what makes
this race-free; the query here gives callers a clean conflict before the
insert is attempted, and `is_overlap_violation` recognizes the constraint
firing when two requests pass the check at the same time.
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.appointment import Appointment, AppointmentStatus
from app.services.scheduling.time_utils import ensure_utc

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "appointments_no_overlap"


class BookingConflictGuard:

    @staticmethod
    def exists_overlapping(
            db: Session,
            start: datetime,
            end: datetime,
            exclude_id: Optional[UUID] = None
    ) -> bool:
        """True if any non-cancelled appointment overlaps [start, end)."""
        query = db.query(Appointment.id).filter(
            Appointment.status != AppointmentStatus.CANCELLED.value,
            Appointment.start_datetime < ensure_utc(end),
            Appointment.end_datetime > ensure_utc(start),
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)

        return db.query(query.exists()).scalar()

    @staticmethod
    def is_overlap_violation(exc: IntegrityError) -> bool:
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = getattr(diag, "constraint_name", None) if diag is not None else None

        if constraint_name == OVERLAP_CONSTRAINT:
            return True
        return OVERLAP_CONSTRAINT in str(orig or exc) or "exclusion constraint" in str(orig or exc).lower()
