"""Commit-time overlap check and constraint error recognition."""
from sqlalchemy.exc import IntegrityError

from app.models.appointment import AppointmentStatus
from app.services.scheduling.conflict_guard import BookingConflictGuard
from tests.factories import MONDAY, make_appointment, wall


class TestExistsOverlapping:

    def test_overlap_is_detected(self, db):
        make_appointment(db, MONDAY, "10:00")
        assert BookingConflictGuard.exists_overlapping(db, wall(MONDAY, "10:30"), wall(MONDAY, "11:30"))

    def test_exact_same_interval_is_detected(self, db):
        make_appointment(db, MONDAY, "10:00")
        assert BookingConflictGuard.exists_overlapping(db, wall(MONDAY, "10:00"), wall(MONDAY, "11:00"))

    def test_touching_intervals_do_not_conflict(self, db):
        make_appointment(db, MONDAY, "10:00")
        assert not BookingConflictGuard.exists_overlapping(db, wall(MONDAY, "11:00"), wall(MONDAY, "12:00"))
        assert not BookingConflictGuard.exists_overlapping(db, wall(MONDAY, "09:00"), wall(MONDAY, "10:00"))

    def test_buffer_is_not_part_of_the_guard(self, db):
        """The guard compares raw intervals; buffer only shapes the slot list."""
        make_appointment(db, MONDAY, "10:00")
        assert not BookingConflictGuard.exists_overlapping(db, wall(MONDAY, "09:00"), wall(MONDAY, "10:00"))

    def test_cancelled_appointments_do_not_conflict(self, db):
        make_appointment(db, MONDAY, "10:00", status=AppointmentStatus.CANCELLED)
        assert not BookingConflictGuard.exists_overlapping(db, wall(MONDAY, "10:00"), wall(MONDAY, "11:00"))

    def test_excluded_appointment_is_skipped(self, db):
        appointment = make_appointment(db, MONDAY, "10:00")
        assert not BookingConflictGuard.exists_overlapping(
            db, wall(MONDAY, "10:00"), wall(MONDAY, "11:00"), exclude_id=appointment.id
        )


class TestOverlapViolation:

    def test_exclusion_constraint_is_recognized(self):
        exc = IntegrityError(
            "INSERT INTO appointments ...", {},
            Exception('conflicting key value violates exclusion constraint "appointments_no_overlap"'),
        )
        assert BookingConflictGuard.is_overlap_violation(exc)

    def test_other_integrity_errors_are_not(self):
        exc = IntegrityError(
            "INSERT INTO clients ...", {},
            Exception('duplicate key value violates unique constraint "ix_clients_email"'),
        )
        assert not BookingConflictGuard.is_overlap_violation(exc)
