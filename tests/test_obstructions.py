"""Per-day aggregation of appointments and blocked time."""
from datetime import timedelta

from app.models.appointment import AppointmentStatus
from app.models.availability import BlockedInterval
from app.services.scheduling.obstructions import ObstructionAggregator
from app.services.scheduling.time_utils import local_day_bounds
from tests.factories import MONDAY, block, make_appointment, wall

TUESDAY = MONDAY + timedelta(days=1)


class TestAppointments:

    def test_live_appointments_are_collected(self, db):
        make_appointment(db, MONDAY, "10:00")
        make_appointment(db, MONDAY, "13:00", status=AppointmentStatus.PENDING)

        day = ObstructionAggregator.for_day(db, MONDAY)
        assert [a.start for a in day.appointments] == [wall(MONDAY, "10:00"), wall(MONDAY, "13:00")]
        assert day.appointments[0].end == wall(MONDAY, "11:00")

    def test_cancelled_appointments_are_ignored(self, db):
        make_appointment(db, MONDAY, "10:00", status=AppointmentStatus.CANCELLED)
        assert ObstructionAggregator.for_day(db, MONDAY).appointments == []

    def test_other_days_are_ignored(self, db):
        make_appointment(db, TUESDAY, "10:00")
        assert ObstructionAggregator.for_day(db, MONDAY).appointments == []

    def test_bucketed_by_local_start_date(self, db):
        """23:00 local Monday is Tuesday in UTC but belongs to Monday."""
        make_appointment(db, MONDAY, "23:00", duration_minutes=30)

        days = ObstructionAggregator.for_range(db, MONDAY, TUESDAY)
        assert len(days[MONDAY].appointments) == 1
        assert days[TUESDAY].appointments == []

    def test_returned_instants_are_utc_aware(self, db):
        make_appointment(db, MONDAY, "10:00")
        interval = ObstructionAggregator.for_day(db, MONDAY).appointments[0]
        assert interval.start.utcoffset() == timedelta(0)


class TestBlockedIntervals:

    def test_intersecting_block_is_collected(self, db):
        block(db, MONDAY, "12:00", "13:00")
        assert len(ObstructionAggregator.for_day(db, MONDAY).blocked) == 1

    def test_multi_day_block_appears_on_every_day(self, db):
        start = local_day_bounds(MONDAY)[0]
        end = local_day_bounds(MONDAY + timedelta(days=2))[1]
        db.add(BlockedInterval(start_datetime=start, end_datetime=end, reason="Vacation", is_all_day=True))
        db.commit()

        days = ObstructionAggregator.for_range(db, MONDAY - timedelta(days=1), MONDAY + timedelta(days=3))
        assert days[MONDAY - timedelta(days=1)].blocked == []
        assert len(days[MONDAY].blocked) == 1
        assert len(days[MONDAY + timedelta(days=1)].blocked) == 1
        assert len(days[MONDAY + timedelta(days=2)].blocked) == 1
        assert days[MONDAY + timedelta(days=3)].blocked == []

    def test_block_ending_at_midnight_does_not_spill_over(self, db):
        db.add(BlockedInterval(
            start_datetime=wall(MONDAY, "18:00"),
            end_datetime=local_day_bounds(MONDAY)[1],
        ))
        db.commit()

        days = ObstructionAggregator.for_range(db, MONDAY, TUESDAY)
        assert len(days[MONDAY].blocked) == 1
        assert days[TUESDAY].blocked == []

    def test_every_day_in_range_has_an_entry(self, db):
        days = ObstructionAggregator.for_range(db, MONDAY, MONDAY + timedelta(days=6))
        assert sorted(days) == [MONDAY + timedelta(days=i) for i in range(7)]
