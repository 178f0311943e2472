"""Admin management of weekly hours and blocked time."""
from datetime import date, timedelta

import pytest

from app.core.errors import NotFound
from app.models.availability import BlockedInterval
from app.schemas.admin import BlockedTimeCreateRequest, DayAvailability
from app.services.availability.availability_service import AvailabilityService
from app.services.scheduling.time_utils import ensure_utc
from tests.factories import MONDAY, set_hours, wall


def day(value, start="09:00", end="17:00", is_active=True):
    return DayAvailability(value=value, is_active=is_active, start_time=start, end_time=end)


class TestWeeklyRules:

    def test_placeholders_for_missing_days(self, db):
        set_hours(db, 3, "10:00", "14:00")
        days = AvailabilityService.list_rules(db)

        assert [d["day_of_week"] for d in days] == list(range(7))
        assert days[3]["start_time"] == "10:00"
        assert days[0] == {
            "id": None, "day_of_week": 0, "is_active": False,
            "start_time": None, "end_time": None, "day_name": "Sunday",
        }

    def test_save_updates_in_place(self, db):
        set_hours(db, 1, "09:00", "17:00")
        AvailabilityService.save_rules(db, [day(1, "08:00", "12:00"), day(6, is_active=False)])

        days = AvailabilityService.list_rules(db)
        assert (days[1]["start_time"], days[1]["end_time"]) == ("08:00", "12:00")
        assert days[6]["is_active"] is False

    def test_cross_midnight_is_rejected_by_the_schema(self):
        with pytest.raises(ValueError):
            day(5, "22:00", "02:00")


class TestBlockedTime:

    def test_full_day_covers_local_midnight_to_midnight(self, db):
        request = BlockedTimeCreateRequest(block_type="full-day", start_date=MONDAY, end_date=MONDAY, reason="Vacation")
        AvailabilityService.create_blocked(db, request)

        blocked = db.query(BlockedInterval).one()
        assert ensure_utc(blocked.start_datetime) == wall(MONDAY, "00:00")
        assert ensure_utc(blocked.end_datetime) == wall(MONDAY + timedelta(days=1), "00:00")
        assert blocked.is_all_day is True

    def test_full_day_across_dst_is_23_hours(self, db):
        dst_day = date(2030, 3, 10)
        request = BlockedTimeCreateRequest(block_type="full-day", start_date=dst_day, end_date=dst_day)
        AvailabilityService.create_blocked(db, request)

        blocked = db.query(BlockedInterval).one()
        assert blocked.end_datetime - blocked.start_datetime == timedelta(hours=23)

    def test_time_range_spanning_days(self, db):
        request = BlockedTimeCreateRequest(
            block_type="time-range", start_date=MONDAY, end_date=MONDAY + timedelta(days=1),
            start_time="15:00", end_time="11:00",
        )
        result = AvailabilityService.create_blocked(db, request)

        assert result["start_datetime"] == wall(MONDAY, "15:00").isoformat()
        assert result["end_datetime"] == wall(MONDAY + timedelta(days=1), "11:00").isoformat()
        assert result["is_all_day"] is False

    def test_same_day_range_must_move_forward(self):
        with pytest.raises(ValueError):
            BlockedTimeCreateRequest(
                block_type="time-range", start_date=MONDAY, end_date=MONDAY, start_time="15:00", end_time="11:00",
            )

    def test_list_by_date_range(self, db):
        for offset in (0, 3, 10):
            start = MONDAY + timedelta(days=offset)
            AvailabilityService.create_blocked(
                db, BlockedTimeCreateRequest(block_type="full-day", start_date=start, end_date=start)
            )

        listed = AvailabilityService.list_blocked(db, MONDAY, MONDAY + timedelta(days=5))
        assert len(listed) == 2

    def test_delete(self, db):
        created = AvailabilityService.create_blocked(
            db, BlockedTimeCreateRequest(block_type="full-day", start_date=MONDAY, end_date=MONDAY)
        )
        AvailabilityService.delete_blocked(db, created["id"])
        assert db.query(BlockedInterval).count() == 0

    @pytest.mark.parametrize("blocked_id", ["nope", "6f1c2a3e-0000-4000-8000-000000000000"])
    def test_delete_unknown(self, db, blocked_id):
        with pytest.raises(NotFound):
            AvailabilityService.delete_blocked(db, blocked_id)
