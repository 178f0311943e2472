"""Forward search for the first bookable date, local and Square."""
from datetime import date, timedelta

import httpx

from app.models.availability import BlockedInterval
from app.services.scheduling.next_available import (
    find_next_available_local,
    find_next_available_square,
    search_windows,
)
from app.services.scheduling.time_utils import local_day_bounds
from tests.factories import MONDAY, NOW, block, open_every_day, set_hours, square_client


def search(db, from_date=MONDAY, **kwargs):
    return find_next_available_local(
        db,
        duration_minutes=60,
        from_date=from_date,
        buffer_minutes=15,
        now=NOW,
        **kwargs,
    )


class TestSearchWindows:

    def test_windows_are_contiguous_and_inclusive(self):
        windows = list(search_windows(MONDAY, 7, 3))
        assert windows == [
            (MONDAY, MONDAY + timedelta(days=6)),
            (MONDAY + timedelta(days=7), MONDAY + timedelta(days=13)),
            (MONDAY + timedelta(days=14), MONDAY + timedelta(days=20)),
        ]


class TestLocalSearch:

    def test_first_open_day(self, db):
        open_every_day(db)
        assert search(db) == MONDAY

    def test_skips_closed_days(self, db):
        set_hours(db, 4, "09:00", "17:00")  # Thursday only
        assert search(db) == date(2030, 3, 7)

    def test_skips_fully_blocked_day(self, db):
        open_every_day(db)
        block(db, MONDAY, "09:00", "17:00")
        assert search(db) == MONDAY + timedelta(days=1)

    def test_finds_date_in_later_window(self, db):
        open_every_day(db)
        db.add(BlockedInterval(
            start_datetime=local_day_bounds(MONDAY)[0],
            end_datetime=local_day_bounds(MONDAY + timedelta(days=9))[1],
        ))
        db.commit()
        assert search(db) == MONDAY + timedelta(days=10)

    def test_fully_blocked_horizon_returns_none(self, db):
        open_every_day(db)
        db.add(BlockedInterval(
            start_datetime=local_day_bounds(MONDAY)[0],
            end_datetime=local_day_bounds(MONDAY + timedelta(days=120))[1],
            reason="Sabbatical",
            is_all_day=True,
        ))
        db.commit()
        assert search(db) is None

    def test_no_rules_returns_none(self, db):
        assert search(db, window_days=7, window_count=2) is None


class TestSquareSearch:

    async def test_returns_local_date_of_earliest_start(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(200, json={})
            return httpx.Response(200, json={"availabilities": [
                {"start_at": "2030-03-13T20:00:00Z"},
                {"start_at": "2030-03-12T15:00:00Z"},
            ]})

        result = await find_next_available_square(square_client(handler), "VAR1", MONDAY)
        assert result == date(2030, 3, 12)
        assert len(calls) == 2

    async def test_upstream_error_moves_on_to_next_window(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(500, json={"errors": [{"code": "INTERNAL_SERVER_ERROR"}]})
            return httpx.Response(200, json={"availabilities": [{"start_at": "2030-03-12T15:00:00Z"}]})

        assert await find_next_available_square(square_client(handler), "VAR1", MONDAY) == date(2030, 3, 12)

    async def test_nothing_within_horizon(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"availabilities": []})

        result = await find_next_available_square(square_client(handler), "VAR1", MONDAY, window_days=7, window_count=9)
        assert result is None
        assert len(calls) == 9
