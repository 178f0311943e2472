"""
Slot generation for a single day.

Covers the worked Monday example, one-directional buffer handling, lead
time, blocked intervals and idempotence.
"""
from datetime import time, timedelta

import pytest

from app.services.scheduling.availability_resolver import DayWindow
from app.services.scheduling.obstructions import DayObstructions, Interval
from app.services.scheduling.slot_generator import generate_slots
from tests.factories import MONDAY, NOW, wall

NINE_TO_FIVE = DayWindow(open=True, window_start=time(9, 0), window_end=time(17, 0))


def appointment(start, end):
    return Interval(wall(MONDAY, start), wall(MONDAY, end))


def available_times(slots):
    return [s.time for s in slots if s.available]


def unavailable_times(slots):
    return [s.time for s in slots if not s.available]


class TestWorkedExample:
    """Monday 09:00-17:00, buffer 15, cadence 30, 60 minute service, one appointment 10:00-11:00."""

    @pytest.fixture
    def slots(self):
        return generate_slots(
            day=MONDAY,
            duration_minutes=60,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(appointments=[appointment("10:00", "11:00")]),
            buffer_minutes=15,
            now=NOW,
        )

    def test_every_candidate_is_listed(self, slots):
        """16 candidates from 09:00 to 16:30, in order."""
        assert [s.time for s in slots][0] == "09:00"
        assert [s.time for s in slots][-1] == "16:30"
        assert len(slots) == 16

    def test_slots_running_into_buffered_start_are_unavailable(self, slots):
        """09:00-10:00 and 09:30-10:30 both overlap [09:45, 11:00)."""
        assert "09:00" in unavailable_times(slots)
        assert "09:30" in unavailable_times(slots)

    def test_slots_inside_appointment_are_unavailable(self, slots):
        assert "10:00" in unavailable_times(slots)
        assert "10:30" in unavailable_times(slots)

    def test_available_from_appointment_end_through_last_fit(self, slots):
        assert available_times(slots) == [
            "11:00", "11:30", "12:00", "12:30", "13:00", "13:30",
            "14:00", "14:30", "15:00", "15:30", "16:00",
        ]

    def test_slot_that_overruns_window_is_unavailable(self, slots):
        assert "16:30" in unavailable_times(slots)


class TestBufferAsymmetry:
    """Buffer is applied before existing appointments only."""

    @pytest.fixture
    def slots(self):
        return generate_slots(
            day=MONDAY,
            duration_minutes=5,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(appointments=[appointment("10:00", "11:00")]),
            buffer_minutes=15,
            now=NOW,
            interval_minutes=5,
        )

    def test_slot_touching_buffered_start_is_available(self, slots):
        """09:40-09:45 ends exactly where the buffer begins."""
        assert "09:40" in available_times(slots)

    def test_slot_inside_buffer_is_unavailable(self, slots):
        assert "09:45" in unavailable_times(slots)
        assert "09:50" in unavailable_times(slots)
        assert "09:55" in unavailable_times(slots)

    def test_slot_at_appointment_end_is_available(self, slots):
        assert "11:00" in available_times(slots)

    def test_zero_buffer(self):
        slots = generate_slots(
            day=MONDAY,
            duration_minutes=60,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(appointments=[appointment("10:00", "11:00")]),
            buffer_minutes=0,
            now=NOW,
        )
        assert "09:00" in available_times(slots)
        assert "09:30" in unavailable_times(slots)


class TestBlockedIntervals:
    """Blocked time is compared raw, without buffer."""

    @pytest.fixture
    def slots(self):
        return generate_slots(
            day=MONDAY,
            duration_minutes=60,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(blocked=[appointment("12:00", "13:00")]),
            buffer_minutes=15,
            now=NOW,
        )

    def test_slot_ending_at_block_start_is_available(self, slots):
        assert "11:00" in available_times(slots)

    def test_overlapping_slots_are_unavailable(self, slots):
        assert "11:30" in unavailable_times(slots)
        assert "12:00" in unavailable_times(slots)
        assert "12:30" in unavailable_times(slots)

    def test_slot_at_block_end_is_available(self, slots):
        assert "13:00" in available_times(slots)

    def test_all_day_block(self):
        slots = generate_slots(
            day=MONDAY,
            duration_minutes=30,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(blocked=[appointment("00:00", "23:59")]),
            buffer_minutes=15,
            now=NOW,
        )
        assert slots
        assert available_times(slots) == []


class TestLeadTime:

    def test_slots_before_lead_time_are_unavailable(self):
        now = wall(MONDAY, "08:30")
        slots = generate_slots(
            day=MONDAY,
            duration_minutes=60,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(),
            buffer_minutes=15,
            now=now,
        )
        assert unavailable_times(slots) == ["09:00", "16:30"]
        assert available_times(slots)[0] == "09:30"

    def test_past_day_is_entirely_unavailable(self):
        slots = generate_slots(
            day=MONDAY,
            duration_minutes=60,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(),
            buffer_minutes=15,
            now=wall(MONDAY, "09:00") + timedelta(days=2),
        )
        assert available_times(slots) == []


class TestGeneratorContract:

    def test_closed_day_returns_empty_list(self):
        slots = generate_slots(
            day=MONDAY,
            duration_minutes=60,
            window=DayWindow.closed(),
            obstructions=DayObstructions(),
            buffer_minutes=15,
            now=NOW,
        )
        assert slots == []

    def test_identical_inputs_give_identical_output(self):
        kwargs = dict(
            day=MONDAY,
            duration_minutes=45,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(
                appointments=[appointment("13:00", "14:00")],
                blocked=[appointment("10:00", "10:30")],
            ),
            buffer_minutes=15,
            now=NOW,
        )
        assert generate_slots(**kwargs) == generate_slots(**kwargs)

    def test_duration_longer_than_window(self):
        slots = generate_slots(
            day=MONDAY,
            duration_minutes=600,
            window=NINE_TO_FIVE,
            obstructions=DayObstructions(),
            buffer_minutes=15,
            now=NOW,
        )
        assert len(slots) == 16
        assert available_times(slots) == []

    def test_available_slots_respect_every_constraint(self):
        obstructions = DayObstructions(
            appointments=[appointment("10:00", "11:00"), appointment("14:00", "14:45")],
            blocked=[appointment("12:15", "12:45")],
        )
        slots = generate_slots(
            day=MONDAY,
            duration_minutes=60,
            window=NINE_TO_FIVE,
            obstructions=obstructions,
            buffer_minutes=15,
            now=NOW,
        )
        for slot in slots:
            if not slot.available:
                continue
            start = wall(MONDAY, slot.time)
            end = start + timedelta(minutes=60)
            assert end <= wall(MONDAY, "17:00")
            for appt in obstructions.appointments:
                assert not (start < appt.end and end > appt.start - timedelta(minutes=15))
            for blocked in obstructions.blocked:
                assert not (start < blocked.end and end > blocked.start)

    @pytest.mark.parametrize("duration, interval", [(0, 30), (-15, 30), (60, 0)])
    def test_rejects_non_positive_duration_or_interval(self, duration, interval):
        with pytest.raises(ValueError):
            generate_slots(
                day=MONDAY,
                duration_minutes=duration,
                window=NINE_TO_FIVE,
                obstructions=DayObstructions(),
                buffer_minutes=15,
                now=NOW,
                interval_minutes=interval,
            )
