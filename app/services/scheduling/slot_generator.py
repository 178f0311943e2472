# app/services/scheduling/slot_generator.py
"""
Slot generation for a single day.

Candidates are walked at a fixed cadence across the day's open window and each
one is marked available or not. Unavailable candidates stay in the output so a
caller can render "booked" and "open" differently.

Buffer handling is one-directional: every existing appointment has its start
pulled `buffer_minutes` earlier, and candidates are checked against
[appt_start - buffer, appt_end). Nothing is added after an appointment ends,
so a slot beginning exactly when an appointment ends is still bookable.
Blocked intervals are compared raw.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

from app.services.scheduling.availability_resolver import DayWindow
from app.services.scheduling.obstructions import DayObstructions
from app.services.scheduling.time_utils import (
    ensure_utc,
    format_hhmm,
    local_wall_clock,
    minutes_of_day,
    overlaps,
    time_from_minutes,
)


@dataclass(frozen=True)
class Slot:
    time: str  # HH:mm, business-local
    available: bool


def generate_slots(
        day: date,
        duration_minutes: int,
        window: DayWindow,
        obstructions: DayObstructions,
        buffer_minutes: int,
        now: datetime,
        interval_minutes: int = 30,
        lead_minutes: int = 60,
        tz: Optional[ZoneInfo] = None,
) -> List[Slot]:
    """
    Compute every candidate slot for `day`, in ascending time order.

    Args:
        day: Business-local calendar date
        duration_minutes: Service duration; buffer is not part of the fit check
        window: Open window from the availability resolver
        obstructions: Appointments and blocked intervals for the day
        buffer_minutes: Idle time required before each existing appointment
        now: Current instant; slots starting before now + lead are past
        interval_minutes: Cadence between candidate start times
        lead_minutes: Minimum notice for a booking

    Returns:
        List of Slot; empty when the day is closed
    """
    if duration_minutes <= 0:
        raise ValueError(f"Service duration must be positive, got {duration_minutes}")
    if interval_minutes <= 0:
        raise ValueError(f"Slot interval must be positive, got {interval_minutes}")

    if not window.open:
        return []

    earliest_start = ensure_utc(now) + timedelta(minutes=lead_minutes)
    buffer = timedelta(minutes=max(buffer_minutes, 0))
    duration = timedelta(minutes=duration_minutes)

    window_start = minutes_of_day(window.window_start)
    window_end = minutes_of_day(window.window_end)

    slots = []
    candidate = window_start
    while candidate < window_end:
        time_of_day = time_from_minutes(candidate)
        slot_start = local_wall_clock(day, time_of_day, tz)
        slot_end = slot_start + duration

        is_past = slot_start < earliest_start
        fits_in_window = candidate + duration_minutes <= window_end

        conflicts_appointment = any(
            overlaps(slot_start, slot_end, appt.start - buffer, appt.end)
            for appt in obstructions.appointments
        )
        conflicts_blocked = any(
            overlaps(slot_start, slot_end, block.start, block.end)
            for block in obstructions.blocked
        )

        slots.append(Slot(
            time=format_hhmm(time_of_day),
            available=(
                not is_past
                and fits_in_window
                and not conflicts_appointment
                and not conflicts_blocked
            ),
        ))

        candidate += interval_minutes

    return slots
