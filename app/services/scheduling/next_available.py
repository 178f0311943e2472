# app/services/scheduling/next_available.py
"""
Forward search for the first bookable date.

The horizon is split into fixed windows (SEARCH_WINDOW_DAYS x
SEARCH_WINDOW_COUNT, 7 x 9 by default). Each window is queried once, either
against local storage (slot generator per day) or against Square's bulk
availability search. The search stops at the horizon and returns None.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.errors import UpstreamUnavailable
from app.services.scheduling.availability_resolver import AvailabilityResolver, DayWindow, window_from_rule
from app.services.scheduling.obstructions import ObstructionAggregator
from app.services.scheduling.slot_generator import generate_slots
from app.services.scheduling.time_utils import day_of_week, local_day_bounds, to_business_local
from app.services.square.client import SquareClient

logger = logging.getLogger(__name__)


def search_windows(from_date: date, window_days: int, window_count: int) -> Iterator[Tuple[date, date]]:
    """Yield (first_day, last_day) for each window, inclusive"""
    for i in range(window_count):
        first_day = from_date + timedelta(days=i * window_days)
        yield first_day, first_day + timedelta(days=window_days - 1)


def find_next_available_local(
        db: Session,
        duration_minutes: int,
        from_date: date,
        buffer_minutes: int,
        now: datetime,
        interval_minutes: int = 30,
        lead_minutes: int = 60,
        window_days: int = 7,
        window_count: int = 9,
) -> Optional[date]:
    rules = {
        weekday: window_from_rule(AvailabilityResolver.get_rule(db, weekday))
        for weekday in range(7)
    }

    for first_day, last_day in search_windows(from_date, window_days, window_count):
        obstructions_by_day = ObstructionAggregator.for_range(db, first_day, last_day)

        day = first_day
        while day <= last_day:
            window: DayWindow = rules[day_of_week(day)]
            if window.open:
                slots = generate_slots(
                    day=day,
                    duration_minutes=duration_minutes,
                    window=window,
                    obstructions=obstructions_by_day[day],
                    buffer_minutes=buffer_minutes,
                    now=now,
                    interval_minutes=interval_minutes,
                    lead_minutes=lead_minutes,
                )
                if any(slot.available for slot in slots):
                    return day
            day += timedelta(days=1)

    logger.info(f"No availability found within {window_days * window_count} days of {from_date}")
    return None


async def find_next_available_square(
        client: SquareClient,
        service_variation_id: str,
        from_date: date,
        window_days: int = 7,
        window_count: int = 9,
) -> Optional[date]:
    for first_day, last_day in search_windows(from_date, window_days, window_count):
        start_at = local_day_bounds(first_day)[0]
        end_at = local_day_bounds(last_day)[1]

        try:
            availabilities = await client.search_availability(start_at, end_at, service_variation_id)
        except UpstreamUnavailable as e:
            logger.error(f"Error searching Square availability {first_day}..{last_day}: {e.message}")
            continue

        starts = [a["start_at"] for a in availabilities if a.get("start_at")]
        if starts:
            earliest = min(parse_square_instant(s) for s in starts)
            return to_business_local(earliest)[0]

    logger.info(f"No Square availability found within {window_days * window_count} days of {from_date}")
    return None


def parse_square_instant(value: str) -> datetime:
    # Square returns RFC 3339 with a trailing Z
    return datetime.fromisoformat(value.replace("Z", "+00:00"))

