# app/services/scheduling/availability_resolver.py
"""Standing weekly hours lookup for a single calendar day"""
import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from sqlalchemy.orm import Session

from app.models.availability import WeeklyAvailabilityRule
from app.services.scheduling.time_utils import day_of_week

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayWindow:
    open: bool
    window_start: Optional[time] = None
    window_end: Optional[time] = None

    @classmethod
    def closed(cls) -> "DayWindow":
        return cls(open=False)


def window_from_rule(rule: Optional[WeeklyAvailabilityRule]) -> DayWindow:
    """Turn a stored rule into a window. Anything malformed reads as closed."""
    if rule is None or not rule.is_active:
        return DayWindow.closed()

    if rule.start_time is None or rule.end_time is None:
        logger.warning(f"Availability rule for day {rule.day_of_week} is missing times, treating as closed")
        return DayWindow.closed()

    # Windows never cross midnight
    if rule.start_time >= rule.end_time:
        logger.warning(
            f"Availability rule for day {rule.day_of_week} has start {rule.start_time} "
            f"not before end {rule.end_time}, treating as closed"
        )
        return DayWindow.closed()

    return DayWindow(open=True, window_start=rule.start_time, window_end=rule.end_time)


class AvailabilityResolver:
    """Resolves the open window for a date from the weekly rules table"""

    @staticmethod
    def get_rule(db: Session, weekday: int) -> Optional[WeeklyAvailabilityRule]:
        return db.query(WeeklyAvailabilityRule).filter(
            WeeklyAvailabilityRule.day_of_week == weekday
        ).first()

    @staticmethod
    def resolve(db: Session, day: date) -> DayWindow:
        # `day` is already a business-local calendar date
        return window_from_rule(AvailabilityResolver.get_rule(db, day_of_week(day)))
