# app/services/scheduling/obstructions.py
"""Collects everything that can make a slot on a given day unbookable"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List

from sqlalchemy.orm import Session

from app.models.appointment import Appointment, AppointmentStatus
from app.models.availability import BlockedInterval
from app.services.scheduling.time_utils import (
    ensure_utc,
    local_day_bounds,
    overlaps,
    to_business_local,
)


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime


@dataclass
class DayObstructions:
    appointments: List[Interval] = field(default_factory=list)
    blocked: List[Interval] = field(default_factory=list)


class ObstructionAggregator:

    @staticmethod
    def for_range(db: Session, first_day: date, last_day: date) -> Dict[date, DayObstructions]:
        """
        Obstructions for every local day in [first_day, last_day], two queries total.

        Per day: non-cancelled appointments whose start falls inside the local
        day, and blocked intervals intersecting it. Raw instants ordered by
        start; buffer is applied later, per comparison.
        """
        range_start = local_day_bounds(first_day)[0]
        range_end = local_day_bounds(last_day)[1]

        appointments = db.query(Appointment.start_datetime, Appointment.end_datetime).filter(
            Appointment.status != AppointmentStatus.CANCELLED.value,
            Appointment.start_datetime >= range_start,
            Appointment.start_datetime < range_end,
        ).order_by(Appointment.start_datetime.asc()).all()

        blocked = db.query(BlockedInterval.start_datetime, BlockedInterval.end_datetime).filter(
            BlockedInterval.start_datetime < range_end,
            BlockedInterval.end_datetime > range_start,
        ).order_by(BlockedInterval.start_datetime.asc()).all()

        days: Dict[date, DayObstructions] = {}
        day = first_day
        while day <= last_day:
            days[day] = DayObstructions()
            day += timedelta(days=1)

        for start, end in appointments:
            interval = Interval(ensure_utc(start), ensure_utc(end))
            local_day = to_business_local(interval.start)[0]
            if local_day in days:
                days[local_day].appointments.append(interval)

        for start, end in blocked:
            interval = Interval(ensure_utc(start), ensure_utc(end))
            for day, obstructions in days.items():
                day_start, day_end = local_day_bounds(day)
                if overlaps(interval.start, interval.end, day_start, day_end):
                    obstructions.blocked.append(interval)

        return days

    @staticmethod
    def for_day(db: Session, day: date) -> DayObstructions:
        return ObstructionAggregator.for_range(db, day, day)[day]
