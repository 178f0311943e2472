# ===== app/services/availability/availability_service.py =====
"""Admin management of weekly hours and blocked time"""
from typing import Any, Dict, List, Optional
from datetime import date, timedelta, time
import logging
import uuid

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationFailed
from app.models.availability import BlockedInterval, WeeklyAvailabilityRule
from app.schemas.admin import BlockedTimeCreateRequest, DayAvailability
from app.services.scheduling.time_utils import local_day_bounds, local_wall_clock, parse_hhmm

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class AvailabilityService:
    """Weekly availability rules and blocked intervals"""

    @staticmethod
    def list_rules(db: Session) -> List[Dict[str, Any]]:
        """All seven days, closed placeholders for days with no stored rule"""
        rules = {r.day_of_week: r for r in db.query(WeeklyAvailabilityRule).all()}

        days = []
        for weekday, name in enumerate(DAY_NAMES):
            rule = rules.get(weekday)
            if rule:
                entry = rule.to_dict()
            else:
                entry = {"id": None, "day_of_week": weekday, "is_active": False, "start_time": None, "end_time": None}
            entry["day_name"] = name
            days.append(entry)
        return days

    @staticmethod
    def save_rules(db: Session, days: List[DayAvailability]) -> List[Dict[str, Any]]:
        """Upsert one rule per day_of_week in a single transaction"""
        existing = {r.day_of_week: r for r in db.query(WeeklyAvailabilityRule).all()}

        for day in days:
            rule = existing.get(day.value)
            if not rule:
                rule = WeeklyAvailabilityRule(day_of_week=day.value)
                db.add(rule)
            rule.is_active = day.is_active
            rule.start_time = parse_hhmm(day.start_time)
            rule.end_time = parse_hhmm(day.end_time)

        db.commit()
        logger.info(f"Saved availability for {len(days)} day(s)")
        return AvailabilityService.list_rules(db)

    @staticmethod
    def list_blocked(
            db: Session,
            from_date: Optional[date] = None,
            to_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        query = db.query(BlockedInterval)
        if from_date:
            query = query.filter(BlockedInterval.end_datetime > local_day_bounds(from_date)[0])
        if to_date:
            query = query.filter(BlockedInterval.start_datetime < local_day_bounds(to_date)[1])

        return [b.to_dict() for b in query.order_by(BlockedInterval.start_datetime.asc()).all()]

    @staticmethod
    def create_blocked(db: Session, request: BlockedTimeCreateRequest) -> Dict[str, Any]:
        """
        Full-day blocks run from local midnight of start_date to local
        midnight after end_date. Time-range blocks run from start_date
        start_time to end_date end_time. Both are stored as UTC instants.
        """
        if request.block_type == "full-day":
            start = local_day_bounds(request.start_date)[0]
            end = local_day_bounds(request.end_date)[1]
        else:
            start = local_wall_clock(request.start_date, parse_hhmm(request.start_time))
            end = local_wall_clock(request.end_date, parse_hhmm(request.end_time))

        if end <= start:
            raise ValidationFailed("Blocked time must end after it starts")

        blocked = BlockedInterval(
            start_datetime=start,
            end_datetime=end,
            reason=request.reason,
            is_all_day=request.block_type == "full-day",
        )
        db.add(blocked)
        db.commit()
        db.refresh(blocked)

        logger.info(f"Blocked {start.isoformat()} - {end.isoformat()} ({request.reason or 'no reason'})")
        return blocked.to_dict()

    @staticmethod
    def delete_blocked(db: Session, blocked_id: str) -> None:
        try:
            blocked_uuid = uuid.UUID(str(blocked_id))
        except ValueError:
            raise NotFound("Blocked time not found")

        blocked = db.query(BlockedInterval).filter(BlockedInterval.id == blocked_uuid).first()
        if not blocked:
            raise NotFound("Blocked time not found")

        db.delete(blocked)
        db.commit()
        logger.info(f"Deleted blocked time {blocked_id}")
