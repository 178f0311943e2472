# app/services/scheduling/providers.py
"""
Where slots come from.

LocalSlotProvider computes slots from the weekly rules, stored appointments and
blocked time. SquareSlotProvider asks Square's availability search and maps
the result into the same {time, available} shape. Which one serves a request
is decided by SCHEDULING_BACKEND.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.errors import ValidationFailed
from app.schemas.booking import ServiceInfo
from app.services.scheduling.availability_resolver import AvailabilityResolver
from app.services.scheduling.next_available import (
    find_next_available_local,
    find_next_available_square,
    parse_square_instant,
)
from app.services.scheduling.obstructions import ObstructionAggregator
from app.services.scheduling.slot_generator import Slot, generate_slots
from app.services.scheduling.time_utils import format_hhmm, local_day_bounds, to_business_local
from app.services.settings.settings_service import BookingSettings
from app.services.square.client import SquareClient, get_square_client

logger = logging.getLogger(__name__)


class SlotProvider:
    """Contract shared by both scheduling backends"""

    async def get_slots(self, day: date, service: ServiceInfo) -> List[Slot]:
        raise NotImplementedError

    async def find_next_available_date(self, service: ServiceInfo, from_date: date) -> Optional[date]:
        raise NotImplementedError


class LocalSlotProvider(SlotProvider):

    def __init__(self, db: Session, booking_settings: BookingSettings, now: Optional[datetime] = None):
        self.db = db
        self.booking_settings = booking_settings
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    async def get_slots(self, day: date, service: ServiceInfo) -> List[Slot]:
        window = AvailabilityResolver.resolve(self.db, day)
        if not window.open:
            return []

        obstructions = ObstructionAggregator.for_day(self.db, day)
        return generate_slots(
            day=day,
            duration_minutes=service.duration_minutes,
            window=window,
            obstructions=obstructions,
            buffer_minutes=self.booking_settings.buffer_time_minutes,
            now=self.now,
            interval_minutes=self.booking_settings.slot_interval_minutes,
            lead_minutes=self.booking_settings.min_lead_minutes,
        )

    async def find_next_available_date(self, service: ServiceInfo, from_date: date) -> Optional[date]:
        settings = get_settings()
        return find_next_available_local(
            self.db,
            duration_minutes=service.duration_minutes,
            from_date=from_date,
            buffer_minutes=self.booking_settings.buffer_time_minutes,
            now=self.now,
            interval_minutes=self.booking_settings.slot_interval_minutes,
            lead_minutes=self.booking_settings.min_lead_minutes,
            window_days=settings.SEARCH_WINDOW_DAYS,
            window_count=settings.SEARCH_WINDOW_COUNT,
        )


class SquareSlotProvider(SlotProvider):

    def __init__(self, client: Optional[SquareClient] = None):
        self.client = client or get_square_client()

    @staticmethod
    def _variation_id(service: ServiceInfo) -> str:
        if not service.square_variation_id:
            raise ValidationFailed(f"Service '{service.name}' is not linked to a Square catalog variation")
        return service.square_variation_id

    async def get_slots(self, day: date, service: ServiceInfo) -> List[Slot]:
        day_start, day_end = local_day_bounds(day)
        availabilities = await self.client.search_availability(day_start, day_end, self._variation_id(service))

        times = set()
        for availability in availabilities:
            if not availability.get("start_at"):
                continue
            local_day, local_time = to_business_local(parse_square_instant(availability["start_at"]))
            if local_day == day:
                times.add(format_hhmm(local_time))

        return [Slot(time=t, available=True) for t in sorted(times)]

    async def find_next_available_date(self, service: ServiceInfo, from_date: date) -> Optional[date]:
        settings = get_settings()
        return await find_next_available_square(
            self.client,
            self._variation_id(service),
            from_date,
            window_days=settings.SEARCH_WINDOW_DAYS,
            window_count=settings.SEARCH_WINDOW_COUNT,
        )


def get_slot_provider(
        db: Session,
        booking_settings: BookingSettings,
        square_client: Optional[SquareClient] = None,
        now: Optional[datetime] = None,
) -> SlotProvider:
    backend = get_settings().SCHEDULING_BACKEND

    if backend == "square":
        return SquareSlotProvider(square_client)
    elif backend == "local":
        return LocalSlotProvider(db, booking_settings, now=now)
    else:
        logger.error(f"Unknown scheduling backend: {backend}")
        raise ValueError(f"Unknown scheduling backend: {backend}")
