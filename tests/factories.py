"""Small data builders shared by the test modules"""
from datetime import date, datetime, timedelta, timezone

import httpx

from app.models.appointment import Appointment, AppointmentStatus
from app.models.availability import BlockedInterval, WeeklyAvailabilityRule
from app.models.client import Client
from app.models.service import Service
from app.services.scheduling.time_utils import business_today, local_wall_clock, parse_hhmm
from app.services.square.client import SquareClient

ADMIN_KEY = "test-admin-key"

# Monday 2030-03-04, a week before the 2030 DST change in America/Chicago
MONDAY = date(2030, 3, 4)
NOW = datetime(2030, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_service(db, name="Deep Tissue Massage", duration_minutes=60, price_cents=8000, **kwargs) -> Service:
    service = Service(name=name, duration_minutes=duration_minutes, price_cents=price_cents, **kwargs)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def set_hours(db, weekday: int, start="09:00", end="17:00", is_active=True) -> WeeklyAvailabilityRule:
    rule = db.query(WeeklyAvailabilityRule).filter(WeeklyAvailabilityRule.day_of_week == weekday).first()
    if rule is None:
        rule = WeeklyAvailabilityRule(day_of_week=weekday)
        db.add(rule)
    rule.start_time = parse_hhmm(start) if start else None
    rule.end_time = parse_hhmm(end) if end else None
    rule.is_active = is_active
    db.commit()
    return rule


def open_every_day(db, start="09:00", end="17:00"):
    for weekday in range(7):
        set_hours(db, weekday, start, end)


def make_client(db, email="jane@example.com") -> Client:
    client = Client(first_name="Jane", last_name="Doe", email=email, phone="5125550100")
    db.add(client)
    db.commit()
    return client


def make_appointment(db, day: date, start: str, duration_minutes=60, status=AppointmentStatus.CONFIRMED, client=None):
    client = client or db.query(Client).first() or make_client(db)
    start_at = local_wall_clock(day, parse_hhmm(start))
    appointment = Appointment(
        client_id=client.id,
        service_name="Deep Tissue Massage",
        start_datetime=start_at,
        end_datetime=start_at + timedelta(minutes=duration_minutes),
        status=status.value,
        cancellation_token="token-" + start.replace(":", ""),
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def block(db, day: date, start: str, end: str, reason="Personal") -> BlockedInterval:
    blocked = BlockedInterval(
        start_datetime=local_wall_clock(day, parse_hhmm(start)),
        end_datetime=local_wall_clock(day, parse_hhmm(end)),
        reason=reason,
    )
    db.add(blocked)
    db.commit()
    return blocked


def upcoming(weekday: int, min_days_ahead: int = 14) -> date:
    """The first date with the given weekday (0=Sunday) at least `min_days_ahead` from today"""
    day = business_today() + timedelta(days=min_days_ahead)
    while (day.weekday() + 1) % 7 != weekday:
        day += timedelta(days=1)
    return day


def wall(day: date, hhmm: str) -> datetime:
    return local_wall_clock(day, parse_hhmm(hhmm))


def booking_payload(service_id, day: date, start="10:00", email="jane@example.com", **overrides):
    payload = {
        "service_id": str(service_id),
        "date": day.isoformat(),
        "time": start,
        "client": {
            "first_name": "Jane",
            "last_name": "Doe",
            "email": email,
            "phone": "5125550100",
        },
        "notes": "First visit",
        "payment_method": "pay_at_appointment",
    }
    payload.update(overrides)
    return payload


def square_client(handler) -> SquareClient:
    """SquareClient whose HTTP calls are answered by `handler(request) -> httpx.Response`"""
    return SquareClient(
        access_token="test-token",
        location_id="LOC1",
        base_url="https://square.test/v2",
        transport=httpx.MockTransport(handler),
    )


def catalog_item(item_id="ITEM1", variation_id="VAR1", name="Swedish Massage", duration_ms=3600000, amount=9000):
    variation_data = {"name": "Regular", "service_duration": duration_ms}
    if amount is not None:
        variation_data["price_money"] = {"amount": amount, "currency": "USD"}
    return {
        "type": "ITEM",
        "id": item_id,
        "item_data": {
            "name": name,
            "description": "Full body",
            "variations": [{"id": variation_id, "item_variation_data": variation_data}],
        },
    }
