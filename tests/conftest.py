"""Shared test fixtures and helpers."""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import fakeredis
import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from scheduler.config import Settings
from scheduler.errors import ExternalIntegrationError
from scheduler.main import create_app
from scheduler.services.booking import BookingRequest, BookingService
from scheduler.services.google_calendar import CalendarEvent
from scheduler.services.storage import BookingRecord, RedisBookingStore

ADMIN_SECRET = "s3cret-admin"
DHAKA = ZoneInfo("Asia/Dhaka")

# Monday morning; the horizon is 2030-01-15 .. 2030-01-17
NOW = datetime(2030, 1, 14, 10, 0, tzinfo=DHAKA)
DAY1 = "2030-01-15"
DAY2 = "2030-01-16"
DAY3 = "2030-01-17"


class FakeCalendar:
    """In-memory calendar recording every call."""

    def __init__(self, fail: bool = False, connected: bool = True):
        self.fail = fail
        self.connected = connected
        self.created: list[dict] = []
        self.deleted: list[str] = []

    def is_connected(self) -> bool:
        return self.connected

    def create_event(self, name, email, date, start_time, end_time) -> Optional[CalendarEvent]:
        if self.fail:
            raise ExternalIntegrationError("Calendar API down")
        if not self.connected:
            return None
        event_id = f"evt-{len(self.created) + 1}"
        self.created.append({
            "name": name,
            "email": email,
            "date": date,
            "start_time": start_time,
            "end_time": end_time,
        })
        return CalendarEvent(event_id=event_id, meet_link=f"https://meet.google.com/{event_id}")

    def delete_event(self, event_id: str) -> bool:
        if self.fail:
            raise ExternalIntegrationError("Calendar API down")
        self.deleted.append(event_id)
        return True


class FailingRedis:
    """Redis client whose every command fails as if the server were down."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise RedisConnectionError("connection refused")
        return fail


def make_request(
    date: str = DAY1,
    start_time: str = "09:00",
    name: str = "Rahim Uddin",
    email: str = "rahim@example.com",
    whatsapp: str = "01712345678",
    **kwargs,
) -> BookingRequest:
    """Helper to create a valid BookingRequest."""
    return BookingRequest(
        name=name,
        email=email,
        whatsapp=whatsapp,
        date=date,
        start_time=start_time,
        joining_preference=kwargs.pop("joining_preference", "Immediately"),
        **kwargs,
    )


def make_booking(
    dt: str = DAY1,
    start: str = "09:00",
    email: str = "rahim@example.com",
    whatsapp: str = "+8801712345678",
    booked_at: Optional[datetime] = None,
    **kwargs,
) -> BookingRecord:
    """Helper to create a stored BookingRecord directly."""
    return BookingRecord(
        id=kwargs.pop("id", f"booking_{dt}_{start}"),
        name=kwargs.pop("name", "Rahim Uddin"),
        email=email,
        whatsapp=whatsapp,
        slot_id=f"{dt}:{start.replace(':', '-')}",
        date=dt,
        start_time=start,
        end_time=kwargs.pop("end_time", "10:00"),
        booked_at=booked_at or datetime(2030, 1, 14, 4, 0, tzinfo=timezone.utc),
        **kwargs,
    )


def booking_payload(date: str = DAY1, start_time: str = "09:00", **overrides) -> dict:
    payload = {
        "name": "Rahim Uddin",
        "email": "rahim@example.com",
        "whatsapp": "+8801712345678",
        "joiningPreference": "Immediately",
        "date": date,
        "startTime": start_time,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings():
    return Settings(admin_secret=ADMIN_SECRET, _env_file=None)


@pytest.fixture
def redis():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def store(redis):
    return RedisBookingStore(redis)


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def service(store, settings, calendar):
    return BookingService(store, settings, calendar=calendar, clock=lambda: NOW)


@pytest.fixture
def client(settings, redis, calendar):
    app = create_app(settings=settings, redis=redis, calendar=calendar, clock=lambda: NOW)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"X-Admin-Secret": ADMIN_SECRET}
