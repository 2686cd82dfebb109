"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Optional

import pytest

from salon_scheduler.schemas.booking_schema import Booking, BookingStatus
from salon_scheduler.schemas.business_schema import BookingSettings, ClosedDate, DayHours
from salon_scheduler.schemas.service_schema import FollowUp, ServiceDefinition
from salon_scheduler.schemas.worker_schema import DayAvailability, WorkerSchedule

# Wednesday
DAY = "2025-01-15"


def at(hhmm: str, day: str = DAY) -> datetime:
    """Naive local timestamp on the test day."""
    return datetime.fromisoformat(f"{day}T{hhmm}:00")


def make_settings(
    start: str = "09:00",
    end: str = "13:00",
    slot_minutes: Optional[int] = 15,
    closed_dates: Optional[list[str]] = None,
    breaks: Optional[list[tuple[str, str]]] = None,
) -> BookingSettings:
    """Business open the same hours every day of the week."""
    day = DayHours(
        enabled=True,
        start=start,
        end=end,
        breaks=[{"start": s, "end": e} for s, e in (breaks or [])],
    )
    return BookingSettings(
        slot_minutes=slot_minutes,
        days={weekday: day for weekday in range(7)},
        closed_dates=[ClosedDate(date=d) for d in (closed_dates or [])],
    )


def make_booking(
    booking_id: str,
    start: str,
    end: str,
    worker_id: Optional[str] = "w1",
    day: str = DAY,
    status: BookingStatus = BookingStatus.CONFIRMED,
    phase: int = 1,
    parent_booking_id: Optional[str] = None,
) -> Booking:
    return Booking(
        id=booking_id,
        worker_id=worker_id,
        date_key=day,
        start_at=at(start, day),
        end_at=at(end, day),
        status=status,
        phase=phase,
        parent_booking_id=parent_booking_id,
    )


def make_worker(
    worker_id: str = "w1",
    services: Optional[list[str]] = None,
    availability: Optional[list[dict]] = None,
    active: bool = True,
) -> WorkerSchedule:
    return WorkerSchedule(
        id=worker_id,
        name=worker_id.upper(),
        active=active,
        services=services,
        availability=[DayAvailability(**entry) for entry in (availability or [])],
    )


def make_service(
    service_id: str = "cut",
    duration: int = 30,
    follow_up: Optional[tuple[str, int, int]] = None,
) -> ServiceDefinition:
    """``follow_up`` is ``(name, duration, wait)``."""
    fu = None
    if follow_up is not None:
        name, fu_duration, wait = follow_up
        fu = FollowUp(name=name, duration_minutes=fu_duration, wait_minutes=wait)
    return ServiceDefinition(id=service_id, name=service_id.title(), duration_minutes=duration, follow_up=fu)


@pytest.fixture
def booking_settings():
    return make_settings()


@pytest.fixture
def recorded_events():
    """An observability hook that records every event it receives."""
    events = []

    def hook(event, payload):
        events.append((event, payload))

    hook.events = events
    return hook
