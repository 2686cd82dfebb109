"""
Availability resolver: bookable start times for one worker on one date.

A slot survives when it fits inside business hours ∩ worker hours, does
not touch a break and does not overlap a confirmed booking of the worker.
For two-phase services the follow-up segment must pass the same checks;
the wait gap in between is free time and is never checked.

Usage:
    slots = list_available_slots(
        "2025-01-15", 15, TimeWindow(540, 780), NO_CONFIG, 30, bookings,
        worker_id="w1",
    )
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, tzinfo
from typing import Callable, Iterable, Optional, Sequence, Union

from salon_scheduler.logging_context import EventHook, SchedulingEvent, emit_event
from salon_scheduler.scheduling.conflicts import has_conflict
from salon_scheduler.scheduling.phases import compute_phases
from salon_scheduler.scheduling.time_windows import (
    MINUTES_PER_DAY,
    DateLike,
    TimeWindow,
    WorkerWindowStatus,
    effective_window,
    minutes_to_time,
    parse_date_key,
    resolve_business_breaks,
    resolve_business_window,
    resolve_worker_breaks,
    resolve_worker_window,
    to_date_key,
)
from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.business_schema import BookingSettings
from salon_scheduler.schemas.service_schema import FollowUp
from salon_scheduler.schemas.worker_schema import WorkerSchedule

logger = logging.getLogger(__name__)

# (phase 2 start, phase 2 end) in minutes -> id of the worker taking the follow-up, or None
FollowUpResolver = Callable[[int, int], Optional[str]]


def day_anchor(value: DateLike, tz: Optional[tzinfo] = None) -> datetime:
    """Local midnight of the business day, the origin for minute offsets."""
    return datetime.combine(parse_date_key(value), time.min, tzinfo=tz)


def minutes_since_anchor(anchor: datetime, moment: datetime) -> int:
    return int((moment - anchor).total_seconds() // 60)


@dataclass(frozen=True)
class WorkerDay:
    """One worker's bookable window and breaks on one date."""

    worker: WorkerSchedule
    window: Optional[TimeWindow]
    breaks: list[TimeWindow] = field(default_factory=list)


def resolve_worker_days(
    workers: Iterable[WorkerSchedule],
    day: DateLike,
    booking_settings: Optional[BookingSettings] = None,
) -> dict[str, WorkerDay]:
    """
    Resolve every worker's window (business hours ∩ worker hours) and breaks.

    Without ``booking_settings`` only the worker's own hours bound the day;
    commit-time checks use that when the caller has no settings snapshot.
    """
    if booking_settings is None:
        business_window: Optional[TimeWindow] = TimeWindow(0, MINUTES_PER_DAY)
        business_breaks: list[TimeWindow] = []
    else:
        business_window = resolve_business_window(
            booking_settings.days, booking_settings.closed_dates, day
        )
        business_breaks = resolve_business_breaks(booking_settings.days, day)
    return {
        w.id: WorkerDay(
            worker=w,
            window=effective_window(business_window, resolve_worker_window(w, day)),
            breaks=business_breaks + resolve_worker_breaks(w, day),
        )
        for w in workers
    }


def generate_candidate_starts(window: TimeWindow, granularity: int, duration_minutes: int) -> list[int]:
    """
    Start offsets every ``granularity`` minutes from the window start while
    the whole service still fits before the window end.
    """
    if granularity <= 0:
        raise ValueError(f"Slot granularity must be positive, got {granularity}")
    duration = max(0, duration_minutes)
    starts = []
    start = window.start_min
    # A zero-length service still needs a start strictly inside the window.
    while start < window.end_min and start + duration <= window.end_min:
        starts.append(start)
        start += granularity
    return starts


def segment_is_free(
    anchor: datetime,
    start_min: int,
    end_min: int,
    window: Optional[TimeWindow],
    bookings: Iterable[Booking],
    worker_id: Optional[str] = None,
    breaks: Sequence[TimeWindow] = (),
    exclude_booking_ids: Iterable[str] = (),
) -> bool:
    """True if ``[start_min, end_min)`` fits the window, misses every break and every booking."""
    if window is None or not window.contains(start_min, end_min):
        return False
    if any(b.overlaps(start_min, end_min) for b in breaks):
        return False
    result = has_conflict(
        anchor + timedelta(minutes=start_min),
        anchor + timedelta(minutes=end_min),
        bookings,
        worker_id=worker_id,
        date_key=anchor.date().isoformat(),
        exclude_booking_ids=exclude_booking_ids,
    )
    return not result.has_conflict


def list_available_slots(
    day: DateLike,
    granularity: int,
    business_window: Optional[TimeWindow],
    worker_window: Union[TimeWindow, None, WorkerWindowStatus],
    service_duration_minutes: int,
    existing_bookings: Iterable[Booking],
    worker_id: Optional[str] = None,
    breaks: Sequence[TimeWindow] = (),
    follow_up: Optional[FollowUp] = None,
    follow_up_resolver: Optional[FollowUpResolver] = None,
    tz: Optional[tzinfo] = None,
    hook: Optional[EventHook] = None,
) -> list[str]:
    """
    List bookable ``HH:mm`` start times in ascending order.

    Args:
        day: Business calendar day (``YYYY-MM-DD`` or date).
        granularity: Minutes between candidate starts.
        business_window: Business hours, or None when closed.
        worker_window: Worker hours, None when the worker is off,
            ``NO_CONFIG`` when the worker has no availability data.
        service_duration_minutes: Length of the (first phase of the) service.
        existing_bookings: Booking snapshot. When ``worker_id`` is None the
            caller has already narrowed it to the worker.
        breaks: Break windows no service segment may overlap.
        follow_up: Optional second phase that must also fit.
        follow_up_resolver: Picks the worker for the follow-up segment; a
            start is dropped when it returns None. Without one, the follow-up
            must be free on the same worker and window.

    Returns:
        An empty list when nothing is bookable. Never raises for a closed
        or fully booked day.
    """
    date_key = to_date_key(day)
    window = effective_window(business_window, worker_window)
    if window is None:
        reason = "business_closed" if business_window is None else (
            "worker_closed" if worker_window is None else "no_overlap"
        )
        emit_event(
            logger, hook, SchedulingEvent.SLOTS_COMPUTED,
            date_key=date_key, worker_id=worker_id, slot_count=0, reason=reason,
        )
        return []

    duration = max(0, service_duration_minutes)
    anchor = day_anchor(day, tz)
    bookings = list(existing_bookings)
    breaks = list(breaks)
    bookable_follow_up = follow_up if follow_up is not None and follow_up.is_bookable else None

    slots: list[str] = []
    for start_min in generate_candidate_starts(window, granularity, duration):
        if not segment_is_free(anchor, start_min, start_min + duration, window,
                               bookings, worker_id, breaks):
            continue
        if bookable_follow_up is not None:
            phases = compute_phases(
                anchor + timedelta(minutes=start_min),
                duration,
                bookable_follow_up.wait_minutes,
                bookable_follow_up.duration_minutes,
            )
            phase2_start = minutes_since_anchor(anchor, phases.phase2_start)
            phase2_end = minutes_since_anchor(anchor, phases.phase2_end)
            if follow_up_resolver is not None:
                if follow_up_resolver(phase2_start, phase2_end) is None:
                    continue
            elif not segment_is_free(anchor, phase2_start, phase2_end, window,
                                     bookings, worker_id, breaks):
                continue
        slots.append(minutes_to_time(start_min))

    emit_event(
        logger, hook, SchedulingEvent.SLOTS_COMPUTED,
        date_key=date_key, worker_id=worker_id, slot_count=len(slots),
        window=str(window), granularity=granularity, duration_minutes=duration,
    )
    return slots

