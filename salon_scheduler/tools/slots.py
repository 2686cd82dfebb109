"""
Slot listing for the booking UI and automated booking channels.

Resolves the business and worker windows from the caller's configuration
snapshot, then delegates to the availability resolver. With no worker
selected ("no preference") a start time is offered when every segment of
the service can be staffed by some compatible, free worker. The follow-up
of a two-phase service is staffed by ``resolve_phase2_worker`` in both
modes, so a start is only offered when commit would accept it.
"""

import logging
from datetime import timedelta, tzinfo
from typing import Iterable, Optional, Sequence, TypedDict

from salon_scheduler.config import settings as app_settings
from salon_scheduler.logging_context import EventHook, SchedulingEvent, emit_event
from salon_scheduler.scheduling.availability import (
    day_anchor,
    generate_candidate_starts,
    list_available_slots,
    minutes_since_anchor,
    resolve_worker_days,
    segment_is_free,
)
from salon_scheduler.scheduling.compatibility import (
    can_worker_perform_service,
    workers_who_can_perform_service,
)
from salon_scheduler.scheduling.follow_up import eligible_follow_up_workers, resolve_phase2_worker
from salon_scheduler.scheduling.phases import compute_phases
from salon_scheduler.scheduling.time_windows import (
    DateLike,
    TimeWindow,
    effective_window,
    minutes_to_time,
    resolve_business_window,
    resolve_worker_window,
    to_date_key,
)
from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.business_schema import BookingSettings
from salon_scheduler.schemas.service_schema import ServiceDefinition
from salon_scheduler.schemas.worker_schema import WorkerSchedule
from salon_scheduler.tools.services import resolve_duration

logger = logging.getLogger(__name__)


class SlotListing(TypedDict):
    """Result from get_available_slots."""

    date: str
    service_id: str
    worker_id: Optional[str]
    slots: list[str]
    reason: Optional[str]
    message: str


def slot_granularity(booking_settings: BookingSettings) -> int:
    return booking_settings.slot_minutes or app_settings.scheduling.slot_granularity_minutes


def _listing(
    date_key: str, service: ServiceDefinition, worker_id: Optional[str],
    slots: list[str], reason: Optional[str], message: str,
) -> SlotListing:
    return {
        "date": date_key,
        "service_id": service.id,
        "worker_id": worker_id,
        "slots": slots,
        "reason": reason,
        "message": message,
    }


def get_available_slots(
    booking_settings: BookingSettings,
    day: DateLike,
    service: ServiceDefinition,
    workers: Sequence[WorkerSchedule],
    bookings: Iterable[Booking],
    worker_id: Optional[str] = None,
    tz: Optional[tzinfo] = None,
    hook: Optional[EventHook] = None,
) -> SlotListing:
    """
    List bookable start times for a date, service and optional worker.

    ``reason`` explains an empty list: ``business_closed``,
    ``worker_unavailable`` (unknown, inactive or not allowed to do the
    service), ``worker_closed``, ``no_overlap``, ``no_eligible_workers``
    (nobody can do the service or its follow-up) or ``fully_booked``.
    """
    date_key = to_date_key(day)
    bookings = list(bookings)
    business_window = resolve_business_window(
        booking_settings.days, booking_settings.closed_dates, date_key
    )
    if business_window is None:
        return _listing(date_key, service, worker_id, [], "business_closed",
                        f"The business is closed on {date_key}.")

    follow_up = service.active_follow_up
    if follow_up is not None and not workers_who_can_perform_service(workers, follow_up.identifier):
        return _listing(date_key, service, worker_id, [], "no_eligible_workers",
                        f"No worker can perform {follow_up.name}.")

    if not worker_id:
        return _list_for_any_worker(
            booking_settings, date_key, business_window, service, workers, bookings, tz, hook
        )

    worker = next((w for w in workers if w.id == worker_id), None)
    if worker is None or not can_worker_perform_service(worker, service.id):
        return _listing(date_key, service, worker_id, [], "worker_unavailable",
                        f"Worker {worker_id} cannot take {service.name}.")

    worker_window = resolve_worker_window(worker, date_key)
    if worker_window is None:
        return _listing(date_key, service, worker_id, [], "worker_closed",
                        f"Worker {worker_id} is not working on {date_key}.")
    if effective_window(business_window, worker_window) is None:
        return _listing(date_key, service, worker_id, [], "no_overlap",
                        f"Worker {worker_id} has no hours inside opening hours on {date_key}.")

    worker_days = resolve_worker_days(workers, date_key, booking_settings)
    anchor = day_anchor(date_key, tz)

    def follow_up_worker(start_min: int, end_min: int) -> Optional[str]:
        return resolve_phase2_worker(
            worker.id, follow_up.identifier, start_min, end_min, anchor, worker_days, bookings
        )

    slots = list_available_slots(
        date_key,
        slot_granularity(booking_settings),
        business_window,
        worker_window,
        resolve_duration(service),
        bookings,
        worker_id=worker.id,
        breaks=worker_days[worker.id].breaks,
        follow_up=follow_up,
        follow_up_resolver=follow_up_worker if follow_up is not None else None,
        tz=tz,
        hook=hook,
    )
    if not slots:
        return _listing(date_key, service, worker_id, [], "fully_booked",
                        f"No slots available on {date_key}.")
    return _listing(date_key, service, worker_id, slots, None,
                    f"{len(slots)} time slots available on {date_key}.")


def _list_for_any_worker(
    booking_settings: BookingSettings,
    date_key: str,
    business_window: TimeWindow,
    service: ServiceDefinition,
    workers: Sequence[WorkerSchedule],
    bookings: list[Booking],
    tz: Optional[tzinfo],
    hook: Optional[EventHook],
) -> SlotListing:
    follow_up = service.active_follow_up
    main_workers = workers_who_can_perform_service(workers, service.id)
    if not main_workers:
        return _listing(date_key, service, None, [], "no_eligible_workers",
                        f"No worker can perform {service.name}.")

    anchor = day_anchor(date_key, tz)
    duration = resolve_duration(service)
    worker_days = resolve_worker_days(workers, date_key, booking_settings)

    def staffed(start_min: int, end_min: int) -> bool:
        return any(
            segment_is_free(anchor, start_min, end_min, worker_days[w.id].window,
                            bookings, w.id, worker_days[w.id].breaks)
            for w in main_workers
        )

    slots: list[str] = []
    for start_min in generate_candidate_starts(
        business_window, slot_granularity(booking_settings), duration
    ):
        if not staffed(start_min, start_min + duration):
            continue
        if follow_up is not None:
            phases = compute_phases(
                anchor + timedelta(minutes=start_min),
                duration, follow_up.wait_minutes, follow_up.duration_minutes,
            )
            if not eligible_follow_up_workers(
                follow_up.identifier,
                minutes_since_anchor(anchor, phases.phase2_start),
                minutes_since_anchor(anchor, phases.phase2_end),
                anchor,
                worker_days,
                bookings,
            ):
                continue
        slots.append(minutes_to_time(start_min))

    emit_event(
        logger, hook, SchedulingEvent.SLOTS_COMPUTED,
        date_key=date_key, worker_id=None, slot_count=len(slots),
        eligible_workers=len(main_workers), duration_minutes=duration,
    )
    if not slots:
        return _listing(date_key, service, None, [], "fully_booked",
                        f"No slots available on {date_key}.")
    return _listing(date_key, service, None, slots, None,
                    f"{len(slots)} time slots available on {date_key}.")
