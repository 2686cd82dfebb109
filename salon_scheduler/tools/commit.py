"""
Commit-time validation for single-service bookings.

The caller's flow is: read bookings, list slots, let the client choose,
then call ``validate_booking_commit`` with a *freshly read* snapshot just
before writing. The re-check closes the window in which a concurrent
writer may have taken the slot. Serializing two commits for the same
worker and day is the persistence layer's job.
"""

import logging
from datetime import timedelta, tzinfo
from typing import Iterable, Optional, Sequence, TypedDict

from salon_scheduler.logging_context import EventHook, SchedulingEvent, emit_event
from salon_scheduler.scheduling.availability import day_anchor, minutes_since_anchor, resolve_worker_days
from salon_scheduler.scheduling.compatibility import can_worker_perform_service
from salon_scheduler.scheduling.conflicts import ConflictResult, has_conflict, related_booking_ids
from salon_scheduler.scheduling.follow_up import resolve_phase2_worker
from salon_scheduler.scheduling.lifecycle import BookingLifecycle, LifecycleTrigger
from salon_scheduler.scheduling.phases import PhaseTimes, compute_phases
from salon_scheduler.scheduling.time_windows import DateLike, time_to_minutes, to_date_key
from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.business_schema import BookingSettings
from salon_scheduler.schemas.service_schema import ServiceDefinition
from salon_scheduler.schemas.worker_schema import WorkerSchedule
from salon_scheduler.tools.services import resolve_duration
from salon_scheduler.utils import format_time_range

logger = logging.getLogger(__name__)


class ConflictDetails(TypedDict):
    booking_id: str
    time_range: str
    phase: int


class CommitVerdict(TypedDict):
    """Result from validate_booking_commit."""

    success: bool
    message: str
    state: str
    date: str
    worker_id: Optional[str]
    follow_up_worker_id: Optional[str]
    phases: PhaseTimes
    has_follow_up: bool
    conflict: Optional[ConflictDetails]


class ReschedulePlan(TypedDict):
    """Result from plan_reschedule: what to cancel and the verdict for the new booking."""

    success: bool
    message: str
    cancel_booking_ids: list[str]
    verdict: CommitVerdict


def _conflict_details(result: ConflictResult, phase: int) -> ConflictDetails:
    return {
        "booking_id": result.conflicting_booking.id,
        "time_range": result.conflicting_booking.time_range,
        "phase": phase,
    }


def validate_booking_commit(
    day: DateLike,
    time_hhmm: str,
    service: ServiceDefinition,
    worker_id: Optional[str],
    workers: Sequence[WorkerSchedule],
    fresh_bookings: Iterable[Booking],
    exclude_booking_ids: Iterable[str] = (),
    booking_settings: Optional[BookingSettings] = None,
    tz: Optional[tzinfo] = None,
    hook: Optional[EventHook] = None,
) -> CommitVerdict:
    """
    Compute phase timestamps for a chosen slot and re-run the checks.

    The worker must still be able to perform the service and be free for
    phase 1. The follow-up worker is resolved with ``resolve_phase2_worker``
    (the same worker when they can do it and are free, else the least busy
    eligible worker) and returned as ``follow_up_worker_id``. Without
    ``booking_settings`` only worker hours bound the follow-up. An unassigned
    booking (``worker_id`` None) has nothing to conflict with.
    """
    date_key = to_date_key(day)
    follow_up = service.active_follow_up
    anchor = day_anchor(date_key, tz)
    start_at = anchor + timedelta(minutes=time_to_minutes(time_hhmm))
    if follow_up is None:
        phases = compute_phases(start_at, resolve_duration(service), 0, 0)
    else:
        phases = compute_phases(
            start_at, resolve_duration(service), follow_up.wait_minutes, follow_up.duration_minutes
        )

    exclude = set(exclude_booking_ids)
    bookings = [b for b in fresh_bookings if b.id not in exclude]
    lifecycle = BookingLifecycle()
    conflict: Optional[ConflictDetails] = None
    problem: Optional[str] = None
    follow_up_worker_id: Optional[str] = None

    if worker_id:
        workers = list(workers)
        worker = next((w for w in workers if w.id == worker_id), None)
        if worker is None or not can_worker_perform_service(worker, service.id):
            problem = f"Worker {worker_id} cannot perform {service.name}."
        else:
            result = has_conflict(
                phases.phase1_start, phases.phase1_end, bookings,
                worker_id=worker_id, date_key=date_key, hook=hook,
            )
            if result.has_conflict:
                conflict = _conflict_details(result, 1)
            elif follow_up is not None:
                follow_up_worker_id = resolve_phase2_worker(
                    worker_id,
                    follow_up.identifier,
                    minutes_since_anchor(anchor, phases.phase2_start),
                    minutes_since_anchor(anchor, phases.phase2_end),
                    anchor,
                    resolve_worker_days(workers, date_key, booking_settings),
                    bookings,
                )
                if follow_up_worker_id is None:
                    result = has_conflict(
                        phases.phase2_start, phases.phase2_end, bookings,
                        worker_id=worker_id, date_key=date_key, hook=hook,
                    )
                    if result.has_conflict:
                        conflict = _conflict_details(result, 2)
                    else:
                        problem = (
                            f"No worker can take {follow_up.name} at "
                            f"{format_time_range(phases.phase2_start, phases.phase2_end)} on {date_key}."
                        )

    if conflict is None and problem is None:
        lifecycle.transition(LifecycleTrigger.RECHECK_PASSED)
        message = f"{service.name} on {date_key} at {time_hhmm} is still free."
    else:
        lifecycle.transition(LifecycleTrigger.RECHECK_FAILED)
        if conflict is not None:
            message = (
                f"Worker {worker_id} is already booked {conflict['time_range']} on {date_key}. "
                "Please choose another time."
            )
        else:
            message = problem
        logger.info("Commit rejected for %s on %s at %s: %s", worker_id, date_key, time_hhmm, message)

    emit_event(
        logger, hook, SchedulingEvent.BOOKING_VALIDATED,
        date_key=date_key, worker_id=worker_id, follow_up_worker_id=follow_up_worker_id,
        service_id=service.id, start=time_hhmm, state=lifecycle.current_state.value,
    )
    return {
        "success": conflict is None and problem is None,
        "message": message,
        "state": lifecycle.current_state.value,
        "date": date_key,
        "worker_id": worker_id,
        "follow_up_worker_id": follow_up_worker_id,
        "phases": phases,
        "has_follow_up": follow_up is not None,
        "conflict": conflict,
    }


def plan_reschedule(
    booking_id: str,
    fresh_bookings: Iterable[Booking],
    new_day: DateLike,
    new_time_hhmm: str,
    service: ServiceDefinition,
    worker_id: Optional[str],
    workers: Sequence[WorkerSchedule],
    booking_settings: Optional[BookingSettings] = None,
    tz: Optional[tzinfo] = None,
    hook: Optional[EventHook] = None,
) -> ReschedulePlan:
    """
    Plan a reschedule as cancel-old + create-new.

    The old booking and its linked phase are ignored by the re-check (the
    new time may overlap the old one) and are returned as the ids to cancel
    once the new booking is written.
    """
    bookings = list(fresh_bookings)
    known_ids = {b.id for b in bookings}
    if booking_id not in known_ids:
        verdict = validate_booking_commit(
            new_day, new_time_hhmm, service, worker_id, workers, bookings,
            booking_settings=booking_settings, tz=tz, hook=hook,
        )
        return {
            "success": False,
            "message": f"Booking {booking_id} not found.",
            "cancel_booking_ids": [],
            "verdict": verdict,
        }

    related = related_booking_ids(booking_id, bookings)
    verdict = validate_booking_commit(
        new_day, new_time_hhmm, service, worker_id, workers, bookings,
        exclude_booking_ids=related, booking_settings=booking_settings, tz=tz, hook=hook,
    )
    to_cancel = [b.id for b in bookings if b.id in related and b.is_confirmed]
    if not verdict["success"]:
        return {
            "success": False,
            "message": verdict["message"],
            "cancel_booking_ids": [],
            "verdict": verdict,
        }
    logger.info("Reschedule planned: %s -> %s %s", booking_id, verdict["date"], new_time_hhmm)
    return {
        "success": True,
        "message": f"Booking {booking_id} can move to {verdict['date']} at {new_time_hhmm}.",
        "cancel_booking_ids": to_cancel,
        "verdict": verdict,
    }
