"""
Multi-service visit chains: timing, worker validation and auto-assignment.

Services are laid out back to back. A service with a follow-up keeps its
follow-up anchored to its own start (see ``phases.compute_phases``) and the
next service starts once that follow-up ends:

    cut 10:00-10:30, wait 60, rinse 11:30-12:15, blow-dry 12:15-...

Workers are a caller input per service. The builder validates them but
never substitutes one; ``assign_chain_workers`` is the separate helper for
callers that want the engine to pick.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Iterable, Optional, Sequence

from salon_scheduler.errors import IncompatibleWorkerAssignment
from salon_scheduler.logging_context import EventHook, SchedulingEvent, emit_event
from salon_scheduler.scheduling.availability import (
    day_anchor,
    minutes_since_anchor,
    resolve_worker_days,
    segment_is_free,
)
from salon_scheduler.scheduling.compatibility import can_worker_perform_service
from salon_scheduler.scheduling.conflicts import has_conflict
from salon_scheduler.scheduling.follow_up import resolve_phase2_worker
from salon_scheduler.scheduling.phases import compute_phases
from salon_scheduler.scheduling.time_windows import resolve_business_window
from salon_scheduler.schemas.booking_schema import (
    Booking,
    ChainFollowUp,
    ChainSegment,
    ChainServiceRequest,
    ChainSlot,
    VisitChain,
)
from salon_scheduler.schemas.business_schema import BookingSettings
from salon_scheduler.schemas.worker_schema import WorkerSchedule

logger = logging.getLogger(__name__)


@dataclass
class ChainValidation:
    """All assignment problems of a chain, for forms that show every error at once."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def chain_total_minutes(services: Sequence[ChainServiceRequest]) -> int:
    """Minutes from the first service's start to the last segment's end."""
    total = 0
    for item in services:
        total += max(0, item.duration_minutes)
        if item.follow_up is not None and item.follow_up.is_bookable:
            total += max(0, item.follow_up.wait_minutes or 0) + item.follow_up.duration_minutes
    return total


def layout_chain(services: Sequence[ChainServiceRequest], visit_start: datetime) -> VisitChain:
    """Compute chain timestamps without validating workers."""
    slots: list[ChainSlot] = []
    cursor = visit_start

    for order, item in enumerate(services):
        follow_up = item.follow_up if item.follow_up is not None and item.follow_up.is_bookable else None
        if follow_up is None:
            phases = compute_phases(cursor, item.duration_minutes, 0, 0)
        else:
            phases = compute_phases(
                cursor, item.duration_minutes, follow_up.wait_minutes, follow_up.duration_minutes
            )

        nested = None
        if follow_up is not None:
            nested = ChainFollowUp(
                service_id=follow_up.identifier,
                service_name=follow_up.name.strip(),
                duration_minutes=follow_up.duration_minutes,
                wait_minutes=max(0, follow_up.wait_minutes or 0),
                start_at=phases.phase2_start,
                end_at=phases.phase2_end,
                worker_id=item.follow_up_worker_id or item.worker_id,
            )

        slots.append(ChainSlot(
            service_order=order,
            service_id=item.service_id,
            service_name=item.service_name,
            duration_minutes=max(0, item.duration_minutes),
            worker_id=item.worker_id,
            start_at=phases.phase1_start,
            end_at=phases.phase1_end,
            follow_up=nested,
        ))
        cursor = phases.phase2_end if nested is not None else phases.phase1_end

    return VisitChain(slots=slots)


def _check_compatibility(segment: ChainSegment, workers_by_id: dict[str, WorkerSchedule]) -> None:
    worker = workers_by_id.get(segment.worker_id)
    if worker is None or not can_worker_perform_service(worker, segment.service_id):
        raise IncompatibleWorkerAssignment(segment.service_id, segment.worker_id)


def build_chain(
    services: Sequence[ChainServiceRequest],
    visit_start: datetime,
    workers: Iterable[WorkerSchedule],
    existing_bookings: Iterable[Booking] = (),
    exclude_booking_ids: Iterable[str] = (),
    hook: Optional[EventHook] = None,
) -> VisitChain:
    """
    Lay out and validate a multi-service visit.

    Raises:
        IncompatibleWorkerAssignment: an assigned worker is unknown, inactive
            or not allowed to perform the service. No partial chain is returned.
        WorkerConflict: a segment overlaps a pre-existing confirmed booking
            of its worker. Segments of the chain itself are never compared
            with each other.
    """
    workers_by_id = {w.id: w for w in workers}
    bookings = list(existing_bookings)
    exclude = set(exclude_booking_ids)
    chain = layout_chain(services, visit_start)
    segments = chain.segments()

    for segment in segments:
        if segment.worker_id is not None:
            _check_compatibility(segment, workers_by_id)

    for segment in segments:
        if segment.worker_id is None:
            continue
        result = has_conflict(
            segment.start_at,
            segment.end_at,
            bookings,
            worker_id=segment.worker_id,
            date_key=segment.start_at.date().isoformat(),
            exclude_booking_ids=exclude,
            hook=hook,
        )
        result.raise_for_conflict()

    emit_event(
        logger, hook, SchedulingEvent.CHAIN_VALIDATED,
        service_count=len(chain.slots),
        segment_count=len(segments),
        start=chain.start_at.isoformat() if chain.start_at else None,
        total_minutes=chain.total_minutes,
        worker_ids=sorted({s.worker_id for s in segments if s.worker_id}),
    )
    return chain


def validate_chain_assignments(
    chain: VisitChain, workers: Iterable[WorkerSchedule]
) -> ChainValidation:
    """Collect every missing or invalid worker assignment instead of failing on the first."""
    workers_by_id = {w.id: w for w in workers}
    errors: list[str] = []
    for segment in chain.segments():
        label = f"Slot {segment.service_order + 1}"
        if segment.is_follow_up:
            label += " follow-up"
        label += f" ({segment.service_id})"

        if not segment.worker_id:
            errors.append(f"{label}: no worker assigned")
            continue
        worker = workers_by_id.get(segment.worker_id)
        if worker is None:
            errors.append(f"{label}: assigned worker not found")
        elif not can_worker_perform_service(worker, segment.service_id):
            errors.append(f'{label}: worker "{worker.name or worker.id}" cannot perform this service')
    return ChainValidation(valid=not errors, errors=errors)


def assign_chain_workers(
    services: Sequence[ChainServiceRequest],
    visit_start: datetime,
    settings: BookingSettings,
    workers: Sequence[WorkerSchedule],
    existing_bookings: Iterable[Booking] = (),
    preferred_worker_id: Optional[str] = None,
    hook: Optional[EventHook] = None,
) -> Optional[VisitChain]:
    """
    Pick a worker for every segment of a chain.

    Each main service gets the preferred worker when they can do it and are
    free, otherwise the first compatible free worker in ``workers`` order.
    Follow-ups follow ``follow_up.resolve_phase2_worker``: the service's own
    worker when possible, else the least busy eligible worker. Returns None
    when some segment cannot be staffed, meaning the start time should not
    be offered.
    """
    bookings = list(existing_bookings)
    day = visit_start.date()
    tz: Optional[tzinfo] = visit_start.tzinfo
    anchor = day_anchor(day, tz)
    business_window = resolve_business_window(settings.days, settings.closed_dates, day)
    if business_window is None:
        return None
    worker_days = resolve_worker_days(workers, day, settings)

    ordered = list(workers)
    if preferred_worker_id:
        ordered.sort(key=lambda w: w.id != preferred_worker_id)

    def pick(service_id: str, start_at: datetime, end_at: datetime) -> Optional[str]:
        start_min = minutes_since_anchor(anchor, start_at)
        end_min = minutes_since_anchor(anchor, end_at)
        for worker in ordered:
            if not can_worker_perform_service(worker, service_id):
                continue
            wd = worker_days[worker.id]
            if segment_is_free(anchor, start_min, end_min, wd.window, bookings, worker.id, wd.breaks):
                return worker.id
        return None

    unassigned = layout_chain(services, visit_start)
    assigned: list[ChainServiceRequest] = []
    for item, slot in zip(services, unassigned.slots):
        worker_id = pick(slot.service_id, slot.start_at, slot.end_at)
        if worker_id is None:
            logger.debug("No worker available for %s at %s", slot.service_id, slot.start_at)
            return None
        follow_up_worker_id = None
        if slot.follow_up is not None:
            follow_up_worker_id = resolve_phase2_worker(
                worker_id,
                slot.follow_up.service_id,
                minutes_since_anchor(anchor, slot.follow_up.start_at),
                minutes_since_anchor(anchor, slot.follow_up.end_at),
                anchor,
                worker_days,
                bookings,
            )
            if follow_up_worker_id is None:
                logger.debug(
                    "No worker available for follow-up %s at %s",
                    slot.follow_up.service_id, slot.follow_up.start_at,
                )
                return None
        assigned.append(item.model_copy(update={
            "worker_id": worker_id,
            "follow_up_worker_id": follow_up_worker_id,
        }))

    return build_chain(assigned, visit_start, workers, bookings, hook=hook)
