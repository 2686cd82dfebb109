"""Multi-service checkout: ordered services + start time -> validated visit chain."""

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Optional, Sequence

from salon_scheduler.logging_context import EventHook
from salon_scheduler.scheduling.availability import day_anchor, minutes_since_anchor, resolve_worker_days
from salon_scheduler.scheduling.chain import assign_chain_workers, build_chain, layout_chain
from salon_scheduler.scheduling.follow_up import resolve_phase2_worker
from salon_scheduler.scheduling.time_windows import DateLike, time_to_minutes
from salon_scheduler.schemas.booking_schema import Booking, ChainServiceRequest, VisitChain
from salon_scheduler.schemas.business_schema import BookingSettings
from salon_scheduler.schemas.service_schema import ServiceDefinition
from salon_scheduler.schemas.worker_schema import WorkerSchedule
from salon_scheduler.tools.services import resolve_duration

logger = logging.getLogger(__name__)


def request_for_service(
    service: ServiceDefinition,
    worker_id: Optional[str] = None,
    follow_up_worker_id: Optional[str] = None,
) -> ChainServiceRequest:
    """Turn a catalog service plus the client's worker choice into a chain request."""
    return ChainServiceRequest(
        service_id=service.id,
        service_name=service.name,
        duration_minutes=resolve_duration(service),
        worker_id=worker_id,
        follow_up=service.active_follow_up,
        follow_up_worker_id=follow_up_worker_id,
    )


def _visit_start(day: DateLike, start_hhmm: str, tz: Optional[tzinfo]) -> datetime:
    return day_anchor(day, tz) + timedelta(minutes=time_to_minutes(start_hhmm))


def _with_follow_up_workers(
    requests: Sequence[ChainServiceRequest],
    visit_start: datetime,
    workers: Sequence[WorkerSchedule],
    bookings: list[Booking],
    booking_settings: Optional[BookingSettings],
) -> list[ChainServiceRequest]:
    """Fill in follow-up workers the client left open, using the phase 2 rule."""
    anchor = day_anchor(visit_start.date(), visit_start.tzinfo)
    worker_days = resolve_worker_days(workers, visit_start.date(), booking_settings)
    layout = layout_chain(requests, visit_start)
    resolved = []
    for item, slot in zip(requests, layout.slots):
        if slot.follow_up is not None and item.worker_id and not item.follow_up_worker_id:
            follow_up_worker_id = resolve_phase2_worker(
                item.worker_id,
                slot.follow_up.service_id,
                minutes_since_anchor(anchor, slot.follow_up.start_at),
                minutes_since_anchor(anchor, slot.follow_up.end_at),
                anchor,
                worker_days,
                bookings,
            )
            if follow_up_worker_id is not None:
                item = item.model_copy(update={"follow_up_worker_id": follow_up_worker_id})
        resolved.append(item)
    return resolved


def checkout_visit(
    day: DateLike,
    start_hhmm: str,
    requests: Sequence[ChainServiceRequest],
    workers: Sequence[WorkerSchedule],
    fresh_bookings: Iterable[Booking],
    booking_settings: Optional[BookingSettings] = None,
    tz: Optional[tzinfo] = None,
    hook: Optional[EventHook] = None,
) -> VisitChain:
    """
    Validate a multi-service visit right before it is written.

    A follow-up without an explicit worker is staffed the way slot listing
    and commit staff it; when nobody is eligible it stays on the service's
    worker and the chain check reports why.

    Raises IncompatibleWorkerAssignment or WorkerConflict; the caller turns
    those into user-facing messages.
    """
    visit_start = _visit_start(day, start_hhmm, tz)
    bookings = list(fresh_bookings)
    requests = _with_follow_up_workers(requests, visit_start, workers, bookings, booking_settings)
    chain = build_chain(requests, visit_start, workers, bookings, hook=hook)
    logger.info(
        "Visit validated: %d services from %s to %s",
        len(chain.slots), chain.start_at, chain.end_at,
    )
    return chain


def auto_assign_visit(
    booking_settings: BookingSettings,
    day: DateLike,
    start_hhmm: str,
    requests: Sequence[ChainServiceRequest],
    workers: Sequence[WorkerSchedule],
    fresh_bookings: Iterable[Booking],
    preferred_worker_id: Optional[str] = None,
    tz: Optional[tzinfo] = None,
    hook: Optional[EventHook] = None,
) -> Optional[VisitChain]:
    """Staff every segment automatically. Returns None when the start time cannot be staffed."""
    return assign_chain_workers(
        requests,
        _visit_start(day, start_hhmm, tz),
        booking_settings,
        workers,
        fresh_bookings,
        preferred_worker_id=preferred_worker_id,
        hook=hook,
    )
