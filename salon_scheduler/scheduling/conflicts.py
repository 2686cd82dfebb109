"""
Worker booking conflict detection.

Intervals are half-open: ``[start, end)``. Two intervals overlap iff
``new_start < existing_end and new_end > existing_start``, so touching
bookings (10:00-10:30 then 10:30-11:00) are allowed back to back.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from salon_scheduler.errors import WorkerConflict
from salon_scheduler.logging_context import EventHook, SchedulingEvent, emit_event
from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.utils import format_time_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictingBooking:
    """The existing booking that blocks a candidate slot."""

    id: str
    start_at: datetime
    end_at: datetime
    time_range: str


@dataclass(frozen=True)
class ConflictResult:
    """Outcome of a conflict check: existence plus one example."""

    has_conflict: bool
    conflicting_booking: Optional[ConflictingBooking] = None
    worker_id: Optional[str] = None

    def raise_for_conflict(self) -> None:
        """Raise WorkerConflict if a conflict was found."""
        if self.has_conflict and self.conflicting_booking is not None:
            raise WorkerConflict(
                self.worker_id,
                self.conflicting_booking.id,
                self.conflicting_booking.time_range,
            )


NO_CONFLICT = ConflictResult(has_conflict=False)


def intervals_overlap(
    new_start: datetime, new_end: datetime, existing_start: datetime, existing_end: datetime
) -> bool:
    return new_start < existing_end and new_end > existing_start


def bookings_for_worker_day(
    bookings: Iterable[Booking], worker_id: str, date_key: str
) -> list[Booking]:
    """Confirmed bookings of one worker on one calendar day, in input order."""
    return [
        b for b in bookings
        if b.is_confirmed and b.worker_id is not None
        and b.worker_id == worker_id and b.date_key == date_key
    ]


def related_booking_ids(booking_id: str, bookings: Iterable[Booking]) -> set[str]:
    """
    Return the booking id plus the ids of its linked phase bookings.

    Used to build ``exclude_booking_ids`` for an in-place reschedule check,
    so the booking being edited does not conflict with itself.
    """
    bookings = list(bookings)
    by_id = {b.id: b for b in bookings}
    root_id = booking_id
    target = by_id.get(booking_id)
    if target is not None and target.parent_booking_id:
        root_id = target.parent_booking_id

    related = {booking_id, root_id}
    related.update(b.id for b in bookings if b.parent_booking_id == root_id)
    return related


def has_conflict(
    candidate_start: datetime,
    candidate_end: datetime,
    existing: Iterable[Booking],
    worker_id: Optional[str] = None,
    date_key: Optional[str] = None,
    exclude_booking_ids: Iterable[str] = (),
    hook: Optional[EventHook] = None,
) -> ConflictResult:
    """
    Check a candidate interval against existing bookings.

    Only confirmed bookings count. When ``worker_id`` or ``date_key`` is
    given, bookings of other workers or days are skipped, as are unassigned
    bookings. The first overlapping booking in input order is reported.
    """
    exclude = set(exclude_booking_ids)
    for booking in existing:
        if booking.id in exclude or not booking.is_confirmed:
            continue
        if worker_id is not None and booking.worker_id != worker_id:
            continue
        if date_key is not None and booking.date_key != date_key:
            continue
        if intervals_overlap(candidate_start, candidate_end, booking.start_at, booking.end_at):
            conflict = ConflictingBooking(
                id=booking.id,
                start_at=booking.start_at,
                end_at=booking.end_at,
                time_range=format_time_range(booking.start_at, booking.end_at),
            )
            emit_event(
                logger, hook, SchedulingEvent.CONFLICT_FOUND,
                worker_id=worker_id or booking.worker_id,
                booking_id=booking.id,
                time_range=conflict.time_range,
                candidate=format_time_range(candidate_start, candidate_end),
            )
            return ConflictResult(
                has_conflict=True,
                conflicting_booking=conflict,
                worker_id=worker_id or booking.worker_id,
            )
    return NO_CONFLICT
