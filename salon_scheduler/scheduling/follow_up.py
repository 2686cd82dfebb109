"""
Follow-up (phase 2) worker assignment.

The client never picks the phase 2 worker. The same rule decides it for slot
listing, commit-time validation and chain auto-assignment:

1. The phase 1 worker keeps the follow-up when they can perform it and are
   free for the whole phase 2 segment.
2. Otherwise the least busy eligible worker takes it (fewest confirmed
   bookings that day), ties broken by worker id.
3. No eligible worker means the start time cannot be offered or committed.
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional

from salon_scheduler.scheduling.availability import WorkerDay, segment_is_free
from salon_scheduler.scheduling.compatibility import can_worker_perform_service
from salon_scheduler.scheduling.conflicts import bookings_for_worker_day
from salon_scheduler.schemas.booking_schema import Booking
from salon_scheduler.schemas.worker_schema import WorkerSchedule

logger = logging.getLogger(__name__)


def eligible_follow_up_workers(
    follow_up_service_id: str,
    start_min: int,
    end_min: int,
    anchor: datetime,
    worker_days: Mapping[str, WorkerDay],
    bookings: Iterable[Booking],
) -> list[WorkerSchedule]:
    """Workers who can perform the follow-up and are free for ``[start_min, end_min)``."""
    bookings = list(bookings)
    return [
        wd.worker for wd in worker_days.values()
        if can_worker_perform_service(wd.worker, follow_up_service_id)
        and segment_is_free(anchor, start_min, end_min, wd.window, bookings, wd.worker.id, wd.breaks)
    ]


def least_busy_worker(
    candidates: Iterable[WorkerSchedule], bookings: Iterable[Booking], date_key: str
) -> Optional[WorkerSchedule]:
    """Fewest confirmed bookings on the day, then lowest id. None for no candidates."""
    bookings = list(bookings)
    candidates = list(candidates)
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda w: (len(bookings_for_worker_day(bookings, w.id, date_key)), w.id),
    )


def resolve_phase2_worker(
    phase1_worker_id: Optional[str],
    follow_up_service_id: str,
    start_min: int,
    end_min: int,
    anchor: datetime,
    worker_days: Mapping[str, WorkerDay],
    bookings: Iterable[Booking],
) -> Optional[str]:
    """Return the id of the worker who takes the follow-up, or None when nobody can."""
    bookings = list(bookings)
    eligible = eligible_follow_up_workers(
        follow_up_service_id, start_min, end_min, anchor, worker_days, bookings
    )
    if phase1_worker_id and any(w.id == phase1_worker_id for w in eligible):
        return phase1_worker_id
    chosen = least_busy_worker(eligible, bookings, anchor.date().isoformat())
    if chosen is None:
        return None
    logger.debug(
        "Follow-up %s moved from %s to %s", follow_up_service_id, phase1_worker_id, chosen.id
    )
    return chosen.id
