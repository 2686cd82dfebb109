from salon_scheduler.scheduling.availability import list_available_slots
from salon_scheduler.scheduling.chain import (
    assign_chain_workers,
    build_chain,
    layout_chain,
    validate_chain_assignments,
)
from salon_scheduler.scheduling.compatibility import can_worker_perform_service
from salon_scheduler.scheduling.conflicts import ConflictResult, has_conflict
from salon_scheduler.scheduling.follow_up import resolve_phase2_worker
from salon_scheduler.scheduling.lifecycle import BookingLifecycle, BookingState, LifecycleTrigger
from salon_scheduler.scheduling.phases import PhaseTimes, compute_phases
from salon_scheduler.scheduling.time_windows import (
    NO_CONFIG,
    TimeWindow,
    minutes_to_time,
    resolve_business_window,
    resolve_worker_window,
    time_to_minutes,
)

__all__ = [
    "list_available_slots",
    "build_chain", "layout_chain", "assign_chain_workers", "validate_chain_assignments",
    "can_worker_perform_service",
    "has_conflict", "ConflictResult",
    "resolve_phase2_worker",
    "BookingLifecycle", "BookingState", "LifecycleTrigger",
    "compute_phases", "PhaseTimes",
    "NO_CONFIG", "TimeWindow", "time_to_minutes", "minutes_to_time",
    "resolve_business_window", "resolve_worker_window",
]
