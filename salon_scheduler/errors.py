"""Error taxonomy for the scheduling engine.

Empty slot lists are never errors: a closed business, a closed worker day and
a fully booked day all produce ``[]``. Callers that need to tell those apart
inspect the window resolution results instead of parsing messages.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling engine."""


class InvalidTimeFormat(SchedulingError, ValueError):
    """Raised for a malformed ``HH:mm`` string. Always a caller bug."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid time {value!r}: expected 24-hour 'HH:mm'")


class InvalidDateFormat(SchedulingError, ValueError):
    """Raised for a malformed ``YYYY-MM-DD`` date key."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid date {value!r}: expected 'YYYY-MM-DD'")


class IncompatibleWorkerAssignment(SchedulingError):
    """A worker was assigned a service they cannot perform."""

    def __init__(self, service_id: str, worker_id: str, service_name: Optional[str] = None) -> None:
        self.service_id = service_id
        self.worker_id = worker_id
        self.service_name = service_name
        label = service_name or service_id
        super().__init__(f"Worker '{worker_id}' cannot perform service '{label}'")


class WorkerConflict(SchedulingError):
    """A candidate slot overlaps an existing confirmed booking of the worker."""

    def __init__(self, worker_id: Optional[str], booking_id: str, time_range: str) -> None:
        self.worker_id = worker_id
        self.booking_id = booking_id
        self.time_range = time_range
        super().__init__(
            f"Worker '{worker_id}' is already booked {time_range} (booking {booking_id})"
        )


class InvalidTransitionError(SchedulingError):
    """Raised when a booking lifecycle transition is not valid from the current state."""
