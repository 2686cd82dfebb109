"""
Time window model: wall-clock parsing and per-day window resolution.

Every window is expressed in minutes since local midnight of the business
calendar day. The engine never schedules across midnight inside one
day-window, and performs no timezone conversion.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional, Union

from salon_scheduler.errors import InvalidDateFormat, InvalidTimeFormat
from salon_scheduler.schemas.business_schema import BreakRange, ClosedDate, WeeklyHours
from salon_scheduler.schemas.worker_schema import WorkerSchedule

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[str, date]


class WorkerWindowStatus(Enum):
    """Marker returned when a worker has no availability data at all."""

    NO_CONFIG = "no-config"


NO_CONFIG = WorkerWindowStatus.NO_CONFIG


@dataclass(frozen=True)
class TimeWindow:
    """A half-open ``[start_min, end_min)`` interval within one day."""

    start_min: int
    end_min: int

    @property
    def duration(self) -> int:
        return max(0, self.end_min - self.start_min)

    @property
    def is_empty(self) -> bool:
        return self.end_min <= self.start_min

    def intersect(self, other: "TimeWindow") -> Optional["TimeWindow"]:
        """Return the overlap of two windows, or None when they do not overlap."""
        start = max(self.start_min, other.start_min)
        end = min(self.end_min, other.end_min)
        if end <= start:
            return None
        return TimeWindow(start, end)

    def contains(self, start_min: int, end_min: int) -> bool:
        return self.start_min <= start_min and end_min <= self.end_min

    def overlaps(self, start_min: int, end_min: int) -> bool:
        return start_min < self.end_min and end_min > self.start_min

    def __str__(self) -> str:
        return f"{minutes_to_time(self.start_min)}-{minutes_to_time(self.end_min, wrap=True)}"


def time_to_minutes(value: str) -> int:
    """Parse ``HH:mm`` into minutes since midnight.

    Raises:
        InvalidTimeFormat: non-string, missing colon, non-numeric parts,
            hour outside 0..23 or minute outside 0..59.
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(value)
    match = _TIME_RE.match(value.strip())
    if not match:
        raise InvalidTimeFormat(value)
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(value)
    return hours * 60 + minutes


def minutes_to_time(minutes: int, wrap: bool = False) -> str:
    """Format minutes since midnight as zero-padded ``HH:mm``.

    Values outside one day are a caller error unless ``wrap`` is set,
    in which case they are taken modulo 24 hours.
    """
    if wrap:
        minutes %= MINUTES_PER_DAY
    elif not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for one day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date_key(value: DateLike) -> date:
    """Accept a ``YYYY-MM-DD`` string or a date and return a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_KEY_RE.match(value.strip()):
        raise InvalidDateFormat(value)
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDateFormat(value) from None


def to_date_key(value: DateLike) -> str:
    return parse_date_key(value).isoformat()


def weekday_of(value: DateLike) -> int:
    """Weekday with Sunday=0 .. Saturday=6."""
    return parse_date_key(value).isoweekday() % 7


def is_closed_date(closed_dates: Iterable[ClosedDate], value: DateLike) -> bool:
    """True if the date is listed as a full-day closure."""
    key = to_date_key(value)
    return any(entry.date.strip() == key for entry in closed_dates)


def resolve_business_window(
    weekly_hours: WeeklyHours,
    closed_dates: Iterable[ClosedDate],
    value: DateLike,
) -> Optional[TimeWindow]:
    """
    Resolve the business's open interval for a date.

    Returns None when the date is a closed date, the weekday is disabled
    or missing, or the configured end is not after the start.
    """
    if is_closed_date(closed_dates, value):
        logger.debug("Business closed on %s (closed date)", to_date_key(value))
        return None

    day_config = weekly_hours.get(weekday_of(value))
    if day_config is None or not day_config.enabled:
        return None

    window = TimeWindow(time_to_minutes(day_config.start), time_to_minutes(day_config.end))
    if window.is_empty:
        logger.debug("Business hours for %s are empty: %s", to_date_key(value), window)
        return None
    return window


def is_business_closed_all_day(
    weekly_hours: WeeklyHours,
    closed_dates: Iterable[ClosedDate],
    value: DateLike,
) -> bool:
    """True when the business has zero working minutes on the date. Worker hours are ignored."""
    return resolve_business_window(weekly_hours, closed_dates, value) is None


def resolve_worker_window(
    worker: WorkerSchedule, value: DateLike
) -> Union[TimeWindow, None, WorkerWindowStatus]:
    """
    Resolve a worker's working interval for a date.

    Returns:
        ``NO_CONFIG`` when the worker has no availability data (the caller
        falls back to the business window), None when the worker is off
        that day, otherwise the worker's interval.
    """
    if not worker.has_availability_config:
        return NO_CONFIG

    entry = worker.day_entry(weekday_of(value))
    if entry is None or entry.is_closed:
        return None
    return TimeWindow(time_to_minutes(entry.open), time_to_minutes(entry.close))


def effective_window(
    business_window: Optional[TimeWindow],
    worker_window: Union[TimeWindow, None, WorkerWindowStatus],
) -> Optional[TimeWindow]:
    """Intersect the business window with the worker window.

    Returns None whenever nothing can be booked: business closed, worker
    off, or the two windows do not overlap.
    """
    if business_window is None or business_window.is_empty:
        return None
    if worker_window is NO_CONFIG:
        return business_window
    if worker_window is None:
        return None
    return business_window.intersect(worker_window)


def breaks_to_windows(breaks: Iterable[BreakRange]) -> list[TimeWindow]:
    return [TimeWindow(time_to_minutes(b.start), time_to_minutes(b.end)) for b in breaks]


def resolve_business_breaks(weekly_hours: WeeklyHours, value: DateLike) -> list[TimeWindow]:
    day_config = weekly_hours.get(weekday_of(value))
    if day_config is None:
        return []
    return breaks_to_windows(day_config.breaks)


def resolve_worker_breaks(worker: WorkerSchedule, value: DateLike) -> list[TimeWindow]:
    entry = worker.day_entry(weekday_of(value))
    if entry is None:
        return []
    return breaks_to_windows(entry.breaks)
