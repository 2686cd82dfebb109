"""Shared utilities used across the scheduling engine."""

from datetime import datetime


def format_hhmm(value: datetime) -> str:
    """Format the wall-clock part of a timestamp as ``HH:mm``.

    Examples:
        >>> format_hhmm(datetime(2025, 1, 15, 9, 5))
        '09:05'
    """
    return f"{value.hour:02d}:{value.minute:02d}"


def format_time_range(start: datetime, end: datetime) -> str:
    """Format a half-open interval for user-facing messages.

    Examples:
        >>> format_time_range(datetime(2025, 1, 15, 10, 0), datetime(2025, 1, 15, 10, 30))
        '10:00-10:30'
    """
    return f"{format_hhmm(start)}-{format_hhmm(end)}"


def normalize_identifier(value: object) -> str:
    """Strip an identifier, treating None as blank.

    Examples:
        >>> normalize_identifier("  cut ")
        'cut'
        >>> normalize_identifier(None)
        ''
    """
    if value is None:
        return ""
    return str(value).strip()
