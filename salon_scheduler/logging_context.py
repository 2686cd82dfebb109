"""Request ID logging context and the scheduling observability hook.

Provides a request_id-aware logger that attaches a correlation ID to every
log message, so one booking attempt can be traced from slot listing through
the commit-time re-check.

Callers that want structured telemetry pass an ``EventHook`` into the
engine. It is invoked at fixed points (slots computed, conflict found,
chain validated, booking validated) with a flat dict of fields.

Usage:
    from salon_scheduler.logging_context import get_request_logger, set_request_id

    set_request_id("REQ-abc123")
    logger = get_request_logger(__name__)
    logger.info("Listing slots")  # record.request_id == "REQ-abc123"
"""

import logging
from contextvars import ContextVar
from enum import Enum
from typing import Any, Callable, Optional

_request_id: ContextVar[str] = ContextVar("request_id", default="NO_REQUEST_ID")


class SchedulingEvent(str, Enum):
    """Points at which the engine reports to an observability hook."""

    SLOTS_COMPUTED = "slots_computed"
    CONFLICT_FOUND = "conflict_found"
    CHAIN_VALIDATED = "chain_validated"
    BOOKING_VALIDATED = "booking_validated"


EventHook = Callable[[SchedulingEvent, dict[str, Any]], None]


def set_request_id(request_id: str) -> None:
    """Set the correlation ID for the current context."""
    _request_id.set(request_id)


def get_request_id() -> str:
    """Retrieve the current correlation ID."""
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached.

    The filter adds ``request_id`` to each record so formatters can
    include ``%(request_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger


def emit_event(
    logger: logging.Logger,
    hook: Optional[EventHook],
    event: SchedulingEvent,
    **fields: Any,
) -> None:
    """Log a scheduling event and forward it to the caller's hook, if any."""
    payload = {"request_id": _request_id.get(), **fields}
    logger.debug("%s %s", event.value, payload)
    if hook is not None:
        hook(event, payload)
