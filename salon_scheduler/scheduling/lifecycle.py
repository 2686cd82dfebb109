"""
Finite state machine for the booking lifecycle.

    PROPOSED -> VALIDATED -> CONFIRMED -> CANCELLED
                                       -> RESCHEDULED
    PROPOSED -> REJECTED  (commit-time re-check found a conflict)

A slot returned by the availability resolver is PROPOSED. The mandatory
commit-time conflict re-check moves it to VALIDATED (or REJECTED), and the
persistence collaborator's write moves it to CONFIRMED. Rescheduling is
cancel-old + create-new: the old lifecycle ends in RESCHEDULED and the new
booking starts its own lifecycle at PROPOSED.

Usage:
    lifecycle = BookingLifecycle()
    lifecycle.transition(LifecycleTrigger.RECHECK_PASSED)
    assert lifecycle.current_state == BookingState.VALIDATED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from salon_scheduler.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    """All states of a booking attempt."""
    PROPOSED = "proposed"
    VALIDATED = "validated"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class LifecycleTrigger(str, Enum):
    """Events that cause state transitions."""
    RECHECK_PASSED = "recheck_passed"
    RECHECK_FAILED = "recheck_failed"
    PERSISTED = "persisted"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    trigger: LifecycleTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingState
    entered_at: datetime
    trigger: Optional[LifecycleTrigger] = None


TERMINAL_STATES = frozenset({
    BookingState.REJECTED, BookingState.CANCELLED, BookingState.RESCHEDULED,
})


class BookingLifecycle:
    """
    Deterministic state machine for one booking attempt.

    Every transition must be explicitly defined; anything else raises
    InvalidTransitionError naming the triggers that are allowed.
    """

    TRANSITIONS: list[Transition] = [
        Transition(BookingState.PROPOSED, BookingState.VALIDATED,
                   LifecycleTrigger.RECHECK_PASSED),
        Transition(BookingState.PROPOSED, BookingState.REJECTED,
                   LifecycleTrigger.RECHECK_FAILED),
        Transition(BookingState.VALIDATED, BookingState.CONFIRMED,
                   LifecycleTrigger.PERSISTED),
        Transition(BookingState.CONFIRMED, BookingState.CANCELLED,
                   LifecycleTrigger.CANCEL),
        Transition(BookingState.CONFIRMED, BookingState.RESCHEDULED,
                   LifecycleTrigger.RESCHEDULE),
    ]

    def __init__(self, initial_state: BookingState = BookingState.PROPOSED) -> None:
        self._current_state = initial_state
        self._history: list[StateEntry] = [
            StateEntry(state=initial_state, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> BookingState:
        return self._current_state

    def transition(self, trigger: LifecycleTrigger) -> BookingState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[LifecycleTrigger]:
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in TERMINAL_STATES

    def counts_for_availability(self) -> bool:
        """Only confirmed bookings block other slots."""
        return self._current_state == BookingState.CONFIRMED
