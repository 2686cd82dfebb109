"""
Phase 1 and follow-up (phase 2) timing.

The follow-up starts ``wait_minutes`` after phase 1 *ends*:

    phase1_end   = start + duration
    phase2_start = phase1_end + wait
    phase2_end   = phase2_start + follow_up_duration

Example: start 10:00, duration 30, wait 60, follow-up 45 gives
phase 1 10:00-10:30 and phase 2 11:30-12:15.
"""

import logging
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)


class PhaseTimes(NamedTuple):
    phase1_start: datetime
    phase1_end: datetime
    phase2_start: datetime
    phase2_end: datetime

    @property
    def gap_minutes(self) -> int:
        return int((self.phase2_start - self.phase1_end).total_seconds() // 60)


def _clamp(minutes: Optional[int]) -> int:
    if minutes is None:
        return 0
    return max(0, int(minutes))


def compute_phases(
    start_at: datetime,
    duration_minutes: int,
    wait_minutes: Optional[int],
    follow_up_duration_minutes: int,
) -> PhaseTimes:
    """
    Compute both phase intervals from a single start time.

    Negative minutes are clamped to zero and ``wait_minutes=None`` means no
    wait. Four timestamps are always returned; a caller without a follow-up
    ignores the phase 2 fields.
    """
    duration = _clamp(duration_minutes)
    wait = _clamp(wait_minutes)
    follow_up = _clamp(follow_up_duration_minutes)

    phase1_start = start_at
    phase1_end = phase1_start + timedelta(minutes=duration)
    phase2_start = phase1_end + timedelta(minutes=wait)
    phase2_end = phase2_start + timedelta(minutes=follow_up)
    return PhaseTimes(phase1_start, phase1_end, phase2_start, phase2_end)

