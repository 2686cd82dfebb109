"""Tests for two-phase timing."""

from salon_scheduler.scheduling.phases import compute_phases
from tests.conftest import at


class TestComputePhases:
    def test_follow_up_starts_after_phase_one_ends(self):
        phases = compute_phases(at("10:00"), 30, 60, 45)
        assert phases.phase1_start == at("10:00")
        assert phases.phase1_end == at("10:30")
        assert phases.phase2_start == at("11:30")
        assert phases.phase2_end == at("12:15")

    def test_gap_equals_wait(self):
        for duration, wait in [(30, 60), (45, 15), (90, 0), (5, 120)]:
            phases = compute_phases(at("09:00"), duration, wait, 20)
            assert phases.gap_minutes == wait

    def test_none_wait_is_zero(self):
        phases = compute_phases(at("10:00"), 30, None, 15)
        assert phases.phase2_start == phases.phase1_end

    def test_negative_inputs_clamped(self):
        phases = compute_phases(at("10:00"), -10, -5, -1)
        assert phases.phase1_end == at("10:00")
        assert phases.phase2_start == at("10:00")
        assert phases.phase2_end == at("10:00")

    def test_zero_follow_up_still_returns_four_timestamps(self):
        phases = compute_phases(at("10:00"), 30, 0, 0)
        assert len(phases) == 4
        assert phases.phase2_end == at("10:30")

    def test_crosses_midnight_as_timestamps(self):
        phases = compute_phases(at("23:30"), 30, 30, 30)
        assert phases.phase2_start.day == 16
        assert phases.phase2_start.hour == 0 and phases.phase2_start.minute == 30
        assert phases.phase2_end.hour == 1
