"""Tests for the availability resolver."""

import pytest

from salon_scheduler.logging_context import SchedulingEvent
from salon_scheduler.scheduling.availability import (
    day_anchor,
    generate_candidate_starts,
    list_available_slots,
    segment_is_free,
)
from salon_scheduler.scheduling.time_windows import NO_CONFIG, TimeWindow
from salon_scheduler.schemas.booking_schema import BookingStatus
from salon_scheduler.schemas.service_schema import FollowUp
from tests.conftest import DAY, make_booking

MORNING = TimeWindow(540, 780)  # 09:00-13:00


class TestCandidateStarts:
    def test_every_granularity_step(self):
        assert generate_candidate_starts(TimeWindow(540, 600), 15, 30) == [540, 555, 570]

    def test_last_start_fits_exactly(self):
        starts = generate_candidate_starts(MORNING, 15, 30)
        assert starts[-1] + 30 == MORNING.end_min

    def test_service_longer_than_window(self):
        assert generate_candidate_starts(TimeWindow(540, 560), 15, 30) == []

    def test_service_exactly_fills_window(self):
        assert generate_candidate_starts(TimeWindow(540, 570), 15, 30) == [540]

    def test_one_minute_too_long(self):
        assert generate_candidate_starts(TimeWindow(540, 570), 15, 31) == []

    def test_zero_duration_starts_inside_window(self):
        assert generate_candidate_starts(TimeWindow(540, 600), 30, 0) == [540, 570]

    def test_rejects_non_positive_granularity(self):
        with pytest.raises(ValueError):
            generate_candidate_starts(MORNING, 0, 30)


class TestListAvailableSlots:
    def test_booking_blocks_overlapping_starts(self):
        bookings = [make_booking("b1", "10:00", "10:30")]
        slots = list_available_slots(DAY, 15, MORNING, NO_CONFIG, 30, bookings, worker_id="w1")
        assert slots == [
            "09:00", "09:15", "09:30",
            "10:30", "10:45", "11:00", "11:15", "11:30",
            "11:45", "12:00", "12:15", "12:30",
        ]
        assert "09:45" not in slots
        assert "10:00" not in slots
        assert "10:15" not in slots

    def test_no_bookings_fills_window(self):
        slots = list_available_slots(DAY, 30, MORNING, NO_CONFIG, 60, [], worker_id="w1")
        assert slots == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30", "12:00"]

    def test_business_closed(self, recorded_events):
        slots = list_available_slots(DAY, 15, None, NO_CONFIG, 30, [], hook=recorded_events)
        assert slots == []
        event, payload = recorded_events.events[-1]
        assert event == SchedulingEvent.SLOTS_COMPUTED
        assert payload["reason"] == "business_closed"

    def test_worker_closed(self, recorded_events):
        assert list_available_slots(DAY, 15, MORNING, None, 30, [], hook=recorded_events) == []
        assert recorded_events.events[-1][1]["reason"] == "worker_closed"

    def test_no_overlap(self, recorded_events):
        worker_window = TimeWindow(840, 960)
        assert list_available_slots(DAY, 15, MORNING, worker_window, 30, [], hook=recorded_events) == []
        assert recorded_events.events[-1][1]["reason"] == "no_overlap"

    def test_worker_hours_narrow_window(self):
        slots = list_available_slots(DAY, 30, MORNING, TimeWindow(600, 720), 30, [], worker_id="w1")
        assert slots == ["10:00", "10:30", "11:00", "11:30"]

    def test_window_order_does_not_matter(self):
        a = list_available_slots(DAY, 15, TimeWindow(540, 720), TimeWindow(600, 780), 30, [])
        b = list_available_slots(DAY, 15, TimeWindow(600, 780), TimeWindow(540, 720), 30, [])
        assert a == b

    def test_cancelled_booking_does_not_block(self):
        bookings = [make_booking("b1", "10:00", "10:30", status=BookingStatus.CANCELLED)]
        slots = list_available_slots(DAY, 15, MORNING, NO_CONFIG, 30, bookings, worker_id="w1")
        assert "10:00" in slots

    def test_other_worker_booking_does_not_block(self):
        bookings = [make_booking("b1", "10:00", "10:30", worker_id="w2")]
        slots = list_available_slots(DAY, 15, MORNING, NO_CONFIG, 30, bookings, worker_id="w1")
        assert "10:00" in slots

    def test_break_blocks_overlapping_starts(self):
        slots = list_available_slots(
            DAY, 30, MORNING, NO_CONFIG, 30, [], breaks=[TimeWindow(660, 690)]
        )
        assert "11:00" not in slots
        assert "10:30" in slots
        assert "11:30" in slots

    def test_follow_up_must_fit_window(self):
        follow_up = FollowUp(name="Rinse", duration_minutes=45, wait_minutes=60)
        slots = list_available_slots(DAY, 15, MORNING, NO_CONFIG, 30, [], follow_up=follow_up)
        # 30 + 60 + 45 = 135 minutes must end by 13:00
        assert slots[-1] == "10:45"

    def test_follow_up_blocked_by_booking(self):
        follow_up = FollowUp(name="Rinse", duration_minutes=45, wait_minutes=60)
        bookings = [make_booking("b1", "11:30", "12:00")]
        slots = list_available_slots(
            DAY, 30, MORNING, NO_CONFIG, 30, bookings, worker_id="w1", follow_up=follow_up
        )
        # start 10:00 puts the follow-up at 11:30-12:15
        assert "10:00" not in slots
        assert "09:00" in slots

    def test_wait_gap_may_hold_other_bookings(self):
        follow_up = FollowUp(name="Rinse", duration_minutes=30, wait_minutes=60)
        bookings = [make_booking("b1", "09:30", "10:30")]
        slots = list_available_slots(
            DAY, 30, MORNING, NO_CONFIG, 30, bookings, worker_id="w1", follow_up=follow_up
        )
        # 09:00-09:30 then 10:30-11:00, the booking sits in the gap
        assert "09:00" in slots

    def test_unbookable_follow_up_ignored(self):
        follow_up = FollowUp(name="  ", duration_minutes=45, wait_minutes=60)
        slots = list_available_slots(DAY, 15, MORNING, NO_CONFIG, 30, [], follow_up=follow_up)
        assert slots[-1] == "12:30"

    def test_result_is_ascending(self):
        bookings = [make_booking("b1", "11:00", "11:30"), make_booking("b2", "09:15", "09:45")]
        slots = list_available_slots(DAY, 15, MORNING, NO_CONFIG, 30, bookings, worker_id="w1")
        assert slots == sorted(slots)

    def test_emits_slot_count(self, recorded_events):
        slots = list_available_slots(DAY, 60, MORNING, NO_CONFIG, 60, [], hook=recorded_events)
        event, payload = recorded_events.events[-1]
        assert event == SchedulingEvent.SLOTS_COMPUTED
        assert payload["slot_count"] == len(slots) == 4
        assert payload["window"] == "09:00-13:00"

    def test_service_exactly_fills_window(self):
        window = TimeWindow(540, 570)
        assert list_available_slots(DAY, 15, window, NO_CONFIG, 30, []) == ["09:00"]
        assert list_available_slots(DAY, 15, window, NO_CONFIG, 31, []) == []

    def test_follow_up_resolver_decides(self):
        follow_up = FollowUp(name="Rinse", duration_minutes=45, wait_minutes=60)
        bookings = [make_booking("b1", "10:30", "11:15")]
        seen = []

        def resolver(start_min, end_min):
            seen.append((start_min, end_min))
            return "w2" if start_min == 630 else None

        slots = list_available_slots(
            DAY, 30, MORNING, NO_CONFIG, 30, bookings, worker_id="w1",
            follow_up=follow_up, follow_up_resolver=resolver,
        )
        # only 09:00 puts the follow-up at 10:30, which the same worker could not take
        assert slots == ["09:00"]
        assert (630, 675) in seen


class TestSegmentIsFree:
    def test_outside_window(self):
        anchor = day_anchor(DAY)
        assert not segment_is_free(anchor, 780, 810, MORNING, [])

    def test_no_window(self):
        assert not segment_is_free(day_anchor(DAY), 600, 630, None, [])

    def test_free(self):
        assert segment_is_free(day_anchor(DAY), 600, 630, MORNING, [])
