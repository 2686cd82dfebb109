"""Tests for follow-up (phase 2) worker assignment."""

from salon_scheduler.scheduling.availability import day_anchor, resolve_worker_days
from salon_scheduler.scheduling.follow_up import (
    eligible_follow_up_workers,
    least_busy_worker,
    resolve_phase2_worker,
)
from salon_scheduler.scheduling.time_windows import TimeWindow
from salon_scheduler.tools.slots import get_available_slots
from tests.conftest import DAY, make_booking, make_service, make_settings, make_worker

ANCHOR = day_anchor(DAY)
RINSE_AT = (630, 675)  # 10:30-11:15


def resolve(phase1_worker_id, workers, bookings=(), settings=None, service_id="Rinse"):
    worker_days = resolve_worker_days(workers, DAY, settings)
    return resolve_phase2_worker(phase1_worker_id, service_id, *RINSE_AT, ANCHOR, worker_days, list(bookings))


class TestResolvePhase2Worker:
    def test_phase1_worker_keeps_follow_up(self):
        workers = [make_worker("w1"), make_worker("w0")]
        assert resolve("w1", workers) == "w1"

    def test_phase1_worker_kept_even_when_busier(self):
        workers = [make_worker("w1"), make_worker("w2")]
        bookings = [make_booking("b1", "12:00", "12:30", worker_id="w1")]
        assert resolve("w1", workers, bookings) == "w1"

    def test_busy_phase1_worker_hands_over(self):
        workers = [make_worker("w1"), make_worker("w2")]
        bookings = [make_booking("b1", "10:30", "11:15", worker_id="w1")]
        assert resolve("w1", workers, bookings) == "w2"

    def test_least_busy_wins(self):
        workers = [make_worker("w1"), make_worker("w2"), make_worker("w3")]
        bookings = [
            make_booking("b1", "10:45", "11:00", worker_id="w1"),
            make_booking("b2", "09:00", "09:30", worker_id="w2"),
            make_booking("b3", "12:00", "12:30", worker_id="w2"),
            make_booking("b4", "12:00", "12:30", worker_id="w3"),
        ]
        assert resolve("w1", workers, bookings) == "w3"

    def test_ties_broken_by_id(self):
        workers = [make_worker("w1"), make_worker("wb"), make_worker("wa")]
        bookings = [make_booking("b1", "10:30", "11:15", worker_id="w1")]
        assert resolve("w1", workers, bookings) == "wa"

    def test_incompatible_workers_skipped(self):
        workers = [make_worker("w1", services=["colour"]), make_worker("w2", services=["cut"]),
                   make_worker("w3", services=["Rinse"])]
        assert resolve("w1", workers) == "w3"

    def test_worker_hours_respected(self):
        workers = [
            make_worker("w1", services=["colour"]),
            make_worker("w2", availability=[{"day": "wed", "open": "11:00", "close": "17:00"}]),
            make_worker("w3", availability=[{"day": "wed", "open": "09:00", "close": "17:00"}]),
        ]
        assert resolve("w1", workers) == "w3"

    def test_worker_break_respected(self):
        workers = [
            make_worker("w1", services=["colour"]),
            make_worker("w2", availability=[{
                "day": "wed", "open": "09:00", "close": "17:00",
                "breaks": [{"start": "11:00", "end": "11:30"}],
            }]),
            make_worker("w3"),
        ]
        assert resolve("w1", workers) == "w3"

    def test_business_hours_respected(self):
        workers = [make_worker("w1"), make_worker("w2")]
        assert resolve("w1", workers, settings=make_settings(end="11:00")) is None

    def test_nobody_eligible(self):
        workers = [make_worker("w1"), make_worker("w2", active=False)]
        bookings = [make_booking("b1", "11:00", "11:30", worker_id="w1")]
        assert resolve("w1", workers, bookings) is None

    def test_unassigned_phase1_gets_least_busy(self):
        workers = [make_worker("w2"), make_worker("w1")]
        bookings = [make_booking("b1", "12:00", "12:30", worker_id="w1")]
        assert resolve(None, workers, bookings) == "w2"


class TestEligibleFollowUpWorkers:
    def test_keeps_worker_order(self):
        workers = [make_worker("w2"), make_worker("w1")]
        worker_days = resolve_worker_days(workers, DAY)
        eligible = eligible_follow_up_workers("Rinse", *RINSE_AT, ANCHOR, worker_days, [])
        assert [w.id for w in eligible] == ["w2", "w1"]

    def test_closed_worker_excluded(self):
        workers = [make_worker("w1", availability=[{"day": "mon", "open": "09:00", "close": "17:00"}])]
        worker_days = resolve_worker_days(workers, DAY)
        assert worker_days["w1"].window is None
        assert eligible_follow_up_workers("Rinse", *RINSE_AT, ANCHOR, worker_days, []) == []


class TestLeastBusyWorker:
    def test_no_candidates(self):
        assert least_busy_worker([], [], DAY) is None

    def test_only_that_day_counts(self):
        workers = [make_worker("w1"), make_worker("w2")]
        bookings = [
            make_booking("b1", "09:00", "09:30", worker_id="w1", day="2025-01-16"),
            make_booking("b2", "09:00", "09:30", worker_id="w2"),
        ]
        assert least_busy_worker(workers, bookings, DAY).id == "w1"


class TestResolveWorkerDays:
    def test_without_settings_uses_worker_hours_only(self):
        worker = make_worker("w1", availability=[{"day": "wed", "open": "08:00", "close": "20:00"}])
        assert resolve_worker_days([worker], DAY)["w1"].window == TimeWindow(480, 1200)

    def test_business_hours_and_breaks_applied(self):
        settings = make_settings(breaks=[("12:00", "12:30")])
        days = resolve_worker_days([make_worker("w1")], DAY, settings)
        assert days["w1"].window == TimeWindow(540, 780)
        assert days["w1"].breaks == [TimeWindow(720, 750)]


class TestSlotListingUsesFollowUpRule:
    def test_slot_offered_when_colleague_takes_follow_up(self):
        service = make_service("colour", 30, follow_up=("Rinse", 45, 60))
        workers = [make_worker("w1"), make_worker("w2")]
        bookings = [make_booking("b1", "10:30", "11:15", worker_id="w1")]
        result = get_available_slots(make_settings(), DAY, service, workers, bookings, worker_id="w1")
        assert "09:00" in result["slots"]

    def test_slot_hidden_when_nobody_can_take_follow_up(self):
        service = make_service("colour", 30, follow_up=("Rinse", 45, 60))
        bookings = [make_booking("b1", "10:30", "11:15", worker_id="w1")]
        result = get_available_slots(make_settings(), DAY, service, [make_worker("w1")], bookings, worker_id="w1")
        assert "09:00" not in result["slots"]
