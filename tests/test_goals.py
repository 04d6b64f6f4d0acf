"""Tests for the savings goal tracker."""

from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.goals import GoalError, GoalStatus, GoalTracker, GoalValidationError
from core.storage import MemoryStore


class Clock:
    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture()
def clock() -> Clock:
    return Clock(date(2024, 1, 1))


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def tracker(store, clock) -> GoalTracker:
    return GoalTracker(store, clock=clock)


def _milestones(tracker: GoalTracker) -> list[int]:
    assert tracker.goal is not None
    return [milestone.percentage for milestone in tracker.goal.milestones]


def test_create_goal_persists_and_replaces(tracker, store):
    first = tracker.create_goal("Trip", 10000, "2024-02-01")
    result = tracker.create_goal("  AirPods  ", 25000, "2024-03-01")

    assert first.ok and result.ok
    goal = result.unwrap()
    assert goal.name == "AirPods"
    assert goal.current_amount == 0
    assert goal.created_at == date(2024, 1, 1)
    assert goal.milestones == ()
    assert tracker.status is GoalStatus.ACTIVE
    assert tracker.days_left == 60
    assert json.loads(store.get("goal"))["name"] == "AirPods"


@pytest.mark.parametrize(
    ("name", "amount", "deadline", "error", "message"),
    [
        ("", 1000, "2024-02-01", GoalError.EMPTY_NAME, "Your goal needs a name! What are you saving for?"),
        ("   ", 1000, "2024-02-01", GoalError.EMPTY_NAME, None),
        ("Bike", 0, "2024-02-01", GoalError.NON_POSITIVE_AMOUNT, "Target amount must be greater than 0"),
        ("Bike", "lots", "2024-02-01", GoalError.NON_POSITIVE_AMOUNT, None),
        ("Bike", 1000, "2023-12-31", GoalError.PAST_DEADLINE, None),
        ("Bike", 1000, "someday", GoalError.PAST_DEADLINE, "Deadline must be a valid date"),
    ],
)
def test_create_goal_validation(tracker, name, amount, deadline, error, message):
    result = tracker.create_goal(name, amount, deadline)

    assert not result.ok
    assert result.error is error
    if message is not None:
        assert result.message == message
    assert tracker.goal is None


def test_deadline_today_is_allowed(tracker):
    assert tracker.create_goal("Snacks", 100, date(2024, 1, 1)).ok


def test_milestones_record_highest_crossed_once(tracker):
    tracker.create_goal("AirPods", 25000, "2024-03-01")

    tracker.add_savings(6250)
    assert _milestones(tracker) == [25]

    tracker.add_savings(100)
    assert _milestones(tracker) == [25]

    tracker.add_savings(20000)
    assert tracker.progress == pytest.approx(105.4)
    assert _milestones(tracker) == [25, 100]
    assert tracker.status is GoalStatus.COMPLETED


def test_milestones_not_repeated_after_withdrawal(tracker):
    tracker.create_goal("AirPods", 1000, "2024-03-01")
    tracker.add_savings(600)
    assert _milestones(tracker) == [50]

    tracker.spend_from_goal(500)
    tracker.add_savings(450)

    assert tracker.goal.current_amount == pytest.approx(550)
    assert _milestones(tracker) == [50]


def test_add_savings_without_goal(tracker):
    result = tracker.add_savings(500)

    assert result.error is GoalError.NO_ACTIVE_GOAL
    assert result.message == "Create a goal first before adding savings"
    with pytest.raises(GoalValidationError) as excinfo:
        result.unwrap()
    assert excinfo.value.error is GoalError.NO_ACTIVE_GOAL


def test_add_savings_after_delete_fails(tracker, store):
    tracker.create_goal("Trip", 10000, "2024-02-01")
    tracker.delete_goal()

    assert tracker.status is GoalStatus.NO_GOAL
    assert store.get("goal") is None
    assert tracker.add_savings(100).error is GoalError.NO_ACTIVE_GOAL


@pytest.mark.parametrize("amount", [0, -5, "abc", None, float("inf")])
def test_add_savings_rejects_non_positive(tracker, amount):
    tracker.create_goal("Trip", 10000, "2024-02-01")

    assert tracker.add_savings(amount).error is GoalError.NON_POSITIVE_AMOUNT
    assert tracker.goal.current_amount == 0


def test_spend_from_goal_floors_at_zero(tracker):
    assert tracker.spend_from_goal(100).ok
    assert tracker.goal is None

    tracker.create_goal("Trip", 10000, "2024-02-01")
    tracker.add_savings(300)
    result = tracker.spend_from_goal(1000)

    assert result.unwrap().current_amount == 0
    assert tracker.spend_from_goal(-1).error is GoalError.NON_POSITIVE_AMOUNT


def test_can_afford_from_goal(tracker):
    assert tracker.can_afford(1) is False

    tracker.create_goal("Trip", 10000, "2024-02-01")
    tracker.add_savings(300)

    assert tracker.can_afford(300) is True
    assert tracker.can_afford(301) is False


def test_pacing_messages(tracker, clock):
    tracker.create_goal("AirPods", 25000, "2024-03-01")
    clock.today = date(2024, 1, 31)

    tracker.add_savings(11250)
    assert tracker.days_left == 30
    assert tracker.is_on_track is True
    assert tracker.daily_target == pytest.approx(13750 / 30)
    assert tracker.motivational_message == "On track! Keep saving ₹459/day 🎯"

    tracker.spend_from_goal(3750)
    assert tracker.is_on_track is False
    assert tracker.motivational_message == "Need ₹584/day to make it. You can do it! 💰"

    tracker.add_savings(12000)
    assert tracker.motivational_message == "So close! You got this! 💪"


def test_overdue_goal(tracker, clock):
    tracker.create_goal("AirPods", 25000, "2024-03-01")
    tracker.add_savings(1000)
    clock.today = date(2024, 3, 2)

    snapshot = tracker.snapshot()

    assert snapshot["status"] is GoalStatus.OVERDUE
    assert snapshot["days_left"] == -1
    assert snapshot["daily_target"] == 0
    assert snapshot["is_on_track"] is False
    assert snapshot["motivational_message"] == "Deadline passed, but it's not too late to keep saving!"


def test_completed_goal_message(tracker):
    tracker.create_goal("Shoes", 2000, "2024-02-01")
    tracker.add_savings(2500)

    assert tracker.progress == pytest.approx(125)
    assert tracker.amount_remaining == 0
    assert tracker.is_on_track is True
    assert tracker.motivational_message == "🎉 Goal reached! Time to treat yourself!"


def test_snapshot_without_goal(tracker):
    assert tracker.snapshot() == {
        "goal": None,
        "status": GoalStatus.NO_GOAL,
        "progress": 0.0,
        "days_left": None,
        "daily_target": 0.0,
        "is_on_track": False,
        "amount_remaining": 0.0,
        "motivational_message": None,
    }


def test_trackers_sharing_a_store_stay_in_sync(store, clock):
    first = GoalTracker(store, clock=clock)
    first.create_goal("Trip", 10000, "2024-02-01")

    second = GoalTracker(store, clock=clock)
    assert second.goal == first.goal

    first.add_savings(2500)
    assert second.goal.current_amount == 2500
    assert [m.percentage for m in second.goal.milestones] == [25]

    second.delete_goal()
    assert first.goal is None

    first.close()
    second.close()


def test_corrupt_stored_goal_falls_back_to_none(store, clock):
    store.set("goal", "{not json")
    assert GoalTracker(store, clock=clock).goal is None

    store.set("goal", json.dumps({"name": "missing fields"}))
    assert GoalTracker(store, clock=clock).goal is None


def test_small_deposits_below_first_milestone_record_nothing(tracker):
    tracker.create_goal("Headphones", 1000, "2024-03-01")
    tracker.add_savings(200)

    for _ in range(5):
        tracker.add_savings(0.01)
        assert _milestones(tracker) == []

    tracker.add_savings(99.95)

    assert tracker.progress == pytest.approx(30)
    assert _milestones(tracker) == [25]


@pytest.mark.parametrize(
    ("target", "current"),
    [(0, 0), (-100, 0), (1000, -5)],
)
def test_out_of_range_stored_goal_is_ignored(store, clock, target, current):
    store.set(
        "goal",
        json.dumps(
            {
                "id": "goal_x",
                "name": "Shared",
                "target_amount": target,
                "current_amount": current,
                "deadline": "2024-02-01",
                "created_at": "2024-01-01",
                "milestones": [],
            }
        ),
    )
    tracker = GoalTracker(store, clock=clock)

    assert tracker.goal is None
    assert tracker.add_savings(10).error is GoalError.NO_ACTIVE_GOAL


def test_out_of_range_goal_from_another_writer_keeps_current_goal(tracker, store):
    tracker.create_goal("Trip", 10000, "2024-02-01")

    store.set("goal", json.dumps({**tracker.goal.to_dict(), "target_amount": 0}))

    assert tracker.goal.target_amount == 10000
    assert tracker.add_savings(10).ok
