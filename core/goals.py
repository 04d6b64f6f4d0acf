"""Single savings goal tracking with milestones and pacing feedback."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Callable, Mapping, TypedDict

from core.formatting import CURRENCY_SYMBOL
from core.models import MILESTONE_THRESHOLDS, Milestone, SavingsGoal, parse_day
from core.storage import Derive, KeyValueStore, PersistentValue, Replace

__all__ = [
    "GoalStatus",
    "GoalError",
    "GoalValidationError",
    "GoalResult",
    "GoalSnapshot",
    "GoalTracker",
]

ON_TRACK_MARGIN = 10.0


class GoalStatus(str, Enum):
    NO_GOAL = "no_goal"
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class GoalError(str, Enum):
    EMPTY_NAME = "empty_name"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    PAST_DEADLINE = "past_deadline"
    NO_ACTIVE_GOAL = "no_active_goal"


_DEFAULT_MESSAGES: dict[GoalError, str] = {
    GoalError.EMPTY_NAME: "Your goal needs a name! What are you saving for?",
    GoalError.NON_POSITIVE_AMOUNT: "Amount must be positive",
    GoalError.PAST_DEADLINE: "Deadline can't be in the past (unless you have a time machine?)",
    GoalError.NO_ACTIVE_GOAL: "Create a goal first before adding savings",
}


class GoalValidationError(ValueError):
    """Raised by :meth:`GoalResult.unwrap` for a rejected goal update."""

    def __init__(self, error: GoalError, message: str | None = None) -> None:
        self.error = error
        super().__init__(message or _DEFAULT_MESSAGES[error])


@dataclass(frozen=True)
class GoalResult:
    """Outcome of a goal action: the goal after the action, or why it was rejected."""

    goal: SavingsGoal | None = None
    error: GoalError | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: GoalError, message: str | None = None) -> "GoalResult":
        return cls(error=error, message=message or _DEFAULT_MESSAGES[error])

    def unwrap(self) -> SavingsGoal | None:
        if self.error is not None:
            raise GoalValidationError(self.error, self.message)
        return self.goal


class GoalSnapshot(TypedDict):
    goal: SavingsGoal | None
    status: GoalStatus
    progress: float
    days_left: int | None
    daily_target: float
    is_on_track: bool
    amount_remaining: float
    motivational_message: str | None


def _positive_amount(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def _encode_goal(goal: SavingsGoal | None) -> dict[str, Any] | None:
    return goal.to_dict() if goal is not None else None


def _decode_goal(data: Any) -> SavingsGoal | None:
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected a goal mapping, got {type(data).__name__}")
    return SavingsGoal.from_dict(data)


def _crossed_milestone(goal: SavingsGoal, new_amount: float) -> int | None:
    """Highest threshold crossed upwards by moving to ``new_amount``, if any.

    Thresholds at or below one already recorded are never recorded again.
    """

    previous = goal.progress
    new = new_amount / goal.target_amount * 100
    recorded = max((milestone.percentage for milestone in goal.milestones), default=0)
    crossed = [t for t in MILESTONE_THRESHOLDS if previous < t <= new and t > recorded]
    return max(crossed) if crossed else None


class GoalTracker:
    """Tracks one savings goal persisted in a key-value store.

    Creating a goal replaces any previous one. Derived figures (progress,
    pacing, message) are computed from the current goal on every access.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = "goal",
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._clock = clock
        self._goal: PersistentValue[SavingsGoal | None] = PersistentValue(
            store, key, None, encode=_encode_goal, decode=_decode_goal
        )

    @property
    def goal(self) -> SavingsGoal | None:
        return self._goal.value

    # Actions

    def create_goal(self, name: Any, target_amount: Any, deadline: Any) -> GoalResult:
        if not isinstance(name, str) or not name.strip():
            return GoalResult.failure(GoalError.EMPTY_NAME)

        target = _positive_amount(target_amount)
        if target is None:
            return GoalResult.failure(GoalError.NON_POSITIVE_AMOUNT, "Target amount must be greater than 0")

        today = self._clock()
        deadline_day = parse_day(deadline)
        if deadline_day is None:
            return GoalResult.failure(GoalError.PAST_DEADLINE, "Deadline must be a valid date")
        if deadline_day < today:
            return GoalResult.failure(GoalError.PAST_DEADLINE)

        goal = SavingsGoal(
            id=f"goal_{uuid.uuid4().hex[:12]}",
            name=name.strip(),
            target_amount=target,
            current_amount=0.0,
            deadline=deadline_day,
            created_at=today,
            milestones=(),
        )
        return GoalResult(goal=self._goal.set(Replace(goal)))

    def add_savings(self, amount: Any) -> GoalResult:
        if self.goal is None:
            return GoalResult.failure(GoalError.NO_ACTIVE_GOAL)

        value = _positive_amount(amount)
        if value is None:
            return GoalResult.failure(GoalError.NON_POSITIVE_AMOUNT)

        today = self._clock()

        def deposit(goal: SavingsGoal | None) -> SavingsGoal | None:
            if goal is None:
                return None
            new_amount = goal.current_amount + value
            milestones = goal.milestones
            reached = _crossed_milestone(goal, new_amount)
            if reached is not None:
                milestones = milestones + (Milestone(percentage=reached, date=today),)
            return replace(goal, current_amount=new_amount, milestones=milestones)

        return GoalResult(goal=self._goal.set(Derive(deposit)))

    def spend_from_goal(self, amount: Any) -> GoalResult:
        """Withdraw from the goal; the saved amount never drops below zero."""

        if self.goal is None:
            return GoalResult()

        value = _positive_amount(amount)
        if value is None:
            return GoalResult.failure(GoalError.NON_POSITIVE_AMOUNT)

        def withdraw(goal: SavingsGoal | None) -> SavingsGoal | None:
            if goal is None:
                return None
            return replace(goal, current_amount=max(0.0, goal.current_amount - value))

        return GoalResult(goal=self._goal.set(Derive(withdraw)))

    def delete_goal(self) -> None:
        self._goal.remove()

    def can_afford(self, amount: float) -> bool:
        goal = self.goal
        return goal.current_amount >= amount if goal is not None else False

    # Derived figures

    @property
    def status(self) -> GoalStatus:
        goal = self.goal
        if goal is None:
            return GoalStatus.NO_GOAL
        if goal.current_amount >= goal.target_amount:
            return GoalStatus.COMPLETED
        if (goal.deadline - self._clock()).days < 0:
            return GoalStatus.OVERDUE
        return GoalStatus.ACTIVE

    @property
    def progress(self) -> float:
        """Percentage saved; can exceed 100."""

        goal = self.goal
        return goal.progress if goal is not None else 0.0

    @property
    def days_left(self) -> int | None:
        """Calendar days to the deadline, negative once it has passed."""

        goal = self.goal
        if goal is None:
            return None
        return (goal.deadline - self._clock()).days

    @property
    def amount_remaining(self) -> float:
        goal = self.goal
        if goal is None:
            return 0.0
        return max(0.0, goal.target_amount - goal.current_amount)

    @property
    def daily_target(self) -> float:
        days_left = self.days_left
        if days_left is None or days_left <= 0:
            return 0.0
        return self.amount_remaining / days_left

    @property
    def is_on_track(self) -> bool:
        goal = self.goal
        if goal is None:
            return False

        progress = self.progress
        if progress >= 100:
            return True

        days_left = (goal.deadline - self._clock()).days
        if days_left <= 0:
            return False

        total_days = (goal.deadline - goal.created_at).days
        if total_days <= 0:
            expected = 100.0
        else:
            expected = (total_days - days_left) / total_days * 100
        return progress >= expected - ON_TRACK_MARGIN

    @property
    def motivational_message(self) -> str | None:
        if self.goal is None:
            return None

        progress = self.progress
        if progress >= 100:
            return "🎉 Goal reached! Time to treat yourself!"
        if progress >= 75:
            return "So close! You got this! 💪"
        days_left = self.days_left
        if days_left is not None and days_left <= 0:
            return "Deadline passed, but it's not too late to keep saving!"

        per_day = math.ceil(self.daily_target)
        if self.is_on_track:
            return f"On track! Keep saving {CURRENCY_SYMBOL}{per_day}/day 🎯"
        return f"Need {CURRENCY_SYMBOL}{per_day}/day to make it. You can do it! 💰"

    def snapshot(self) -> GoalSnapshot:
        return {
            "goal": self.goal,
            "status": self.status,
            "progress": self.progress,
            "days_left": self.days_left,
            "daily_target": self.daily_target,
            "is_on_track": self.is_on_track,
            "amount_remaining": self.amount_remaining,
            "motivational_message": self.motivational_message,
        }

    def close(self) -> None:
        self._goal.close()
