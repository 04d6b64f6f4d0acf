"""Safe-to-spend calculations after bills and savings goals are set aside."""

from __future__ import annotations

import calendar
import math
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, TypedDict

from core.formatting import CURRENCY_SYMBOL, round_amount
from core.models import Bill, SavingsGoal, Transaction, coerce_bill, coerce_transactions, parse_day

__all__ = [
    "AffordabilityBreakdown",
    "AffordabilityResult",
    "PurchaseCheck",
    "calculate_available_money",
    "calculate_goal_allocation",
    "days_left_in_month",
    "format_money",
    "get_spending_advice",
    "can_afford",
]


class AffordabilityBreakdown(TypedDict):
    balance: int
    bills: int
    goals: int
    available: int


class AffordabilityResult(TypedDict):
    """Outcome of :func:`calculate_available_money`; money fields are whole units."""

    available_money: int
    current_balance: int
    upcoming_bills: int
    goal_allocation: int
    total_spent_this_month: int
    status: str
    color: str
    message: str
    daily_budget: int
    days_left_in_month: int
    breakdown: AffordabilityBreakdown


class PurchaseCheck(TypedDict):
    can_afford: bool
    recommendation: str
    reasoning: str
    percentage_of_available: int
    remaining_after: int


BILL_WINDOW_DAYS = 30
GOAL_MONTH_DAYS = 30
GOAL_INCOME_CAP = 0.3

_STATUS_TIERS: dict[str, tuple[str, str]] = {
    "critical": ("red", "⚠️ Warning: You may not have enough for upcoming bills and goals!"),
    "low": ("orange", "⚡ Low funds: Spend carefully!"),
    "moderate": ("yellow", "💡 Moderate funds: Watch your spending"),
    "good": ("green", "✅ Good to go! You can spend comfortably"),
}


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def calculate_available_money(
    current_balance: Any = 0,
    transactions: Iterable[Transaction | Mapping[str, Any]] | None = None,
    upcoming_bills: Iterable[Bill | Mapping[str, Any]] | None = None,
    savings_goals: Iterable[SavingsGoal | Mapping[str, Any]] | None = None,
    monthly_income: Any = 0,
    *,
    today: date | None = None,
) -> AffordabilityResult:
    """Work out how much can be spent once bills and goals are covered.

    Parameters
    ----------
    current_balance:
        Money currently in the account.
    transactions:
        Transaction history; only used for the informational month-to-date total.
    upcoming_bills:
        Bills, of which those due within the next 30 days are reserved.
    savings_goals:
        Goals whose monthly contribution is reserved.
    monthly_income:
        When positive, caps the goal reservation at 30% of this value.
    today:
        Reference day, defaults to the current date.

    Returns
    -------
    AffordabilityResult
        Rounded figures plus a status tier, colour tag and message.
    """

    today = today or date.today()
    balance = _as_number(current_balance)
    income = _as_number(monthly_income)

    # Signed sum: income inside the window lowers the figure. Display only.
    month_start = today.replace(day=1)
    total_spent = sum(
        txn.amount for txn in coerce_transactions(transactions) if month_start <= txn.date <= today
    )

    window_end = today + timedelta(days=BILL_WINDOW_DAYS)
    bills_total = 0.0
    for raw_bill in upcoming_bills or []:
        bill = coerce_bill(raw_bill)
        if bill is None:
            continue
        if today <= bill.due_date <= window_end:
            bills_total += bill.amount

    goal_allocation = calculate_goal_allocation(savings_goals, income, today=today)
    available = balance - bills_total - goal_allocation
    status = _resolve_status(available, balance)
    color, message = _STATUS_TIERS[status]

    days_left = days_left_in_month(today)
    daily_budget = available / days_left if days_left > 0 else 0.0

    return {
        "available_money": round_amount(available),
        "current_balance": round_amount(balance),
        "upcoming_bills": round_amount(bills_total),
        "goal_allocation": round_amount(goal_allocation),
        "total_spent_this_month": round_amount(total_spent),
        "status": status,
        "color": color,
        "message": message,
        "daily_budget": round_amount(daily_budget),
        "days_left_in_month": days_left,
        "breakdown": {
            "balance": round_amount(balance),
            "bills": round_amount(bills_total),
            "goals": round_amount(goal_allocation),
            "available": round_amount(available),
        },
    }


def _goal_fields(goal: SavingsGoal | Mapping[str, Any]) -> tuple[Any, Any, Any]:
    if isinstance(goal, SavingsGoal):
        return goal.target_amount, goal.current_amount, goal.deadline
    if isinstance(goal, Mapping):
        return goal.get("target_amount"), goal.get("current_amount"), goal.get("deadline")
    return None, None, None


def calculate_goal_allocation(
    savings_goals: Iterable[SavingsGoal | Mapping[str, Any]] | None,
    monthly_income: float = 0.0,
    *,
    today: date | None = None,
) -> float:
    """Return the amount to set aside this month across all goals."""

    today = today or date.today()
    total = 0.0
    for goal in savings_goals or []:
        target, current, deadline_raw = _goal_fields(goal)
        deadline = parse_day(deadline_raw)
        if target is None or current is None or deadline is None:
            continue

        remaining = _as_number(target) - _as_number(current)
        if remaining <= 0:
            continue

        days_to_deadline = (deadline - today).days
        months_left = max(1, math.ceil(days_to_deadline / GOAL_MONTH_DAYS))
        total += remaining / months_left

    if monthly_income > 0:
        return min(total, monthly_income * GOAL_INCOME_CAP)
    return total


def _resolve_status(available: float, balance: float) -> str:
    percentage = available / balance * 100 if balance > 0 else 0.0
    if available < 0:
        return "critical"
    if percentage < 20 or available < 1000:
        return "low"
    if percentage < 40 or available < 3000:
        return "moderate"
    return "good"


def days_left_in_month(today: date) -> int:
    """Days between ``today`` and the last day of its month (0 on the last day)."""

    last_day = calendar.monthrange(today.year, today.month)[1]
    return max(0, last_day - today.day)


def format_money(amount: float) -> str:
    """Compact rupee label: ``₹1.5L`` for lakhs, ``₹2.5K`` for thousands."""

    if amount >= 100000:
        return f"{CURRENCY_SYMBOL}{amount / 100000:.1f}L"
    if amount >= 1000:
        return f"{CURRENCY_SYMBOL}{amount / 1000:.1f}K"
    return f"{CURRENCY_SYMBOL}{round_amount(amount)}"


def get_spending_advice(result: Mapping[str, Any]) -> list[str]:
    status = result.get("status")
    daily_budget = round_amount(_as_number(result.get("daily_budget")))

    if status == "critical":
        advice = [
            "🚨 Critical: Consider postponing non-essential purchases",
            "💳 Review if you can delay any bills or adjust goal timelines",
        ]
    elif status == "low":
        advice = [
            "⚠️ Keep spending minimal - stick to essentials only",
            f"💰 Try to stay under {CURRENCY_SYMBOL}{daily_budget} per day",
        ]
    elif status == "moderate":
        advice = [
            "👍 You're doing okay, but be mindful of discretionary spending",
            f"💵 Daily budget: {CURRENCY_SYMBOL}{daily_budget}",
        ]
    else:
        advice = [
            "🎉 You're in good shape financially!",
            f"💸 You can comfortably spend up to {CURRENCY_SYMBOL}{daily_budget} daily",
        ]

    if _as_number(result.get("days_left_in_month")) <= 5:
        advice.append("📅 Month is almost over - stay strong!")

    return advice


def can_afford(result: Mapping[str, Any], purchase_amount: float) -> PurchaseCheck:
    """Classify a hypothetical purchase against the available money."""

    available = _as_number(result.get("available_money"))
    daily_budget = _as_number(result.get("daily_budget"))
    purchase = _as_number(purchase_amount)

    is_affordable = purchase <= available
    if available > 0:
        percentage = purchase / available * 100
    else:
        percentage = 100.0 if purchase > 0 else 0.0
    days_of_budget = purchase / daily_budget if daily_budget > 0 else 0.0

    if not is_affordable:
        recommendation = "no"
        reasoning = (
            f"This would exceed your available funds by {CURRENCY_SYMBOL}{round_amount(purchase - available)}"
        )
    elif percentage > 50:
        recommendation = "risky"
        reasoning = (
            f"This would use {round_amount(percentage)}% of your available money. "
            "Consider if it's essential."
        )
    elif percentage > 25:
        recommendation = "careful"
        reasoning = (
            f"This equals {round_amount(days_of_budget)} days of your daily budget. "
            "Make sure it's worth it."
        )
    else:
        recommendation = "yes"
        reasoning = (
            "You can afford this comfortably. "
            f"It's only {round_amount(percentage)}% of your available funds."
        )

    return {
        "can_afford": is_affordable,
        "recommendation": recommendation,
        "reasoning": reasoning,
        "percentage_of_available": round_amount(percentage),
        "remaining_after": round_amount(available - purchase),
    }
