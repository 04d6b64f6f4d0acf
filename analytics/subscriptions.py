"""Recurring subscription detection and savings recommendations."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping, Sequence, TypedDict

import numpy as np
import pandas as pd

from analytics.categorize import merchant_group
from core.data_loader import transactions_frame
from core.formatting import CURRENCY_SYMBOL, round_amount
from core.models import Transaction

__all__ = [
    "Subscription",
    "SubscriptionRecommendation",
    "SubscriptionReport",
    "detect_subscriptions",
    "get_subscription_summary",
]


class Subscription(TypedDict):
    """A merchant whose charges look like a recurring subscription."""

    merchant: str
    amount: int
    frequency: int
    last_used: date
    days_since_last_used: int
    total_transactions: int
    category: str
    is_active: bool


class SubscriptionRecommendation(TypedDict):
    type: str
    title: str
    description: str
    potential_savings: int
    subscriptions: list[str]


class SubscriptionReport(TypedDict):
    subscriptions: list[Subscription]
    total_monthly_cost: int
    recommendations: list[SubscriptionRecommendation]


KNOWN_SUBSCRIPTIONS = (
    "netflix", "prime", "amazon prime", "spotify", "hotstar",
    "zee5", "sonyliv", "jio", "airtel", "gym", "youtube premium",
    "apple music", "disney", "swiggy one", "zomato gold",
)
STREAMING_SERVICES = ("netflix", "prime", "hotstar", "zee5", "sonyliv", "disney")

AMOUNT_TOLERANCE = 0.1
MONTHLY_GAP_RANGE = (20.0, 35.0)
DEFAULT_FREQUENCY_DAYS = 30
ACTIVE_WITHIN_DAYS = 40
UNUSED_AFTER_DAYS = 30
EXPENSIVE_ABOVE = 500
CONSOLIDATION_SAVINGS = 0.4


def detect_subscriptions(
    transactions: Iterable[Transaction | Mapping[str, Any]] | None,
    *,
    today: date | None = None,
) -> SubscriptionReport:
    """Find recurring charges in a transaction history.

    Parameters
    ----------
    transactions:
        Transaction records; amounts are compared by magnitude so signed and
        magnitude-only histories behave the same.
    today:
        Reference day for recency, defaults to the current date.

    Returns
    -------
    SubscriptionReport
        Subscriptions sorted by amount (largest first), their combined monthly
        cost and any cancel/consolidate/review recommendations.
    """

    today = today or date.today()
    frame = transactions_frame(transactions)
    if frame.empty:
        return {"subscriptions": [], "total_monthly_cost": 0, "recommendations": []}

    frame["group_key"] = frame["merchant"].map(merchant_group)
    frame["charge"] = frame["amount"].abs()

    subscriptions: list[Subscription] = []
    for group_key, group_df in frame.groupby("group_key", sort=False):
        if len(group_df) < 2:
            continue

        group_df = group_df.sort_values(by="date", kind="stable")
        charges = group_df["charge"].to_numpy(dtype=float)
        mean_charge = float(charges.mean())
        similar_amounts = mean_charge > 0 and bool(
            np.all(np.abs(charges - mean_charge) / mean_charge < AMOUNT_TOLERANCE)
        )

        gaps = group_df["date"].diff().dt.days.dropna()
        average_gap = float(gaps.mean()) if not gaps.empty else 0.0

        is_known = any(service in str(group_key) for service in KNOWN_SUBSCRIPTIONS)
        low, high = MONTHLY_GAP_RANGE
        is_monthly = similar_amounts and low <= average_gap <= high
        if not (is_known or is_monthly):
            continue

        last_row = group_df.iloc[-1]
        category = last_row["category"]
        last_used = pd.Timestamp(last_row["date"]).date()
        days_since = (today - last_used).days

        subscriptions.append(
            {
                "merchant": str(last_row["merchant"]),
                "amount": round_amount(mean_charge),
                "frequency": round_amount(average_gap) if average_gap > 0 else DEFAULT_FREQUENCY_DAYS,
                "last_used": last_used,
                "days_since_last_used": int(days_since),
                "total_transactions": int(len(group_df)),
                "category": category if isinstance(category, str) and category else "Subscription",
                "is_active": days_since < ACTIVE_WITHIN_DAYS,
            }
        )

    subscriptions.sort(key=lambda sub: sub["amount"], reverse=True)
    total_monthly_cost = sum(sub["amount"] for sub in subscriptions)

    return {
        "subscriptions": subscriptions,
        "total_monthly_cost": round_amount(total_monthly_cost),
        "recommendations": _build_recommendations(subscriptions),
    }


def _merchant_list(subscriptions: Sequence[Subscription]) -> list[str]:
    return [sub["merchant"] for sub in subscriptions]


def _build_recommendations(subscriptions: Sequence[Subscription]) -> list[SubscriptionRecommendation]:
    recommendations: list[SubscriptionRecommendation] = []

    unused = [sub for sub in subscriptions if sub["days_since_last_used"] > UNUSED_AFTER_DAYS]
    if unused:
        plural = "s" if len(unused) > 1 else ""
        recommendations.append(
            {
                "type": "cancel",
                "title": f"Cancel {len(unused)} Unused Subscription{plural}",
                "description": (
                    f"You haven't used {', '.join(_merchant_list(unused))} in over {UNUSED_AFTER_DAYS} days"
                ),
                "potential_savings": round_amount(sum(sub["amount"] for sub in unused)),
                "subscriptions": _merchant_list(unused),
            }
        )

    streaming = [
        sub
        for sub in subscriptions
        if any(service in sub["merchant"].lower() for service in STREAMING_SERVICES)
    ]
    if len(streaming) > 2:
        streaming_cost = sum(sub["amount"] for sub in streaming)
        recommendations.append(
            {
                "type": "consolidate",
                "title": f"Consider Consolidating {len(streaming)} Streaming Services",
                "description": (
                    f"You're spending {CURRENCY_SYMBOL}{streaming_cost}/month on streaming. "
                    "Consider sharing family plans or rotating subscriptions."
                ),
                "potential_savings": round_amount(streaming_cost * CONSOLIDATION_SAVINGS),
                "subscriptions": _merchant_list(streaming),
            }
        )

    expensive = [sub for sub in subscriptions if sub["amount"] > EXPENSIVE_ABOVE]
    if expensive:
        recommendations.append(
            {
                "type": "review",
                "title": "Review High-Cost Subscriptions",
                "description": (
                    f"{', '.join(_merchant_list(expensive))} cost over "
                    f"{CURRENCY_SYMBOL}{EXPENSIVE_ABOVE}/month. Are you using them enough?"
                ),
                "potential_savings": 0,
                "subscriptions": _merchant_list(expensive),
            }
        )

    return recommendations


def get_subscription_summary(subscriptions: Sequence[Subscription] | None) -> str:
    """One-line summary of detected subscriptions for headers and logs."""

    if not subscriptions:
        return "No subscriptions detected"

    active = sum(1 for sub in subscriptions if sub["is_active"])
    inactive = len(subscriptions) - active
    total = sum(sub["amount"] for sub in subscriptions)
    plural = "s" if len(subscriptions) > 1 else ""
    return (
        f"{len(subscriptions)} subscription{plural} detected "
        f"({active} active, {inactive} unused) • {CURRENCY_SYMBOL}{round_amount(total)}/month"
    )
