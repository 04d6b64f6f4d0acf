"""Analytics helpers shared across SpendWise services."""

from analytics.affordability import (
    AffordabilityBreakdown,
    AffordabilityResult,
    PurchaseCheck,
    calculate_available_money,
    calculate_goal_allocation,
    can_afford,
    days_left_in_month,
    format_money,
    get_spending_advice,
)
from analytics.categorize import CATEGORY_KEYWORDS, categorize_transaction, merchant_group
from analytics.subscriptions import (
    Subscription,
    SubscriptionRecommendation,
    SubscriptionReport,
    detect_subscriptions,
    get_subscription_summary,
)

__all__ = [
    "CATEGORY_KEYWORDS",
    "categorize_transaction",
    "merchant_group",
    "AffordabilityBreakdown",
    "AffordabilityResult",
    "PurchaseCheck",
    "calculate_available_money",
    "calculate_goal_allocation",
    "can_afford",
    "days_left_in_month",
    "format_money",
    "get_spending_advice",
    "Subscription",
    "SubscriptionRecommendation",
    "SubscriptionReport",
    "detect_subscriptions",
    "get_subscription_summary",
]
