"""Keyword based merchant categorisation and grouping helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

__all__ = [
    "CATEGORY_KEYWORDS",
    "categorize_transaction",
    "merchant_group",
]

FOOD_KEYWORDS = (
    "restaurant", "cafe", "coffee", "starbucks", "mcdonald", "kfc", "subway",
    "dominos", "pizza", "swiggy", "zomato", "food", "burger", "dining",
    "breakfast", "lunch", "dinner", "snack", "bakery", "bar", "pub",
    "haldiram", "bikanervala", "chaayos", "eatery", "gelato", "juice",
)

TRANSPORT_KEYWORDS = (
    "uber", "ola", "lyft", "taxi", "cab", "metro", "bus", "train", "railway",
    "petrol", "fuel", "gas", "parking", "toll", "rapido", "fastag", "airport", "auto",
)

ENTERTAINMENT_KEYWORDS = (
    "netflix", "spotify", "prime", "hotstar", "disney", "movie", "cinema",
    "pvr", "inox", "theater", "theatre", "concert", "event", "ticket",
    "game", "gaming", "steam", "playstation", "xbox", "bookmyshow", "amusement", "arcade",
)

SHOPPING_KEYWORDS = (
    "amazon", "flipkart", "myntra", "ajio", "shop", "store", "mall", "market",
    "clothing", "fashion", "electronics", "mobile", "laptop", "reliance",
    "croma", "ikea", "furniture", "jewelry", "apparel", "books", "stationary", "meesho",
)

BILLS_KEYWORDS = (
    "electric", "electricity", "water", "gas", "phone", "mobile recharge",
    "internet", "wifi", "broadband", "rent", "emi", "insurance",
    "subscription", "membership", "gym", "fitness", "loan", "utility",
)

# Order matters: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Food", FOOD_KEYWORDS),
    ("Transport", TRANSPORT_KEYWORDS),
    ("Entertainment", ENTERTAINMENT_KEYWORDS),
    ("Shopping", SHOPPING_KEYWORDS),
    ("Bills", BILLS_KEYWORDS),
)

FALLBACK_CATEGORY = "Other"


@lru_cache(maxsize=512)
def _categorize_text(merchant_lower: str) -> str:
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in merchant_lower for keyword in keywords):
            return category
    return FALLBACK_CATEGORY


def categorize_transaction(merchant: Any) -> str:
    """Return the spending category for a free-text merchant name.

    Parameters
    ----------
    merchant:
        Merchant name as typed or imported. Anything that is not a non-empty
        string maps to ``"Other"``.

    Returns
    -------
    str
        One of ``Food``, ``Transport``, ``Entertainment``, ``Shopping``,
        ``Bills`` or ``Other``.
    """

    if not merchant or not isinstance(merchant, str):
        return FALLBACK_CATEGORY

    return _categorize_text(merchant.strip().lower())


def merchant_group(raw_name: Any) -> str:
    """Return the case and whitespace insensitive key used to group merchants."""

    if not isinstance(raw_name, str):
        return ""
    return raw_name.lower().strip()
