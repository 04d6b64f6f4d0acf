"""Formatting and list helpers shared by SpendWise hosts."""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Iterable, Literal

from core.models import Transaction, parse_day

__all__ = [
    "CURRENCY_SYMBOL",
    "round_amount",
    "format_currency",
    "format_date",
    "get_date_days_ago",
    "sort_by_date",
    "group_by_category",
    "calculate_total",
]

CURRENCY_SYMBOL = "₹"


def round_amount(value: float) -> int:
    """Round to the nearest whole unit, halves rounding up; non-finite values give 0."""

    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs: list[str] = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Any) -> str:
    """Format ``amount`` as rupees with Indian digit grouping, e.g. ``₹1,23,456.78``."""

    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        return f"{CURRENCY_SYMBOL}0.00"

    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}.{fraction}"


def format_date(value: Any) -> str:
    """Render a calendar day as ``Dec 10, 2024``."""

    if not value:
        return ""
    day = parse_day(value)
    if day is None:
        return "Invalid Date"
    return f"{day.strftime('%b')} {day.day}, {day.year}"


def get_date_days_ago(days: Any, *, today: date | None = None) -> date:
    """Return the day ``days`` before ``today``; invalid offsets return ``today``."""

    today = today or date.today()
    if isinstance(days, bool) or not isinstance(days, (int, float)) or days < 0:
        return today
    return today - timedelta(days=int(days))


def sort_by_date(
    transactions: Iterable[Transaction],
    order: Literal["asc", "desc"] = "desc",
) -> list[Transaction]:
    """Return a sorted copy, newest first unless ``order="asc"``."""

    return sorted(transactions, key=lambda txn: txn.date, reverse=order != "asc")


def group_by_category(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    grouped: dict[str, list[Transaction]] = defaultdict(list)
    for txn in transactions:
        grouped[txn.category or "Other"].append(txn)
    return dict(grouped)


def calculate_total(transactions: Iterable[Transaction] | None) -> float:
    """Signed total: income adds, expenses subtract."""

    if not transactions:
        return 0.0
    return float(sum(txn.amount for txn in transactions))
