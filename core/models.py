"""Shared data model definitions for SpendWise."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

CATEGORIES: tuple[str, ...] = (
    "Food",
    "Transport",
    "Entertainment",
    "Shopping",
    "Bills",
    "Income",
    "Other",
)

MILESTONE_THRESHOLDS: tuple[int, ...] = (25, 50, 75, 100)


def parse_day(value: Any) -> date | None:
    """Return the calendar day for ``value`` or ``None`` when it cannot be read.

    Accepts ``date``/``datetime`` objects (pandas timestamps included) and ISO
    formatted strings; any time component is dropped.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _coerce_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class Transaction:
    """A recorded money movement. Positive amounts are income."""

    id: str
    date: date
    merchant: str
    amount: float
    category: str | None = None
    type: str | None = None

    @property
    def is_income(self) -> bool:
        return self.type == "income" or self.amount > 0

    @property
    def magnitude(self) -> float:
        return abs(self.amount)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "merchant": self.merchant,
            "amount": self.amount,
            "category": self.category,
            "type": self.type,
        }


def coerce_transaction(record: Transaction | Mapping[str, Any]) -> Transaction | None:
    """Build a :class:`Transaction` from a record, or ``None`` if it is unusable.

    Records may use ``transaction_date`` instead of ``date`` and carry amounts
    as strings. Magnitude-only amounts are signed according to ``type``.
    """

    if isinstance(record, Transaction):
        return record
    if not isinstance(record, Mapping):
        return None

    day = parse_day(record.get("date", record.get("transaction_date")))
    amount = _coerce_float(record.get("amount"))
    if day is None or amount is None:
        return None

    txn_type = record.get("type")
    if txn_type not in ("income", "expense"):
        txn_type = None
    if txn_type == "expense" and amount > 0:
        amount = -amount
    elif txn_type == "income" and amount < 0:
        amount = -amount

    merchant = record.get("merchant")
    category = record.get("category")
    return Transaction(
        id=str(record.get("id") or ""),
        date=day,
        merchant=merchant if isinstance(merchant, str) else "",
        amount=amount,
        category=category if isinstance(category, str) and category else None,
        type=txn_type,
    )


def coerce_transactions(records: Iterable[Transaction | Mapping[str, Any]] | None) -> list[Transaction]:
    """Coerce a batch of records, skipping the ones without a date or amount."""

    if not records:
        return []

    transactions: list[Transaction] = []
    for record in records:
        txn = coerce_transaction(record)
        if txn is None:
            logger.debug("Skipping unusable transaction record", extra={"record": repr(record)})
            continue
        transactions.append(txn)
    return transactions


@dataclass(frozen=True)
class Bill:
    """An upcoming bill used when working out what is safe to spend."""

    name: str
    amount: float
    due_date: date


def coerce_bill(record: Bill | Mapping[str, Any]) -> Bill | None:
    if isinstance(record, Bill):
        return record
    if not isinstance(record, Mapping):
        return None

    amount = _coerce_float(record.get("amount"))
    due = parse_day(record.get("due_date", record.get("dueDate")))
    if amount is None or due is None:
        return None
    return Bill(name=str(record.get("name") or ""), amount=amount, due_date=due)


@dataclass(frozen=True)
class Milestone:
    percentage: int
    date: date


@dataclass(frozen=True)
class SavingsGoal:
    """The single savings goal tracked at a time."""

    id: str
    name: str
    target_amount: float
    current_amount: float
    deadline: date
    created_at: date
    milestones: tuple[Milestone, ...] = field(default_factory=tuple)

    @property
    def progress(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return self.current_amount / self.target_amount * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "target_amount": self.target_amount,
            "current_amount": self.current_amount,
            "deadline": self.deadline.isoformat(),
            "created_at": self.created_at.isoformat(),
            "milestones": [
                {"percentage": milestone.percentage, "date": milestone.date.isoformat()}
                for milestone in self.milestones
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SavingsGoal":
        """Rebuild a goal from its persisted form.

        Raises ``ValueError`` when required fields are missing or malformed.
        """

        deadline = parse_day(data.get("deadline"))
        created_at = parse_day(data.get("created_at"))
        target = _coerce_float(data.get("target_amount"))
        current = _coerce_float(data.get("current_amount"))
        if deadline is None or created_at is None or target is None or current is None:
            raise ValueError(f"Malformed savings goal: {dict(data)!r}")
        if target <= 0 or current < 0:
            raise ValueError(f"Savings goal amounts out of range: target={target!r}, current={current!r}")

        milestones: list[Milestone] = []
        for raw in data.get("milestones") or []:
            if not isinstance(raw, Mapping):
                raise ValueError(f"Malformed milestone: {raw!r}")
            day = parse_day(raw.get("date"))
            percentage = raw.get("percentage")
            if day is None or percentage not in MILESTONE_THRESHOLDS:
                raise ValueError(f"Malformed milestone: {raw!r}")
            milestones.append(Milestone(percentage=int(percentage), date=day))

        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            target_amount=target,
            current_amount=current,
            deadline=deadline,
            created_at=created_at,
            milestones=tuple(milestones),
        )


__all__ = [
    "CATEGORIES",
    "MILESTONE_THRESHOLDS",
    "Bill",
    "Milestone",
    "SavingsGoal",
    "Transaction",
    "coerce_bill",
    "coerce_transaction",
    "coerce_transactions",
    "parse_day",
]
