"""Tests for formatting helpers, CSV loading and the demo ledger."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.data_loader import load_transactions, transactions_frame
from core.formatting import (
    calculate_total,
    format_currency,
    format_date,
    get_date_days_ago,
    group_by_category,
    round_amount,
    sort_by_date,
)
from core.models import SavingsGoal, Transaction, coerce_transaction
from data.sample import sample_goal, sample_transactions, write_sample_csv


def _txn(txn_id: str, day: str, amount: float, category: str | None = "Food") -> Transaction:
    return Transaction(id=txn_id, date=date.fromisoformat(day), merchant=txn_id, amount=amount, category=category)


@pytest.mark.parametrize(
    ("amount", "expected"),
    [
        (123456.78, "₹1,23,456.78"),
        (999, "₹999.00"),
        (10000000, "₹1,00,00,000.00"),
        (-1500, "-₹1,500.00"),
        ("abc", "₹0.00"),
        (float("nan"), "₹0.00"),
    ],
)
def test_format_currency_indian_grouping(amount, expected):
    assert format_currency(amount) == expected


def test_format_date_variants():
    assert format_date("2024-12-10") == "Dec 10, 2024"
    assert format_date(date(2024, 1, 5)) == "Jan 5, 2024"
    assert format_date("") == ""
    assert format_date("not a date") == "Invalid Date"


def test_round_amount_rounds_halves_up():
    assert round_amount(2.5) == 3
    assert round_amount(-2.5) == -2
    assert round_amount(9166.67) == 9167


def test_get_date_days_ago_rejects_invalid_offsets():
    today = date(2024, 1, 10)

    assert get_date_days_ago(7, today=today) == date(2024, 1, 3)
    assert get_date_days_ago(-1, today=today) == today
    assert get_date_days_ago("7", today=today) == today


def test_sort_group_and_total():
    txns = [_txn("a", "2024-01-02", -100), _txn("b", "2024-01-05", 500, "Income"), _txn("c", "2024-01-01", -50, None)]

    assert [t.id for t in sort_by_date(txns)] == ["b", "a", "c"]
    assert [t.id for t in sort_by_date(txns, "asc")] == ["c", "a", "b"]
    assert set(group_by_category(txns)) == {"Food", "Income", "Other"}
    assert calculate_total(txns) == pytest.approx(350)
    assert calculate_total([]) == 0


def test_coerce_transaction_handles_store_rows():
    txn = coerce_transaction(
        {"id": 7, "transaction_date": "2024-01-02T10:00:00", "merchant": "Uber", "amount": "120", "type": "expense"}
    )

    assert txn is not None
    assert txn.id == "7"
    assert txn.date == date(2024, 1, 2)
    assert txn.amount == -120
    assert txn.is_income is False
    assert coerce_transaction({"merchant": "No date", "amount": 5}) is None


def test_sample_history_is_anchored_to_today():
    today = date(2024, 6, 30)
    txns = sample_transactions(today)

    assert len(txns) == 60
    assert min(t.date for t in txns) == date(2024, 5, 2)
    assert max(t.date for t in txns) <= today
    assert sum(t.amount for t in txns if t.is_income) == pytest.approx(28000)

    goal = sample_goal(today)
    assert isinstance(goal, SavingsGoal)
    assert goal.progress == pytest.approx(18)


def test_load_transactions_round_trips_demo_csv(tmp_path):
    today = date(2024, 6, 30)
    csv_path = write_sample_csv(tmp_path / "transactions.csv", today)

    loaded = load_transactions(csv_path)

    assert loaded == sample_transactions(today)

    frame = transactions_frame(loaded)
    assert list(frame.columns) == ["id", "date", "merchant", "amount", "category", "type"]
    assert str(frame["date"].dtype).startswith("datetime64")


def test_load_transactions_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_transactions(tmp_path / "missing.csv")


def test_non_finite_values_are_neutralised():
    assert format_currency(float("inf")) == "₹0.00"
    assert format_currency(float("-inf")) == "₹0.00"
    assert round_amount(float("inf")) == 0
    assert coerce_transaction({"date": "2024-01-02", "merchant": "Glitch", "amount": "Infinity"}) is None
