"""Data loading utilities for SpendWise analytics."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Final, Iterable, Mapping

import pandas as pd

from core.models import Transaction, coerce_transactions

__all__ = ["FRAME_COLUMNS", "load_transactions", "transactions_frame"]


_CACHE_SIZE: Final[int] = 8

FRAME_COLUMNS: Final[tuple[str, ...]] = ("id", "date", "merchant", "amount", "category", "type")


@lru_cache(maxsize=_CACHE_SIZE)
def _read_csv(path: Path) -> tuple[Transaction, ...]:
    df = pd.read_csv(path, dtype={"id": str})
    df = df.astype(object).where(pd.notna(df), None)
    return tuple(coerce_transactions(df.to_dict(orient="records")))


def load_transactions(csv_path: str | Path) -> list[Transaction]:
    """Return the transactions stored in a CSV export.

    Rows without a readable date or amount are skipped. Results are cached per
    path to avoid redundant disk reads while a session recomputes analytics.
    """

    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    return list(_read_csv(path))


def transactions_frame(transactions: Iterable[Transaction | Mapping[str, Any]] | None) -> pd.DataFrame:
    """Build a DataFrame with one row per usable transaction and a datetime ``date``."""

    records = [txn.to_dict() for txn in coerce_transactions(transactions)]
    df = pd.DataFrame(records, columns=list(FRAME_COLUMNS))
    df["date"] = pd.to_datetime(df["date"])
    df["amount"] = df["amount"].astype(float)
    return df
