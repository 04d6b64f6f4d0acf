"""Transaction persistence and the optimistic in-memory ledger built on it."""

from __future__ import annotations

import logging
import math
import sqlite3
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from analytics.categorize import categorize_transaction
from config import Settings, get_settings
from core.models import Transaction, coerce_transaction, coerce_transactions, parse_day

logger = logging.getLogger(__name__)

__all__ = [
    "StoreError",
    "TransactionStore",
    "SqliteTransactionStore",
    "TransactionLedger",
]

_COLUMNS = ("id", "merchant", "amount", "category", "transaction_date", "type")
_UPDATABLE = frozenset(_COLUMNS) - {"id"}


class StoreError(RuntimeError):
    """Raised when the transaction store rejects a read or write."""


class TransactionStore(Protocol):
    def fetch_all(self) -> list[dict[str, Any]]: ...

    def insert(self, record: Mapping[str, Any]) -> dict[str, Any]: ...

    def update(self, txn_id: str, changes: Mapping[str, Any]) -> None: ...

    def delete(self, txn_id: str) -> None: ...

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]: ...


def _store_columns(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Map record fields onto store columns, renaming ``date`` and formatting days."""

    columns: dict[str, Any] = {}
    for key, value in changes.items():
        column = "transaction_date" if key == "date" else key
        if column not in _UPDATABLE:
            raise StoreError(f"Unknown transaction field: {key}")
        if column == "transaction_date":
            day = parse_day(value)
            value = day.isoformat() if day is not None else value
        columns[column] = value
    return columns


class SqliteTransactionStore:
    """SQLite-backed store; every successful write notifies subscribers."""

    def __init__(self, db_path: str | Path = "spendwise.db") -> None:
        try:
            self.conn = sqlite3.connect(str(db_path))
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open transaction database: {exc}") from exc
        self.conn.row_factory = sqlite3.Row
        self._listeners: list[Callable[[], None]] = []
        self._create_tables()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SqliteTransactionStore":
        """Open the database at ``Settings.database_path`` (``DATABASE_PATH``)."""

        settings = settings or get_settings()
        return cls(settings.database_path)

    def _create_tables(self) -> None:
        with self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    merchant TEXT,
                    amount REAL NOT NULL,
                    category TEXT,
                    transaction_date TEXT NOT NULL,
                    type TEXT
                )
                """
            )

    def fetch_all(self) -> list[dict[str, Any]]:
        try:
            rows = self.conn.execute(
                "SELECT id, merchant, amount, category, transaction_date, type "
                "FROM transactions ORDER BY transaction_date DESC, rowid DESC"
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not fetch transactions: {exc}") from exc
        return [dict(row) for row in rows]

    def insert(self, record: Mapping[str, Any]) -> dict[str, Any]:
        columns = _store_columns({key: value for key, value in record.items() if key != "id"})
        columns["id"] = str(uuid.uuid4())
        names = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        try:
            with self.conn:
                self.conn.execute(
                    f"INSERT INTO transactions ({names}) VALUES ({placeholders})",
                    tuple(columns.values()),
                )
                row = self.conn.execute(
                    "SELECT id, merchant, amount, category, transaction_date, type FROM transactions WHERE id = ?",
                    (columns["id"],),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not insert transaction: {exc}") from exc
        self._notify()
        return dict(row)

    def update(self, txn_id: str, changes: Mapping[str, Any]) -> None:
        columns = _store_columns(changes)
        if not columns:
            return
        assignments = ", ".join(f"{name} = ?" for name in columns)
        try:
            with self.conn:
                cursor = self.conn.execute(
                    f"UPDATE transactions SET {assignments} WHERE id = ?",
                    (*columns.values(), txn_id),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Could not update transaction {txn_id}: {exc}") from exc
        if cursor.rowcount == 0:
            raise StoreError(f"Transaction not found: {txn_id}")
        self._notify()

    def delete(self, txn_id: str) -> None:
        try:
            with self.conn:
                self.conn.execute("DELETE FROM transactions WHERE id = ?", (txn_id,))
        except sqlite3.Error as exc:
            raise StoreError(f"Could not delete transaction {txn_id}: {exc}") from exc
        self._notify()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def close(self) -> None:
        self.conn.close()


class TransactionLedger:
    """In-memory transaction list kept in sync with a :class:`TransactionStore`.

    Writes are applied locally first, then sent to the store; a failed write
    restores the previous list. Change notifications from the store trigger a
    full refetch.
    """

    def __init__(
        self,
        store: TransactionStore,
        *,
        clock: Callable[[], date] = date.today,
        live: bool = True,
    ) -> None:
        self.store = store
        self._clock = clock
        self.transactions: list[Transaction] = []
        self.error: str | None = None
        self.loading = False

        self.refresh()
        self._unsubscribe = store.subscribe(self.refresh) if live else None

    def refresh(self) -> None:
        self.loading = True
        try:
            records = self.store.fetch_all()
        except StoreError as exc:
            logger.error("Error fetching transactions", extra={"error": str(exc)})
            self.error = str(exc)
            return
        finally:
            self.loading = False
        self.transactions = coerce_transactions(records)
        self.error = None

    def add_transaction(
        self,
        merchant: str,
        amount: float | str,
        *,
        category: str | None = None,
        day: date | str | None = None,
    ) -> Transaction | None:
        """Record a transaction; returns the stored version or ``None`` if it was rejected.

        Amounts that are not finite numbers are rejected before anything is written.
        """

        try:
            value = float(amount)
        except (TypeError, ValueError):
            value = math.nan
        if isinstance(amount, bool) or not math.isfinite(value):
            logger.error("Rejected transaction amount", extra={"merchant": merchant, "amount": repr(amount)})
            self.error = f"Invalid amount: {amount!r}"
            return None

        pending = Transaction(
            id=f"temp_{uuid.uuid4().hex}",
            date=parse_day(day) or self._clock(),
            merchant=merchant,
            amount=value,
            category=category or categorize_transaction(merchant),
            type="income" if value > 0 else "expense",
        )
        self.transactions = [pending, *self.transactions]

        payload = pending.to_dict()
        payload.pop("id")
        try:
            record = self.store.insert(payload)
        except StoreError as exc:
            logger.error("Error adding transaction", extra={"error": str(exc)})
            self.transactions = [txn for txn in self.transactions if txn.id != pending.id]
            return None

        saved = coerce_transaction(record) or pending
        self.transactions = [saved if txn.id == pending.id else txn for txn in self.transactions]
        return saved

    def delete_transaction(self, txn_id: str) -> bool:
        previous = list(self.transactions)
        self.transactions = [txn for txn in self.transactions if txn.id != txn_id]
        try:
            self.store.delete(txn_id)
        except StoreError as exc:
            logger.error("Error deleting transaction", extra={"id": txn_id, "error": str(exc)})
            self.transactions = previous
            return False
        return True

    def update_transaction(self, txn_id: str, changes: Mapping[str, Any]) -> bool:
        previous = list(self.transactions)
        updated: list[Transaction] = []
        for txn in self.transactions:
            if txn.id == txn_id:
                merged = txn.to_dict()
                for key, value in changes.items():
                    merged["date" if key == "transaction_date" else key] = value
                txn = coerce_transaction(merged) or txn
            updated.append(txn)
        self.transactions = updated

        try:
            self.store.update(txn_id, changes)
        except StoreError as exc:
            logger.error("Error updating transaction", extra={"id": txn_id, "error": str(exc)})
            self.transactions = previous
            return False
        return True

    @property
    def income(self) -> float:
        return float(sum(txn.amount for txn in self.transactions if txn.is_income))

    @property
    def expenses(self) -> float:
        return float(sum(txn.magnitude for txn in self.transactions if not txn.is_income))

    @property
    def balance(self) -> float:
        return self.income - self.expenses

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
