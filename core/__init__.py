"""Core domain package for the SpendWise application."""

from .goals import GoalError, GoalResult, GoalStatus, GoalTracker, GoalValidationError
from .models import Bill, Milestone, SavingsGoal, Transaction, coerce_transaction, coerce_transactions
from .storage import MemoryStore, PersistentValue, SessionStateStore, StorageError
from .transactions import SqliteTransactionStore, StoreError, TransactionLedger

__all__ = [
    "Bill",
    "Milestone",
    "SavingsGoal",
    "Transaction",
    "coerce_transaction",
    "coerce_transactions",
    "GoalError",
    "GoalResult",
    "GoalStatus",
    "GoalTracker",
    "GoalValidationError",
    "MemoryStore",
    "PersistentValue",
    "SessionStateStore",
    "StorageError",
    "SqliteTransactionStore",
    "StoreError",
    "TransactionLedger",
]
