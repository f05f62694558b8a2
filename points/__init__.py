"""
Point Ledger

This module provides:
- Per-user point balances with an append-only transaction history
- Charge and use mutations serialized per user identity
- A lock registry that creates, shares and reclaims per-identity locks
- Typed, non-retryable errors for invalid amounts and insufficient balance
"""

from .exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidIdentityError,
    InvalidTransactionKindError,
    PointServiceError,
)
from .locking import LockHandle, LockRegistry
from .models import (
    Balance,
    HistoryResponse,
    TransactionKind,
    TransactionRecord,
)
from .service import PointService
from .storage import BalanceStore, HistoryStore, InMemoryStorage

__all__ = [
    "Balance",
    "BalanceStore",
    "HistoryResponse",
    "HistoryStore",
    "InMemoryStorage",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "InvalidIdentityError",
    "InvalidTransactionKindError",
    "LockHandle",
    "LockRegistry",
    "PointService",
    "PointServiceError",
    "TransactionKind",
    "TransactionRecord",
]
