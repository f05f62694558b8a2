"""
In-memory tables backing the point ledger.

Neither table serializes writes for an identity; callers hold that
identity's lock from ``points.locking`` around every read-modify-write.
"""

import random
import threading
import time
from typing import Optional

from .models import Balance, TransactionKind, TransactionRecord


def _throttle(latency_ms: int) -> None:
    if latency_ms > 0:
        time.sleep(random.uniform(0, latency_ms) / 1000)


def now_millis() -> int:
    return time.time_ns() // 1_000_000


class BalanceStore:
    def __init__(self, latency_ms: int = 0):
        self.latency_ms = latency_ms
        self._rows: dict[int, dict] = {}

    def select_by_identity(self, identity: int) -> Balance:
        _throttle(self.latency_ms)
        row = self._rows.get(identity)
        if row is None:
            return Balance(identity=identity, amount=0, updated_millis=0)
        return Balance(**row)

    def insert_or_update(self, identity: int, amount: int) -> Balance:
        _throttle(self.latency_ms)
        row = {"identity": identity, "amount": amount, "updated_millis": now_millis()}
        balance = Balance(**row)
        self._rows[identity] = row
        return balance

    def restore(self, previous: Balance) -> None:
        """Put back a row exactly as it was read, dropping it if it was never written."""
        if previous.updated_millis == 0:
            self._rows.pop(previous.identity, None)
        else:
            self._rows[previous.identity] = previous.model_dump()


class HistoryStore:
    def __init__(self, latency_ms: int = 0):
        self.latency_ms = latency_ms
        self._rows: dict[int, list[dict]] = {}
        self._cursor = 0
        # record ids are shared across identities
        self._cursor_lock = threading.Lock()

    def insert(self, identity: int, amount: int, kind: TransactionKind, timestamp: int) -> TransactionRecord:
        _throttle(self.latency_ms)
        with self._cursor_lock:
            self._cursor += 1
            row = {
                "id": self._cursor,
                "identity": identity,
                "amount": amount,
                "kind": kind,
                "timestamp": timestamp,
            }
            record = TransactionRecord(**row)
            self._rows.setdefault(identity, []).append(row)
        return record

    def select_all_by_identity(self, identity: int) -> list[TransactionRecord]:
        _throttle(self.latency_ms)
        return [TransactionRecord(**row) for row in list(self._rows.get(identity, ()))]


class InMemoryStorage:
    def __init__(
        self,
        balances: Optional[BalanceStore] = None,
        history: Optional[HistoryStore] = None,
        latency_ms: int = 0,
    ):
        self.balances = balances or BalanceStore(latency_ms=latency_ms)
        self.history = history or HistoryStore(latency_ms=latency_ms)
