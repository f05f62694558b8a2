from typing import Any, Optional, Union

from .config import Settings
from .exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidIdentityError,
    InvalidTransactionKindError,
    PointServiceError,
)
from .locking import LockRegistry
from .logging import get_logger
from .models import Balance, HistoryResponse, TransactionKind, TransactionRecord
from .storage import InMemoryStorage, now_millis

log = get_logger(__name__)


class PointService:
    def __init__(self, storage: Optional[InMemoryStorage] = None, locks: Optional[LockRegistry] = None):
        self.storage = storage if storage is not None else InMemoryStorage()
        self.locks = locks if locks is not None else LockRegistry()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PointService":
        return cls(
            storage=InMemoryStorage(latency_ms=settings.store_latency_ms),
            locks=LockRegistry(reclaim=settings.reclaim_locks),
        )

    def read_balance(self, identity: int) -> Balance:
        return self.storage.balances.select_by_identity(identity)

    def read_history(self, identity: int) -> list[TransactionRecord]:
        return self.storage.history.select_all_by_identity(identity)

    def get_history(self, identity: int) -> HistoryResponse:
        """Entries and balance taken together under the identity's lock, so they always agree."""
        with self.locks.hold(identity):
            entries = self.read_history(identity)
            balance = self.read_balance(identity)
        return HistoryResponse(
            identity=identity,
            entries=entries,
            total_count=len(entries),
            current_balance=balance.amount,
        )

    def charge(self, identity: int, amount: int) -> Balance:
        return self.mutate(identity, amount, TransactionKind.CHARGE)

    def use(self, identity: int, amount: int) -> Balance:
        return self.mutate(identity, amount, TransactionKind.USE)

    def mutate(self, identity: int, amount: int, kind: Union[TransactionKind, str, int]) -> Balance:
        """
        Charge or use points for one identity.

        Validation errors are raised before the identity's lock is taken.
        Everything from the balance read to the history append runs under
        that lock, which is released on every path out.
        """
        try:
            self._check_identity(identity)
            kind = self._validate(amount, kind)
        except PointServiceError as e:
            self._log_rejection(identity, amount, kind, e)
            raise

        with self.locks.hold(identity):
            current = self.storage.balances.select_by_identity(identity)
            try:
                new_amount = self._apply(current, amount, kind)
            except InsufficientBalanceError as e:
                self._log_rejection(identity, amount, kind, e)
                raise
            updated = self.storage.balances.insert_or_update(identity, new_amount)
            try:
                self.storage.history.insert(identity, amount, kind, now_millis())
            except Exception:
                self.storage.balances.restore(current)
                log.exception("history_append_failed", identity=identity, kind=kind.value, amount=amount)
                raise

        log.info("point_mutated", identity=identity, kind=kind.value, amount=amount, balance=updated.amount)
        return updated

    def _check_identity(self, identity: Any) -> None:
        if isinstance(identity, bool) or not isinstance(identity, int) or identity < 0:
            raise InvalidIdentityError(identity)

    def _validate(self, amount: Any, kind: Any) -> TransactionKind:
        try:
            kind = TransactionKind.coerce(kind)
        except ValueError:
            raise InvalidTransactionKindError(kind) from None
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmountError(amount)
        return kind

    def _apply(self, current: Balance, amount: int, kind: TransactionKind) -> int:
        if kind == TransactionKind.CHARGE:
            return current.amount + amount
        if current.amount < amount:
            raise InsufficientBalanceError(current.identity, current.amount, amount)
        return current.amount - amount

    def _log_rejection(self, identity: int, amount: Any, kind: Any, error: PointServiceError) -> None:
        log.warning(
            "point_mutation_rejected",
            identity=identity,
            kind=getattr(kind, "value", kind),
            amount=amount,
            code=error.code,
        )
