from typing import Any


class PointServiceError(Exception):
    """Base error for ledger operations, with a stable code for callers."""

    code = "POINT_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidAmountError(PointServiceError, ValueError):
    code = "INVALID_AMOUNT"

    def __init__(self, amount: Any):
        super().__init__(
            f"Amount must be a positive integer, got {amount!r}",
            details={"amount": amount},
        )


class InvalidIdentityError(PointServiceError, ValueError):
    code = "INVALID_IDENTITY"

    def __init__(self, identity: Any):
        super().__init__(
            f"Identity must be a non-negative integer, got {identity!r}",
            details={"identity": identity},
        )


class InvalidTransactionKindError(PointServiceError, ValueError):
    code = "INVALID_TRANSACTION_KIND"

    def __init__(self, kind: Any):
        super().__init__(
            f"Transaction kind must be CHARGE or USE, got {kind!r}",
            details={"kind": kind},
        )


class InsufficientBalanceError(PointServiceError):
    code = "INSUFFICIENT_BALANCE"

    def __init__(self, identity: int, balance: int, requested: int):
        super().__init__(
            f"Insufficient points for user {identity}: balance {balance}, requested {requested}",
            details={"identity": identity, "balance": balance, "requested": requested},
        )
