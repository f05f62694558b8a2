from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, ConfigDict


class TransactionKind(str, Enum):
    CHARGE = "CHARGE"
    USE = "USE"

    @classmethod
    def from_code(cls, code: int) -> "TransactionKind":
        """Map the legacy numeric transaction code (1=charge, 2=use)."""
        try:
            return _KIND_CODES[code]
        except KeyError:
            raise ValueError(f"Unknown transaction code: {code!r}") from None

    @classmethod
    def coerce(cls, value: Union["TransactionKind", str, int]) -> "TransactionKind":
        if isinstance(value, cls):
            return value
        # bool is an int subclass; True must not read as code 1
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_code(value)
        if isinstance(value, str):
            return cls(value.strip().upper())
        raise ValueError(f"Unsupported transaction kind: {value!r}")


_KIND_CODES = {1: TransactionKind.CHARGE, 2: TransactionKind.USE}


class MutateRequest(BaseModel):
    amount: int = Field(..., description="Points to charge or use; must be positive")
    kind: TransactionKind

    model_config = ConfigDict(json_schema_extra={
        "example": {"amount": 1000, "kind": "CHARGE"}
    })


class AmountRequest(BaseModel):
    amount: int = Field(..., description="Points to charge or use; must be positive")

    model_config = ConfigDict(json_schema_extra={
        "example": {"amount": 500}
    })


class Balance(BaseModel):
    identity: int = Field(..., ge=0)
    amount: int = Field(default=0, ge=0)
    updated_millis: int = 0

    model_config = ConfigDict(from_attributes=True)


class TransactionRecord(BaseModel):
    id: int
    identity: int = Field(..., ge=0)
    amount: int = Field(..., gt=0)
    kind: TransactionKind
    timestamp: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class HistoryResponse(BaseModel):
    identity: int
    entries: list[TransactionRecord]
    total_count: int
    current_balance: int
