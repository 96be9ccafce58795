"""
Idempotency — run an operation at most once per key.

    from lascentlo import idempotency as I
"""

from lascentlo.idempotency._types import (
    RecordState,
    IdempotencyRecord,
    OnPending,
    WAIT,
    FAIL,
    Policy,
    IdempotencyResult,
    IdempotencyErrorKind,
    IdempotencyError,
)
from lascentlo.idempotency._store import Store, MemoryStore
from lascentlo.idempotency._run import Idempotent, IdempotentExecutor, idempotent

__all__ = (
    "RecordState",
    "IdempotencyRecord",
    "OnPending",
    "WAIT",
    "FAIL",
    "Policy",
    "IdempotencyResult",
    "IdempotencyErrorKind",
    "IdempotencyError",
    "Store",
    "MemoryStore",
    "Idempotent",
    "IdempotentExecutor",
    "idempotent",
)
