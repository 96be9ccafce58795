"""
Idempotency types — records, policy and outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum, auto


class RecordState(Enum):
    """
    Lifecycle:
        PENDING → COMPLETED (success, cached until TTL)
                → deleted (failure, so the caller may retry)
    """

    PENDING = auto()
    COMPLETED = auto()


@dataclass(frozen=True, slots=True)
class IdempotencyRecord[T]:
    key: str
    state: RecordState
    value: T | None
    created_at: datetime
    expires_at: datetime | None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now() > self.expires_at


class OnPending(Enum):
    """
    What a duplicate does while the first attempt is still running.

    WAIT: poll until the first attempt finishes and share its outcome.
    FAIL: return CONFLICT immediately.
    """

    WAIT = auto()
    FAIL = auto()


WAIT = OnPending.WAIT
FAIL = OnPending.FAIL


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Immutable; each with_* returns a new Policy.

        Policy().with_ttl(minutes=15).with_on_pending(WAIT).with_wait_timeout(seconds=30)
    """

    result_ttl: timedelta | None = None
    on_pending: OnPending = OnPending.WAIT
    wait_timeout: timedelta = timedelta(seconds=30)
    poll_interval: float = 0.05

    def with_ttl(
        self,
        *,
        seconds: float = 0,
        minutes: float = 0,
        hours: float = 0,
    ) -> Policy:
        total = seconds + minutes * 60 + hours * 3600
        return replace(self, result_ttl=timedelta(seconds=total) if total > 0 else None)

    def with_on_pending(self, strategy: OnPending) -> Policy:
        return replace(self, on_pending=strategy)

    def with_wait_timeout(self, *, seconds: float) -> Policy:
        return replace(self, wait_timeout=timedelta(seconds=seconds))


@dataclass(frozen=True, slots=True)
class IdempotencyResult[T]:
    """from_cache is True when another attempt produced the value."""

    value: T
    from_cache: bool
    key: str


class IdempotencyErrorKind(Enum):
    CONFLICT = auto()  # Duplicate arrived while the first is running (FAIL policy)
    TIMEOUT = auto()  # WAIT gave up on the first attempt
    EXECUTION = auto()  # The wrapped operation returned an error


@dataclass(frozen=True, slots=True)
class IdempotencyError[E]:
    kind: IdempotencyErrorKind
    message: str
    original_error: E | None = None


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
)
