"""
Idempotency store — where records live between attempts.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any, Protocol

from lascentlo.idempotency._types import IdempotencyRecord, RecordState


class Store(Protocol):
    async def get(self, key: str) -> IdempotencyRecord[Any] | None: ...

    async def set_pending(self, key: str, ttl: timedelta | None) -> bool:
        """Claim the key. Returns False if a live record already holds it."""
        ...

    async def set_completed(self, key: str, value: Any, ttl: timedelta | None) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStore:
    """
    In-process store. Claims are atomic under one asyncio.Lock, which is
    enough for a single worker process.
    """

    def __init__(self) -> None:
        self._records: dict[str, IdempotencyRecord[Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> IdempotencyRecord[Any] | None:
        record = self._records.get(key)
        if record is not None and record.is_expired:
            self._records.pop(key, None)
            return None
        return record

    async def set_pending(self, key: str, ttl: timedelta | None) -> bool:
        async with self._lock:
            existing = self._records.get(key)
            if existing is not None and not existing.is_expired:
                return False
            created = datetime.now()
            self._records[key] = IdempotencyRecord(
                key=key,
                state=RecordState.PENDING,
                value=None,
                created_at=created,
                expires_at=created + ttl if ttl else None,
            )
            return True

    async def set_completed(self, key: str, value: Any, ttl: timedelta | None) -> None:
        async with self._lock:
            created = datetime.now()
            self._records[key] = IdempotencyRecord(
                key=key,
                state=RecordState.COMPLETED,
                value=value,
                created_at=created,
                expires_at=created + ttl if ttl else None,
            )
            self._evict_expired()

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._records.pop(key, None)

    def _evict_expired(self) -> None:
        for key in [k for k, r in self._records.items() if r.is_expired]:
            del self._records[key]

    def __len__(self) -> int:
        return len(self._records)


__all__ = ("Store", "MemoryStore")
