"""
Idempotent execution — fluent builder and executor.

    executor = (
        I.idempotent(confirm)
        .key(lambda req: f"confirm:{req.order_id}:{req.intent_id}")
        .store(I.MemoryStore())
        .policy(I.Policy().with_ttl(minutes=15).with_on_pending(I.WAIT))
        .build()
    )
    result = await executor.run(request)

Errors are never cached: a failed attempt releases the key so the caller
can retry.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace

import structlog
from kungfu import Error, LazyCoroResult, Ok, Result

from lascentlo.idempotency._store import MemoryStore, Store
from lascentlo.idempotency._types import (
    IdempotencyError,
    IdempotencyErrorKind,
    IdempotencyResult,
    OnPending,
    Policy,
    RecordState,
)

log = structlog.get_logger(__name__)

type KeyFn[K] = Callable[[K], str]


@dataclass(slots=True, frozen=True)
class Idempotent[K, T, E]:
    _operation: Callable[[K], LazyCoroResult[T, E]]
    _key_fn: KeyFn[K] | None = None
    _store: Store | None = None
    _policy: Policy = Policy()

    def key(self, fn: KeyFn[K]) -> Idempotent[K, T, E]:
        return replace(self, _key_fn=fn)

    def store(self, s: Store) -> Idempotent[K, T, E]:
        return replace(self, _store=s)

    def policy(self, p: Policy) -> Idempotent[K, T, E]:
        return replace(self, _policy=p)

    def build(self) -> IdempotentExecutor[K, T, E]:
        if self._key_fn is None:
            raise ValueError("key() is required")
        return IdempotentExecutor(
            operation=self._operation,
            key_fn=self._key_fn,
            store=self._store if self._store is not None else MemoryStore(),
            policy=self._policy,
        )


@dataclass(slots=True, frozen=True)
class IdempotentExecutor[K, T, E]:
    operation: Callable[[K], LazyCoroResult[T, E]]
    key_fn: KeyFn[K]
    store: Store
    policy: Policy

    def run(self, input_val: K) -> LazyCoroResult[IdempotencyResult[T], IdempotencyError[E]]:
        key = self.key_fn(input_val)

        async def execute() -> Result[IdempotencyResult[T], IdempotencyError[E]]:
            record = await self.store.get(key)
            if record is not None:
                if record.state == RecordState.COMPLETED:
                    return Ok(IdempotencyResult(record.value, from_cache=True, key=key))
                return await self._on_pending(key)

            if not await self.store.set_pending(key, self.policy.result_ttl):
                return await self._on_pending(key)

            return await self._execute_new(key, input_val)

        return LazyCoroResult(execute)

    async def _execute_new(
        self, key: str, input_val: K
    ) -> Result[IdempotencyResult[T], IdempotencyError[E]]:
        try:
            result = await self.operation(input_val)
        except BaseException:
            await self.store.delete(key)
            raise

        match result:
            case Ok(value):
                await self.store.set_completed(key, value, self.policy.result_ttl)
                return Ok(IdempotencyResult(value, from_cache=False, key=key))
            case Error(e):
                await self.store.delete(key)
                return Error(
                    IdempotencyError(IdempotencyErrorKind.EXECUTION, "Operation failed", e)
                )

    async def _on_pending(self, key: str) -> Result[IdempotencyResult[T], IdempotencyError[E]]:
        if self.policy.on_pending == OnPending.FAIL:
            return Error(
                IdempotencyError(IdempotencyErrorKind.CONFLICT, "Request already in progress")
            )

        log.debug("idempotency_waiting", key=key)
        deadline = self.policy.wait_timeout.total_seconds()
        waited = 0.0
        while waited < deadline:
            await asyncio.sleep(self.policy.poll_interval)
            waited += self.policy.poll_interval

            record = await self.store.get(key)
            if record is None:
                # First attempt failed and released the key
                return Error(
                    IdempotencyError(
                        IdempotencyErrorKind.CONFLICT,
                        "Concurrent attempt failed, please retry",
                    )
                )
            if record.state == RecordState.COMPLETED:
                return Ok(IdempotencyResult(record.value, from_cache=True, key=key))

        return Error(
            IdempotencyError(IdempotencyErrorKind.TIMEOUT, "Timeout waiting for pending operation")
        )


def idempotent[K, T, E](
    operation: Callable[[K], LazyCoroResult[T, E]],
) -> Idempotent[K, T, E]:
    return Idempotent(_operation=operation)


__all__ = ("Idempotent", "IdempotentExecutor", "idempotent")
