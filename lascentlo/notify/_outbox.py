"""
Outbox — events are written with the state change, delivered afterwards.

Workflows call emit() inside their own transaction, so an event exists iff
the change it describes was committed. Dispatcher.drain() hands pending
events to the Notifier; a delivery failure is logged and retried on the next
drain, never propagated to the workflow that produced the event.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lascentlo._types import now
from lascentlo.db import SessionFactory, OutboxTable, UserTable
from lascentlo.notify._types import DomainEvent, EventKind, Notifier

log = structlog.get_logger(__name__)

type Send = Callable[[str, str, dict[str, Any]], Awaitable[None]]


def emit(session: AsyncSession, event: DomainEvent) -> None:
    session.add(
        OutboxTable(
            kind=event.kind.value,
            recipient=event.recipient,
            reference=event.reference,
            payload=event.payload,
            attempts=0,
            created_at=now(),
        )
    )


async def recipient_of(session: AsyncSession, user_id: str) -> str | None:
    return (
        await session.execute(select(UserTable.email).where(UserTable.id == user_id))
    ).scalar_one_or_none()


def route(notifier: Notifier, kind: EventKind) -> Send:
    match kind:
        case EventKind.ORDER_PLACED:
            return notifier.send_order_confirmation
        case EventKind.PAYMENT_CONFIRMED:
            return notifier.send_payment_confirmation
        case EventKind.ORDER_SHIPPED:
            return notifier.send_shipping_update
        case EventKind.ORDER_CANCELLED:
            return notifier.send_order_cancellation
        case EventKind.PASSWORD_RESET:
            return notifier.send_password_reset
        case EventKind.EMAIL_VERIFICATION:
            return notifier.send_email_verification


@dataclass(frozen=True, slots=True)
class DrainReport:
    delivered: int
    failed: int


class Dispatcher:
    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: Notifier,
        *,
        max_attempts: int = 5,
        batch_size: int = 50,
    ) -> None:
        self._session = session_factory
        self._notifier = notifier
        self._max_attempts = max_attempts
        self._batch_size = batch_size
        # One drain at a time per process, otherwise an event could be sent twice
        self._lock = asyncio.Lock()

    async def drain(self) -> DrainReport:
        async with self._lock:
            return await self._drain()

    async def _drain(self) -> DrainReport:
        async with self._session() as session:
            pending = (
                await session.execute(
                    select(OutboxTable)
                    .where(
                        OutboxTable.delivered_at.is_(None),
                        OutboxTable.attempts < self._max_attempts,
                    )
                    .order_by(OutboxTable.id)
                    .limit(self._batch_size)
                )
            ).scalars().all()

        # Send outside any transaction; record outcomes afterwards
        outcomes: list[tuple[int, str | None]] = []
        for row in pending:
            send = route(self._notifier, EventKind(row.kind))
            try:
                await send(row.recipient, row.reference, dict(row.payload))
            except Exception as e:
                error = f"{type(e).__name__}: {e}"
                log.warning(
                    "notification_failed",
                    event_id=row.id,
                    kind=row.kind,
                    reference=row.reference,
                    attempt=row.attempts + 1,
                    error=error,
                )
                outcomes.append((row.id, error))
            else:
                outcomes.append((row.id, None))

        delivered = failed = 0
        async with self._session() as session:
            async with session.begin():
                for event_id, error in outcomes:
                    row = await session.get(OutboxTable, event_id)
                    if row is None:
                        continue
                    row.attempts += 1
                    if error is None:
                        row.delivered_at = now()
                        delivered += 1
                    else:
                        row.last_error = error
                        failed += 1

        if delivered or failed:
            log.info("outbox_drained", delivered=delivered, failed=failed)
        return DrainReport(delivered=delivered, failed=failed)


__all__ = ("emit", "recipient_of", "route", "DrainReport", "Dispatcher")
