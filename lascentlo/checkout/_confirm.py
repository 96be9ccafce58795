"""
Payment confirmation — settle a pending order once the processor says so.

    order pending ──► retrieve intent ──► succeeded? ──no──► payment failed
                                              │
                                             yes
                                              ▼
                  ┌────────── one transaction ──────────┐
                  │ stock -= q WHERE stock >= q (each)  │
                  │ payment completed, order processing │
                  │ payment.confirmed event             │
                  └─────────────────────────────────────┘
                                              │ a line had no stock left
                                              ▼
                              rollback, refund, order cancelled

Duplicate calls for the same (order, intent) share one execution: the
second waits for the first and gets the same order back. An order that is
already paid with this intent is returned unchanged, so stock is only ever
taken once. Paying a cancelled order is refunded.
"""

from __future__ import annotations

import structlog
from kungfu import Error, LazyCoroResult, Ok, Result
from sqlalchemy.orm.exc import StaleDataError

import combinators as C
from lascentlo import catalog
from lascentlo import idempotency as I
from lascentlo import notify as N
from lascentlo._types import OrderId, UserId, now
from lascentlo.db import SessionFactory
from lascentlo.errors import ErrorKind, Errors, ShopError
from lascentlo.orders import (
    Order,
    OrderStatus,
    PaymentStatus,
    locate,
    order_payload,
    to_order,
)
from lascentlo.payments import PaymentIntent, PaymentProcessor
from lascentlo.checkout._place import as_shop_error
from lascentlo.checkout._types import ConfirmPayment

log = structlog.get_logger(__name__)


class _OutOfStock(Exception):
    def __init__(self, product_id: str) -> None:
        super().__init__(product_id)
        self.product_id = product_id


class PaymentConfirmation:
    def __init__(
        self,
        session_factory: SessionFactory,
        processor: PaymentProcessor,
        *,
        store: I.Store | None = None,
        ttl_seconds: float = 900,
        wait_timeout_seconds: float = 30,
    ) -> None:
        self._session = session_factory
        self._processor = processor
        self._executor = (
            I.idempotent(self._settle)
            .key(lambda req: f"confirm:{req.order_id}:{req.intent_id}")
            .store(store if store is not None else I.MemoryStore())
            .policy(
                I.Policy()
                .with_ttl(seconds=ttl_seconds)
                .with_on_pending(I.WAIT)
                .with_wait_timeout(seconds=wait_timeout_seconds)
            )
            .build()
        )

    async def confirm(
        self, user_id: UserId, request: ConfirmPayment, *, is_admin: bool = False
    ) -> Result[Order, ShopError]:
        match await self._load(request.order_id):
            case Error(e):
                return Error(e)
            case Ok(order):
                pass

        if order.user_id != user_id and not is_admin:
            log.warning("confirm_forbidden", order_id=order.id, user_id=user_id)
            return Error(Errors.forbidden("Not authorized to confirm this order"))

        match await self._executor.run(request):
            case Ok(outcome):
                if outcome.from_cache:
                    # The cached snapshot may predate later status changes
                    log.info("confirm_replayed", order_id=request.order_id)
                    return await self._load(request.order_id)
                return Ok(outcome.value)
            case Error(err):
                if isinstance(err.original_error, ShopError):
                    return Error(err.original_error)
                return Error(Errors.conflict(err.message))

    # ═══════════════════════════════════════════════════════════════════════════
    # Settlement
    # ═══════════════════════════════════════════════════════════════════════════

    def _settle(self, request: ConfirmPayment) -> LazyCoroResult[Order, ShopError]:
        async def impl() -> Result[Order, ShopError]:
            bound = log.bind(order_id=request.order_id, intent_id=request.intent_id)

            match await self._load(request.order_id):
                case Error(e):
                    return Error(e)
                case Ok(order):
                    pass

            if order.payment.status == PaymentStatus.COMPLETED:
                if order.payment.transaction_id == request.intent_id:
                    bound.info("confirm_already_settled")
                    return Ok(order)
                return Error(Errors.conflict("Order was already paid with a different payment"))
            if order.payment.intent_id is not None and order.payment.intent_id != request.intent_id:
                return Error(Errors.validation("Payment intent does not belong to this order"))
            if (
                order.status == OrderStatus.CANCELLED
                and order.payment.status != PaymentStatus.REFUNDED
            ):
                match await self._refund_late(order.id, request.intent_id):
                    case Error(e):
                        return Error(e)
                    case Ok(_):
                        pass
            if order.status != OrderStatus.PENDING:
                return Error(Errors.illegal_transition(order.status.value, OrderStatus.PROCESSING.value))

            retrieved = await C.catching_async(
                lambda: self._processor.retrieve_intent(request.intent_id),
                on_error=as_shop_error,
            )
            match retrieved:
                case Error(e):
                    bound.warning("intent_lookup_failed", kind=e.kind.value)
                    return Error(e)
                case Ok(intent):
                    pass

            if not intent.settled:
                await self._mark_failed(order.id)
                bound.info("payment_not_settled", status=intent.status)
                return Error(Errors.payment_not_settled(intent.status))
            if intent.amount_cents != order.total_cents:
                bound.error(
                    "intent_amount_mismatch",
                    intent_amount=intent.amount_cents,
                    order_total=order.total_cents,
                )
                return Error(Errors.validation("Payment amount does not match order total"))

            committed = await self._commit(order.id, intent)
            match committed:
                case Ok(settled):
                    bound.info("payment_confirmed", total_cents=settled.total_cents)
                    return Ok(settled)
                case Error(e) if e.kind == ErrorKind.STOCK_EXHAUSTED:
                    return Error(await self._void(order.id, intent))
                case Error(e):
                    return Error(e)

        return LazyCoroResult(impl)

    async def _commit(self, order_id: OrderId, intent: PaymentIntent) -> Result[Order, ShopError]:
        try:
            async with self._session() as session:
                async with session.begin():
                    row = await locate(session, order_id)
                    if row is None:
                        raise Errors.not_found("Order", order_id)
                    if row.status != OrderStatus.PENDING.value:
                        raise Errors.conflict("Order changed while confirming payment")

                    for line in row.items:
                        size = catalog.SizeKey(line.size_value, line.size_unit)
                        if not await catalog.take(session, line.product_id, size, line.quantity):
                            raise _OutOfStock(line.product_id)

                    row.payment_status = PaymentStatus.COMPLETED.value
                    row.transaction_id = intent.id
                    row.status = OrderStatus.PROCESSING.value
                    row.updated_at = now()

                    recipient = await N.recipient_of(session, row.user_id)
                    if recipient is not None:
                        N.emit(
                            session,
                            N.DomainEvent(
                                kind=N.EventKind.PAYMENT_CONFIRMED,
                                recipient=recipient,
                                reference=order_id,
                                payload=order_payload(to_order(row)),
                            ),
                        )
        except _OutOfStock as e:
            log.warning("stock_exhausted", order_id=order_id, product_id=e.product_id)
            return Error(Errors.stock_exhausted(order_id))
        except StaleDataError:
            return Error(Errors.conflict())
        except ShopError as e:
            return Error(e)

        return Ok(to_order(row))

    async def _void(self, order_id: OrderId, intent: PaymentIntent) -> ShopError:
        """Refund a charge that can no longer be fulfilled and cancel the order."""
        refunded = await C.catching_async(
            lambda: self._processor.refund(intent.id),
            on_error=as_shop_error,
        )
        if isinstance(refunded, Error):
            # Order stays pending; a retried confirmation attempts the refund again
            log.error("refund_failed", order_id=order_id, intent_id=intent.id)
            return Errors.stock_exhausted(order_id, refunded=False)

        try:
            async with self._session() as session:
                async with session.begin():
                    row = await locate(session, order_id)
                    if row is not None:
                        row.status = OrderStatus.CANCELLED.value
                        row.payment_status = PaymentStatus.REFUNDED.value
                        row.transaction_id = intent.id
                        row.notes = "Cancelled: stock ran out before payment confirmation"
                        row.updated_at = now()

                        recipient = await N.recipient_of(session, row.user_id)
                        if recipient is not None:
                            N.emit(
                                session,
                                N.DomainEvent(
                                    kind=N.EventKind.ORDER_CANCELLED,
                                    recipient=recipient,
                                    reference=order_id,
                                    payload={
                                        **order_payload(to_order(row)),
                                        "reason": "out_of_stock",
                                        "refunded": True,
                                    },
                                ),
                            )
        except StaleDataError:
            log.error("void_conflict", order_id=order_id, intent_id=intent.id)

        log.warning("order_voided", order_id=order_id, intent_id=intent.id)
        return Errors.stock_exhausted(order_id)

    async def _refund_late(self, order_id: OrderId, intent_id: str) -> Result[None, ShopError]:
        """The order was cancelled but its client secret may still have been used to pay."""
        retrieved = await C.catching_async(
            lambda: self._processor.retrieve_intent(intent_id),
            on_error=as_shop_error,
        )
        match retrieved:
            case Error(e):
                return Error(e)
            case Ok(intent) if not intent.settled:
                return Ok(None)
            case Ok(_):
                pass

        refunded = await C.catching_async(
            lambda: self._processor.refund(intent_id),
            on_error=as_shop_error,
        )
        if isinstance(refunded, Error):
            log.error("refund_failed", order_id=order_id, intent_id=intent_id)
            return refunded

        try:
            async with self._session() as session:
                async with session.begin():
                    row = await locate(session, order_id)
                    if row is not None:
                        row.payment_status = PaymentStatus.REFUNDED.value
                        row.transaction_id = intent_id
                        row.updated_at = now()
        except StaleDataError:
            log.error("refund_record_conflict", order_id=order_id, intent_id=intent_id)

        log.warning("late_payment_refunded", order_id=order_id, intent_id=intent_id)
        return Ok(None)

    async def _mark_failed(self, order_id: OrderId) -> None:
        try:
            async with self._session() as session:
                async with session.begin():
                    row = await locate(session, order_id)
                    if row is not None and row.payment_status == PaymentStatus.PENDING.value:
                        row.payment_status = PaymentStatus.FAILED.value
                        row.updated_at = now()
        except StaleDataError:
            log.warning("mark_failed_conflict", order_id=order_id)

    async def _load(self, order_id: OrderId) -> Result[Order, ShopError]:
        async with self._session() as session:
            row = await locate(session, order_id)
            if row is None:
                return Error(Errors.not_found("Order", order_id))
            return Ok(to_order(row))


__all__ = ("PaymentConfirmation",)
