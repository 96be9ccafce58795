"""
Fulfilment — administrative order status changes.

Only moves allowed by the transition table go through. Shipping stamps a
tracking number and a delivery estimate and tells the customer; cancelling
tells the customer too, and voids the payment intent of an order that was
never paid so its client secret can no longer be used. Stock is not
returned on cancellation.
"""

from __future__ import annotations

import secrets
from datetime import timedelta

import structlog
from kungfu import Error, Ok, Result
from sqlalchemy.orm.exc import StaleDataError

import combinators as C
from lascentlo import notify as N
from lascentlo.checkout import as_shop_error
from lascentlo._types import OrderId, now
from lascentlo.db import SessionFactory
from lascentlo.errors import Errors, ShopError
from lascentlo.orders import (
    Order,
    OrderStatus,
    PaymentStatus,
    locate,
    order_payload,
    to_order,
    transition,
)
from lascentlo.payments import PaymentProcessor

log = structlog.get_logger(__name__)

_NOTIFY_ON: dict[OrderStatus, N.EventKind] = {
    OrderStatus.SHIPPED: N.EventKind.ORDER_SHIPPED,
    OrderStatus.CANCELLED: N.EventKind.ORDER_CANCELLED,
}


def tracking_number() -> str:
    return f"TRK{secrets.randbelow(10**10):010d}"


class Fulfilment:
    def __init__(
        self,
        session_factory: SessionFactory,
        processor: PaymentProcessor | None = None,
        *,
        delivery_days: int = 7,
    ) -> None:
        self._session = session_factory
        self._processor = processor
        self._delivery = timedelta(days=delivery_days)

    async def update_status(
        self, order_id: OrderId, target: OrderStatus
    ) -> Result[Order, ShopError]:
        try:
            async with self._session() as session:
                async with session.begin():
                    row = await locate(session, order_id)
                    if row is None:
                        return Error(Errors.not_found("Order", order_id))

                    current = OrderStatus(row.status)
                    match transition(current, target):
                        case Error(e):
                            return Error(e)
                        case Ok(_):
                            pass

                    # Processing means paid; only confirmation gets there without a settled payment
                    if (
                        target == OrderStatus.PROCESSING
                        and row.payment_status != PaymentStatus.COMPLETED.value
                    ):
                        return Error(Errors.illegal_transition(current.value, target.value))

                    unpaid_intent = (
                        row.payment_intent_id
                        if target == OrderStatus.CANCELLED
                        and row.payment_status != PaymentStatus.COMPLETED.value
                        else None
                    )

                    stamp = now()
                    row.status = target.value
                    row.updated_at = stamp
                    if target == OrderStatus.SHIPPED:
                        row.tracking_number = tracking_number()
                        row.estimated_delivery = stamp + self._delivery

                    kind = _NOTIFY_ON.get(target)
                    if kind is not None:
                        recipient = await N.recipient_of(session, row.user_id)
                        if recipient is not None:
                            N.emit(
                                session,
                                N.DomainEvent(
                                    kind=kind,
                                    recipient=recipient,
                                    reference=order_id,
                                    payload=order_payload(to_order(row)),
                                ),
                            )
        except StaleDataError:
            return Error(Errors.conflict())

        log.info("order_status_changed", order_id=order_id, status=target.value)
        if unpaid_intent is not None:
            await self._void_intent(order_id, unpaid_intent)
        return Ok(to_order(row))

    async def _void_intent(self, order_id: OrderId, intent_id: str) -> None:
        if self._processor is None:
            return
        processor = self._processor
        voided = await C.catching_async(
            lambda: processor.cancel_intent(intent_id),
            on_error=as_shop_error,
        )
        match voided:
            case Error(e):
                # A charge that still lands is refunded when the customer confirms it
                log.warning(
                    "intent_cancel_failed", order_id=order_id, intent_id=intent_id, kind=e.kind.value
                )
            case Ok(_):
                log.info("intent_cancelled", order_id=order_id, intent_id=intent_id)


__all__ = ("Fulfilment", "tracking_number")
