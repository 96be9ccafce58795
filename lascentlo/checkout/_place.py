"""
Checkout — quote, create the payment intent, persist the order.

    quote ──► create intent ──► persist order + order.placed event
                   ▲                    │
                   └── cancel intent ◄──┘ (if persisting fails)

Validation happens in the quote, before anything external is touched.
"""

from __future__ import annotations

import uuid

import structlog
from kungfu import Error, LazyCoroResult, Ok, Result

import combinators as C
from lascentlo import notify as N
from lascentlo import saga as S
from lascentlo._types import now
from lascentlo.catalog import Catalog
from lascentlo.db import SessionFactory
from lascentlo.errors import Errors, ShopError
from lascentlo.orders import (
    Order,
    OrderStatus,
    Payment,
    PaymentStatus,
    PricingPolicy,
    order_payload,
    to_order,
    to_row,
)
from lascentlo.payments import IntentRequest, PaymentIntent, PaymentProcessor
from lascentlo.checkout._quote import quote
from lascentlo.checkout._types import CheckoutRequest, Customer, PlacedOrder, Quote

log = structlog.get_logger(__name__)

# Tag carried by every intent this shop creates
INTEGRATION_MARKER = {"integration_check": "accept_a_payment"}


def as_shop_error(e: Exception) -> ShopError:
    if isinstance(e, ShopError):
        return e
    log.error("payment_call_failed", error=str(e), error_type=type(e).__name__)
    return Errors.payment_processor()


class CheckoutWorkflow:
    def __init__(
        self,
        session_factory: SessionFactory,
        catalog: Catalog,
        processor: PaymentProcessor,
        pricing: PricingPolicy,
        *,
        currency: str = "usd",
    ) -> None:
        self._session = session_factory
        self._catalog = catalog
        self._processor = processor
        self._pricing = pricing
        self._currency = currency

    async def quote(self, request: CheckoutRequest) -> Result[Quote, ShopError]:
        return await quote(request, self._catalog, self._pricing)

    async def place_order(
        self, customer: Customer, request: CheckoutRequest
    ) -> Result[PlacedOrder, ShopError]:
        bound = log.bind(user_id=customer.id)

        match await self.quote(request):
            case Error(e):
                bound.info("checkout_rejected", kind=e.kind.value, reason=e.message)
                return Error(e)
            case Ok(priced):
                pass

        order_id = f"ord_{uuid.uuid4().hex[:12]}"
        intent_request = IntentRequest(
            amount_cents=priced.total_cents,
            currency=self._currency,
            idempotency_key=f"checkout:{order_id}",
            metadata={**INTEGRATION_MARKER, "order_id": order_id, "user_id": customer.id},
        )

        placement = S.from_async(
            lambda: self._processor.create_intent(intent_request),
            on_error=as_shop_error,
            compensate=lambda intent: self._processor.cancel_intent(intent.id),
            name="create_intent",
        ).then(
            lambda intent: S.step(
                self._persist(order_id, customer, request, priced, intent),
                name="persist_order",
            )
        )

        match await S.run_chain(placement):
            case Ok(done):
                placed = done.value
                bound.info(
                    "order_placed",
                    order_id=order_id,
                    total_cents=placed.order.total_cents,
                    lines=len(placed.order.items),
                )
                return Ok(placed)
            case Error(failure):
                bound.warning(
                    "checkout_failed",
                    order_id=order_id,
                    kind=failure.error.kind.value,
                    step=failure.step_failed,
                    rollback_complete=failure.rollback_complete,
                )
                return Error(failure.error)

    def _persist(
        self,
        order_id: str,
        customer: Customer,
        request: CheckoutRequest,
        priced: Quote,
        intent: PaymentIntent,
    ) -> LazyCoroResult[PlacedOrder, ShopError]:
        async def impl() -> PlacedOrder:
            stamp = now()
            order = Order(
                id=order_id,
                user_id=customer.id,
                items=priced.lines,
                shipping_address=request.shipping_address,
                payment=Payment(
                    method=request.payment_method,
                    status=PaymentStatus.PENDING,
                    intent_id=intent.id,
                ),
                status=OrderStatus.PENDING,
                totals=priced.totals,
                created_at=stamp,
                updated_at=stamp,
            )
            row = to_row(order)

            async with self._session() as session:
                async with session.begin():
                    session.add(row)
                    N.emit(
                        session,
                        N.DomainEvent(
                            kind=N.EventKind.ORDER_PLACED,
                            recipient=customer.email,
                            reference=order_id,
                            payload={**order_payload(order), "firstName": customer.first_name},
                        ),
                    )

            return PlacedOrder(order=to_order(row), client_secret=intent.client_secret)

        def on_error(e: Exception) -> ShopError:
            log.error(
                "order_persist_failed",
                order_id=order_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Errors.storage()

        return C.catching_async(impl, on_error=on_error)


__all__ = ("INTEGRATION_MARKER", "CheckoutWorkflow", "as_shop_error")
