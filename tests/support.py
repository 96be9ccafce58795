"""
Test doubles and helpers — a scriptable payment processor, a notifier that
records what it was asked to send, and small builders for carts.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any

from kungfu import Error, Ok, Result
from sqlalchemy import update

from lascentlo.catalog import Category, Product, ProductDraft, SizeKey, SizeVariant
from lascentlo.checkout import CartItem, CheckoutRequest
from lascentlo.db import OrderTable
from lascentlo.orders import PaymentMethod, ShippingAddress, locate
from lascentlo.payments import SUCCEEDED, IntentRequest, PaymentIntent
from lascentlo.errors import ErrorKind, ShopError

ADDRESS = ShippingAddress(
    street="12 Rue des Fleurs",
    city="Grasse",
    state="PACA",
    postal_code="06130",
    country="France",
)

FIFTY_ML = SizeKey(50, "ml")


# ═══════════════════════════════════════════════════════════════════════════════
# Collaborators
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class FakeProcessor:
    """In-memory processor. Intents succeed unless told otherwise."""

    settle_as: str = SUCCEEDED
    fail_create: Exception | None = None
    fail_retrieve: Exception | None = None
    fail_cancel: Exception | None = None
    fail_refund: Exception | None = None
    intents: dict[str, PaymentIntent] = field(default_factory=dict)
    requests: list[IntentRequest] = field(default_factory=list)
    retrieved: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    refunded: list[str] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    async def create_intent(self, request: IntentRequest) -> PaymentIntent:
        self.requests.append(request)
        if self.fail_create is not None:
            raise self.fail_create
        n = next(self._ids)
        intent = PaymentIntent(
            id=f"pi_test_{n}",
            status="requires_payment_method",
            amount_cents=request.amount_cents,
            currency=request.currency,
            client_secret=f"pi_test_{n}_secret",
        )
        self.intents[intent.id] = intent
        return intent

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self.retrieved.append(intent_id)
        if self.fail_retrieve is not None:
            raise self.fail_retrieve
        intent = self.intents[intent_id]
        return PaymentIntent(
            id=intent.id,
            status=self.settle_as,
            amount_cents=intent.amount_cents,
            currency=intent.currency,
        )

    async def cancel_intent(self, intent_id: str) -> None:
        if self.fail_cancel is not None:
            raise self.fail_cancel
        self.cancelled.append(intent_id)

    async def refund(self, intent_id: str) -> None:
        if self.fail_refund is not None:
            raise self.fail_refund
        self.refunded.append(intent_id)


@dataclass
class RecordingNotifier:
    failing: bool = False
    sent: list[tuple[str, str, str, dict[str, Any]]] = field(default_factory=list)

    async def _record(self, kind: str, recipient: str, ref: str, payload: dict[str, Any]) -> None:
        if self.failing:
            raise ConnectionError("smtp unreachable")
        self.sent.append((kind, recipient, ref, payload))

    async def send_order_confirmation(self, recipient: str, order_id: str, payload: dict[str, Any]) -> None:
        await self._record("order_confirmation", recipient, order_id, payload)

    async def send_payment_confirmation(self, recipient: str, order_id: str, payload: dict[str, Any]) -> None:
        await self._record("payment_confirmation", recipient, order_id, payload)

    async def send_shipping_update(self, recipient: str, order_id: str, payload: dict[str, Any]) -> None:
        await self._record("shipping_update", recipient, order_id, payload)

    async def send_order_cancellation(self, recipient: str, order_id: str, payload: dict[str, Any]) -> None:
        await self._record("order_cancellation", recipient, order_id, payload)

    async def send_password_reset(self, recipient: str, user_id: str, payload: dict[str, Any]) -> None:
        await self._record("password_reset", recipient, user_id, payload)

    async def send_email_verification(self, recipient: str, user_id: str, payload: dict[str, Any]) -> None:
        await self._record("email_verification", recipient, user_id, payload)

    def kinds(self) -> list[str]:
        return [k for k, *_ in self.sent]


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════

def rose_draft(*, stock: int = 10, price_cents: int = 7999) -> ProductDraft:
    return ProductDraft(
        name="Midnight Rose",
        description="Dark rose over oud and vanilla.",
        price_cents=price_cents,
        sizes=(
            SizeVariant(value=50, unit="ml", price_cents=price_cents, stock=stock),
            SizeVariant(value=100, unit="ml", price_cents=12999, stock=3),
        ),
        category=Category.FLORAL,
        ingredients=("rose", "oud"),
        features={"longevity": "long"},
    )


def cart(*items: tuple[str, SizeKey, int]) -> CheckoutRequest:
    return CheckoutRequest(
        items=tuple(CartItem(product_id=p, size=s, quantity=q) for p, s, q in items),
        shipping_address=ADDRESS,
        payment_method=PaymentMethod.STRIPE,
    )


def ok[T](result: Result[T, ShopError]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"expected Ok, got {e!r}")


def err(result: Result[object, ShopError], kind: ErrorKind) -> ShopError:
    match result:
        case Ok(value):
            raise AssertionError(f"expected {kind.value}, got Ok({value!r})")
        case Error(e):
            assert e.kind == kind, e
            return e


def stock_of(product: Product, key: SizeKey = FIFTY_ML) -> int:
    variant = product.variant(key)
    assert variant is not None
    return variant.stock




def racing_locate(session_factory):
    """Order lookup that lets another writer bump the order version right after
    the first read made inside a transaction, once."""
    raced = False

    async def locate_then_race(session, order_id):
        nonlocal raced
        writing = session.in_transaction()
        row = await locate(session, order_id)
        if row is not None and writing and not raced:
            raced = True
            async with session_factory() as other:
                async with other.begin():
                    await other.execute(
                        update(OrderTable)
                        .where(OrderTable.id == order_id)
                        .values(version=OrderTable.version + 1)
                    )
        return row

    return locate_then_race
