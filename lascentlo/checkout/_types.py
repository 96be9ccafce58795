"""
Checkout domain — what the customer asks for and what they get back.
"""

from __future__ import annotations

from dataclasses import dataclass

from lascentlo._types import Cents, OrderId, ProductId, UserId
from lascentlo.catalog import SizeKey
from lascentlo.orders import LineItem, Order, PaymentMethod, ShippingAddress, Totals


@dataclass(frozen=True, slots=True)
class CartItem:
    product_id: ProductId
    size: SizeKey
    quantity: int


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    items: tuple[CartItem, ...]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod

    def merged(self) -> tuple[CartItem, ...]:
        """Collapse repeated (product, size) lines so stock is checked against the sum."""
        quantities: dict[tuple[ProductId, SizeKey], int] = {}
        for item in self.items:
            key = (item.product_id, item.size)
            quantities[key] = quantities.get(key, 0) + item.quantity
        return tuple(
            CartItem(product_id=pid, size=size, quantity=qty)
            for (pid, size), qty in quantities.items()
        )


@dataclass(frozen=True, slots=True)
class Customer:
    id: UserId
    email: str
    first_name: str = ""


@dataclass(frozen=True, slots=True)
class Quote:
    """A validated, priced cart. Nothing has been written yet."""

    lines: tuple[LineItem, ...]
    totals: Totals

    @property
    def total_cents(self) -> Cents:
        return self.totals.total_cents


@dataclass(frozen=True, slots=True)
class PlacedOrder:
    order: Order
    client_secret: str | None


@dataclass(frozen=True, slots=True)
class ConfirmPayment:
    order_id: OrderId
    intent_id: str


__all__ = (
    "CartItem",
    "CheckoutRequest",
    "Customer",
    "Quote",
    "PlacedOrder",
    "ConfirmPayment",
)
