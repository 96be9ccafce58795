"""
Order domain — the order record and its embedded sub-records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from lascentlo._types import Cents, OrderId, ProductId, UserId
from lascentlo.catalog import SizeKey


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    street: str
    city: str
    state: str
    postal_code: str
    country: str


@dataclass(frozen=True, slots=True)
class SizeSnapshot:
    """Size and unit price as they were when the order was placed."""

    value: float
    unit: str
    price_cents: Cents

    @property
    def key(self) -> SizeKey:
        return SizeKey(self.value, self.unit)


@dataclass(frozen=True, slots=True)
class LineItem:
    product_id: ProductId
    product_name: str
    size: SizeSnapshot
    quantity: int

    @property
    def line_total_cents(self) -> Cents:
        return self.size.price_cents * self.quantity


@dataclass(frozen=True, slots=True)
class Payment:
    method: PaymentMethod
    status: PaymentStatus
    intent_id: str | None = None
    transaction_id: str | None = None


@dataclass(frozen=True, slots=True)
class Totals:
    subtotal_cents: Cents
    shipping_cents: Cents
    tax_cents: Cents

    @property
    def total_cents(self) -> Cents:
        return self.subtotal_cents + self.shipping_cents + self.tax_cents


@dataclass(frozen=True, slots=True)
class Order:
    id: OrderId
    user_id: UserId
    items: tuple[LineItem, ...]
    shipping_address: ShippingAddress
    payment: Payment
    status: OrderStatus
    totals: Totals
    created_at: datetime
    updated_at: datetime
    version: int = 1
    tracking_number: str | None = None
    estimated_delivery: datetime | None = None
    notes: str | None = None

    @property
    def total_cents(self) -> Cents:
        return self.totals.total_cents


__all__ = (
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    "ShippingAddress",
    "SizeSnapshot",
    "LineItem",
    "Payment",
    "Totals",
    "Order",
)
