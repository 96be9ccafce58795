"""
Orders — the order record, its lifecycle and pricing.

    from lascentlo import orders

    orders.transition(orders.OrderStatus.PENDING, orders.OrderStatus.SHIPPED)  # Error(illegal_transition)
"""

from lascentlo.orders._types import (
    OrderStatus,
    PaymentStatus,
    PaymentMethod,
    ShippingAddress,
    SizeSnapshot,
    LineItem,
    Payment,
    Totals,
    Order,
)
from lascentlo.orders._status import TRANSITIONS, can_transition, is_terminal, transition
from lascentlo.orders._pricing import PricingPolicy
from lascentlo.orders._repo import OrderRepository, to_order, to_row, locate
from lascentlo.orders._payload import order_payload

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
    "TRANSITIONS",
    "can_transition",
    "is_terminal",
    "transition",
    "PricingPolicy",
    "OrderRepository",
    "to_order",
    "to_row",
    "locate",
    "order_payload",
)
