"""
Order lifecycle — explicit transition table.

    pending    → processing | cancelled
    processing → shipped | cancelled
    shipped    → delivered
    delivered, cancelled: terminal
"""

from __future__ import annotations

from lascentlo._types import Result, Ok, Error
from lascentlo.errors import ShopError, Errors
from lascentlo.orders._types import OrderStatus

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS[current]


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def transition(current: OrderStatus, target: OrderStatus) -> Result[OrderStatus, ShopError]:
    if can_transition(current, target):
        return Ok(target)
    return Error(Errors.illegal_transition(current.value, target.value))


__all__ = ("TRANSITIONS", "can_transition", "is_terminal", "transition")
