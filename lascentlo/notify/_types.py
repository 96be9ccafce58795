"""
Notification types — domain events and the Notifier capability.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class EventKind(str, Enum):
    ORDER_PLACED = "order.placed"
    PAYMENT_CONFIRMED = "payment.confirmed"
    ORDER_SHIPPED = "order.shipped"
    ORDER_CANCELLED = "order.cancelled"
    PASSWORD_RESET = "account.password_reset"
    EMAIL_VERIFICATION = "account.email_verification"


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """
    Something happened that a customer should hear about.

    reference is the order id for order events and the user id for account
    events. payload must be JSON-serializable.
    """

    kind: EventKind
    recipient: str
    reference: str
    payload: dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    """Outbound messaging. Every method may raise; the dispatcher copes."""

    async def send_order_confirmation(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None: ...

    async def send_payment_confirmation(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None: ...

    async def send_shipping_update(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None: ...

    async def send_order_cancellation(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None: ...

    async def send_password_reset(
        self, recipient: str, user_id: str, payload: dict[str, Any]
    ) -> None: ...

    async def send_email_verification(
        self, recipient: str, user_id: str, payload: dict[str, Any]
    ) -> None: ...


__all__ = ("EventKind", "DomainEvent", "Notifier")
