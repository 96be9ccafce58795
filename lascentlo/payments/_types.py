"""
Payment processor capability.

Implementations raise ShopError (PAYMENT_PROCESSOR or PAYMENT_UNAVAILABLE)
when the processor rejects a call or does not answer in time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from lascentlo._types import Cents

# Processor status of a settled charge
SUCCEEDED = "succeeded"


@dataclass(frozen=True, slots=True)
class IntentRequest:
    amount_cents: Cents
    currency: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    id: str
    status: str
    amount_cents: Cents
    currency: str
    client_secret: str | None = None

    @property
    def settled(self) -> bool:
        return self.status == SUCCEEDED


class PaymentProcessor(Protocol):
    async def create_intent(self, request: IntentRequest) -> PaymentIntent: ...

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent: ...

    async def cancel_intent(self, intent_id: str) -> None: ...

    async def refund(self, intent_id: str) -> None: ...


__all__ = ("SUCCEEDED", "IntentRequest", "PaymentIntent", "PaymentProcessor")
