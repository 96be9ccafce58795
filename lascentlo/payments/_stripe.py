"""
StripeProcessor — PaymentProcessor backed by the Stripe SDK.

The SDK is synchronous, so each call runs in a worker thread. The SDK's
own HTTP timeout ends the request; the asyncio deadline, a little later,
only stops us waiting on a thread that is already winding down. A timeout
or connection failure is reported as retryable PAYMENT_UNAVAILABLE;
anything Stripe rejects is PAYMENT_PROCESSOR.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from functools import cached_property
from typing import Any

import stripe
import structlog

from lascentlo.errors import Errors
from lascentlo.payments._types import IntentRequest, PaymentIntent

log = structlog.get_logger(__name__)

# Extra wait past the HTTP timeout before giving up on the worker thread
_GRACE_SECONDS = 2.0


def _to_intent(obj: Any) -> PaymentIntent:
    return PaymentIntent(
        id=obj["id"],
        status=obj["status"],
        amount_cents=obj["amount"],
        currency=obj["currency"],
        client_secret=obj.get("client_secret"),
    )


class StripeProcessor:
    def __init__(self, api_key: str, *, timeout: float = 10.0) -> None:
        self._api_key = api_key
        self._timeout = timeout

    @cached_property
    def _client(self) -> stripe.StripeClient:
        # Built on first use so a missing key surfaces as a processor error, not at startup.
        # No SDK retries: a retried request could outlive the deadline.
        return stripe.StripeClient(
            self._api_key,
            http_client=stripe.RequestsClient(timeout=self._timeout),
            max_network_retries=0,
        )

    async def _call(self, operation: str, fn: Callable[[], Any]) -> Any:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn), timeout=self._timeout + _GRACE_SECONDS
            )
        except TimeoutError:
            log.warning("stripe_timeout", operation=operation, timeout=self._timeout)
            raise Errors.payment_unavailable() from None
        except stripe.APIConnectionError as e:
            # Includes the SDK's own request timeout
            log.warning("stripe_unreachable", operation=operation, error=str(e))
            raise Errors.payment_unavailable() from e
        except stripe.StripeError as e:
            log.error(
                "stripe_error",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                request_id=getattr(e, "request_id", None),
            )
            raise Errors.payment_processor() from e

    async def create_intent(self, request: IntentRequest) -> PaymentIntent:
        obj = await self._call(
            "create_intent",
            lambda: self._client.payment_intents.create(
                params={
                    "amount": request.amount_cents,
                    "currency": request.currency,
                    "metadata": request.metadata,
                },
                options={"idempotency_key": request.idempotency_key},
            ),
        )
        intent = _to_intent(obj)
        log.info("stripe_intent_created", intent_id=intent.id, amount=intent.amount_cents)
        return intent

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        obj = await self._call(
            "retrieve_intent",
            lambda: self._client.payment_intents.retrieve(intent_id),
        )
        return _to_intent(obj)

    async def cancel_intent(self, intent_id: str) -> None:
        await self._call(
            "cancel_intent",
            lambda: self._client.payment_intents.cancel(intent_id),
        )
        log.info("stripe_intent_cancelled", intent_id=intent_id)

    async def refund(self, intent_id: str) -> None:
        await self._call(
            "refund",
            lambda: self._client.refunds.create(
                params={"payment_intent": intent_id},
                options={"idempotency_key": f"refund:{intent_id}"},
            ),
        )
        log.info("stripe_refund_created", intent_id=intent_id)


__all__ = ("StripeProcessor",)
