import time
from types import SimpleNamespace

import pytest
import stripe

from lascentlo.errors import ErrorKind, ShopError
from lascentlo.payments import IntentRequest, StripeProcessor
from lascentlo.payments import _stripe


class Recorder:
    def __init__(self, result=None):
        self.result = result
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result


def stripe_client(**services) -> SimpleNamespace:
    return SimpleNamespace(
        payment_intents=SimpleNamespace(**services.get("payment_intents", {})),
        refunds=SimpleNamespace(**services.get("refunds", {})),
    )


def test_sdk_requests_share_the_processor_deadline(monkeypatch):
    http = Recorder(result="http-client")
    client = Recorder(result="stripe-client")
    monkeypatch.setattr(stripe, "RequestsClient", http)
    monkeypatch.setattr(stripe, "StripeClient", client)

    processor = StripeProcessor("sk_test_123", timeout=4.0)

    assert processor._client == "stripe-client"
    assert http.calls == [((), {"timeout": 4.0})]
    assert client.calls == [
        (("sk_test_123",), {"http_client": "http-client", "max_network_retries": 0})
    ]


async def test_create_intent_passes_idempotency_key():
    create = Recorder(
        result={
            "id": "pi_1",
            "status": "requires_payment_method",
            "amount": 17598,
            "currency": "usd",
            "client_secret": "pi_1_secret",
        }
    )
    processor = StripeProcessor("sk_test_123")
    processor._client = stripe_client(payment_intents={"create": create})

    intent = await processor.create_intent(
        IntentRequest(amount_cents=17598, currency="usd", idempotency_key="checkout:abc")
    )

    assert intent.id == "pi_1"
    assert intent.client_secret == "pi_1_secret"
    (_, kwargs), = create.calls
    assert kwargs["params"]["amount"] == 17598
    assert kwargs["options"] == {"idempotency_key": "checkout:abc"}


async def test_sdk_timeout_is_retryable():
    def unreachable(intent_id):
        raise stripe.APIConnectionError("Request timed out")

    processor = StripeProcessor("sk_test_123")
    processor._client = stripe_client(payment_intents={"retrieve": unreachable})

    with pytest.raises(ShopError) as info:
        await processor.retrieve_intent("pi_1")
    assert info.value.kind == ErrorKind.PAYMENT_UNAVAILABLE


async def test_stuck_call_gives_up_at_the_deadline(monkeypatch):
    monkeypatch.setattr(_stripe, "_GRACE_SECONDS", 0.0)

    def stuck(intent_id):
        time.sleep(0.3)

    processor = StripeProcessor("sk_test_123", timeout=0.05)
    processor._client = stripe_client(payment_intents={"cancel": stuck})

    with pytest.raises(ShopError) as info:
        await processor.cancel_intent("pi_1")
    assert info.value.kind == ErrorKind.PAYMENT_UNAVAILABLE


async def test_rejected_refund_is_a_processor_error():
    def rejected(**kwargs):
        raise stripe.InvalidRequestError("Charge already refunded", param="payment_intent")

    processor = StripeProcessor("sk_test_123")
    processor._client = stripe_client(refunds={"create": rejected})

    with pytest.raises(ShopError) as info:
        await processor.refund("pi_1")
    assert info.value.kind == ErrorKind.PAYMENT_PROCESSOR
