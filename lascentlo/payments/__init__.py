"""
Payments — processor capability and its Stripe implementation.
"""

from lascentlo.payments._types import (
    SUCCEEDED,
    IntentRequest,
    PaymentIntent,
    PaymentProcessor,
)
from lascentlo.payments._stripe import StripeProcessor

__all__ = (
    "SUCCEEDED",
    "IntentRequest",
    "PaymentIntent",
    "PaymentProcessor",
    "StripeProcessor",
)
