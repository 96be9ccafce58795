"""
Checkout — placing orders and confirming their payment.

    workflow = CheckoutWorkflow(session_factory, catalog, processor, pricing)
    placed = await workflow.place_order(customer, request)     # Result[PlacedOrder, ShopError]

    confirmation = PaymentConfirmation(session_factory, processor)
    order = await confirmation.confirm(user_id, ConfirmPayment(order_id, intent_id))
"""

from lascentlo.checkout._types import (
    CartItem,
    CheckoutRequest,
    Customer,
    Quote,
    PlacedOrder,
    ConfirmPayment,
)
from lascentlo.checkout._quote import CartLinesNode, TotalsNode, QuoteNode, quote
from lascentlo.checkout._place import INTEGRATION_MARKER, CheckoutWorkflow, as_shop_error
from lascentlo.checkout._confirm import PaymentConfirmation

__all__ = (
    "CartItem",
    "CheckoutRequest",
    "Customer",
    "Quote",
    "PlacedOrder",
    "ConfirmPayment",
    "CartLinesNode",
    "TotalsNode",
    "QuoteNode",
    "quote",
    "INTEGRATION_MARKER",
    "CheckoutWorkflow",
    "as_shop_error",
    "PaymentConfirmation",
)
