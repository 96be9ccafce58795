"""
Order summaries for outbound messages (JSON-safe, amounts in currency units).
"""

from __future__ import annotations

from typing import Any

from lascentlo._types import from_cents
from lascentlo.orders._types import Order


def order_payload(order: Order) -> dict[str, Any]:
    return {
        "orderId": order.id,
        "status": order.status.value,
        "items": [
            {
                "productId": item.product_id,
                "name": item.product_name,
                "size": f"{item.size.value:g}{item.size.unit}",
                "quantity": item.quantity,
                "price": from_cents(item.size.price_cents),
            }
            for item in order.items
        ],
        "subtotal": from_cents(order.totals.subtotal_cents),
        "shippingCost": from_cents(order.totals.shipping_cents),
        "tax": from_cents(order.totals.tax_cents),
        "total": from_cents(order.total_cents),
        "transactionId": order.payment.transaction_id,
        "amount": from_cents(order.total_cents),
        "trackingNumber": order.tracking_number,
        "estimatedDelivery": (
            order.estimated_delivery.isoformat() if order.estimated_delivery else None
        ),
    }


__all__ = ("order_payload",)
