"""
LogNotifier — writes every message to the structured log.

Stands in for an email transport: delivery itself is an external concern.
"""

from __future__ import annotations

from typing import Any

import structlog

log = structlog.get_logger(__name__)


class LogNotifier:
    def __init__(self, client_url: str = "http://localhost:3000") -> None:
        self._client_url = client_url.rstrip("/")

    async def send_order_confirmation(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None:
        log.info(
            "email_order_confirmation",
            to=recipient,
            order_id=order_id,
            total=payload.get("total"),
            items=len(payload.get("items", ())),
        )

    async def send_payment_confirmation(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None:
        log.info(
            "email_payment_confirmation",
            to=recipient,
            order_id=order_id,
            transaction_id=payload.get("transactionId"),
            amount=payload.get("amount"),
        )

    async def send_shipping_update(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None:
        log.info(
            "email_shipping_update",
            to=recipient,
            order_id=order_id,
            tracking_number=payload.get("trackingNumber"),
            estimated_delivery=payload.get("estimatedDelivery"),
        )

    async def send_order_cancellation(
        self, recipient: str, order_id: str, payload: dict[str, Any]
    ) -> None:
        log.info("email_order_cancellation", to=recipient, order_id=order_id, reason=payload.get("reason"))

    async def send_password_reset(
        self, recipient: str, user_id: str, payload: dict[str, Any]
    ) -> None:
        link = f"{self._client_url}/reset-password/{payload['token']}"
        log.info("email_password_reset", to=recipient, user_id=user_id, link=link)

    async def send_email_verification(
        self, recipient: str, user_id: str, payload: dict[str, Any]
    ) -> None:
        link = f"{self._client_url}/verify-email/{payload['token']}"
        log.info("email_verification", to=recipient, user_id=user_id, link=link)


__all__ = ("LogNotifier",)
