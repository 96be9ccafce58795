"""
Order store — reads with their own session, writes inside a caller's session.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lascentlo._types import Result, Ok, Error, OrderId, UserId
from lascentlo.db import SessionFactory, OrderTable, OrderLineTable
from lascentlo.errors import ShopError, Errors
from lascentlo.orders._types import (
    LineItem,
    Order,
    OrderStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    ShippingAddress,
    SizeSnapshot,
    Totals,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Row ↔ Domain
# ═══════════════════════════════════════════════════════════════════════════════

def to_order(row: OrderTable) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        items=tuple(
            LineItem(
                product_id=line.product_id,
                product_name=line.product_name,
                size=SizeSnapshot(
                    value=line.size_value,
                    unit=line.size_unit,
                    price_cents=line.unit_price_cents,
                ),
                quantity=line.quantity,
            )
            for line in row.items
        ),
        shipping_address=ShippingAddress(
            street=row.street,
            city=row.city,
            state=row.state,
            postal_code=row.postal_code,
            country=row.country,
        ),
        payment=Payment(
            method=PaymentMethod(row.payment_method),
            status=PaymentStatus(row.payment_status),
            intent_id=row.payment_intent_id,
            transaction_id=row.transaction_id,
        ),
        status=OrderStatus(row.status),
        totals=Totals(
            subtotal_cents=row.subtotal_cents,
            shipping_cents=row.shipping_cents,
            tax_cents=row.tax_cents,
        ),
        created_at=row.created_at,
        updated_at=row.updated_at,
        version=row.version,
        tracking_number=row.tracking_number,
        estimated_delivery=row.estimated_delivery,
        notes=row.notes,
    )


def to_row(order: Order) -> OrderTable:
    """Build a fresh row for insertion. Existing rows are mutated, never rebuilt."""
    address = order.shipping_address
    return OrderTable(
        id=order.id,
        user_id=order.user_id,
        street=address.street,
        city=address.city,
        state=address.state,
        postal_code=address.postal_code,
        country=address.country,
        payment_method=order.payment.method.value,
        payment_status=order.payment.status.value,
        payment_intent_id=order.payment.intent_id,
        transaction_id=order.payment.transaction_id,
        status=order.status.value,
        subtotal_cents=order.totals.subtotal_cents,
        shipping_cents=order.totals.shipping_cents,
        tax_cents=order.totals.tax_cents,
        total_cents=order.totals.total_cents,
        tracking_number=order.tracking_number,
        estimated_delivery=order.estimated_delivery,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            OrderLineTable(
                product_id=item.product_id,
                product_name=item.product_name,
                size_value=item.size.value,
                size_unit=item.size.unit,
                unit_price_cents=item.size.price_cents,
                quantity=item.quantity,
            )
            for item in order.items
        ],
    )


async def locate(session: AsyncSession, order_id: OrderId) -> OrderTable | None:
    return await session.get(OrderTable, order_id)


# ═══════════════════════════════════════════════════════════════════════════════
# OrderRepository — read side
# ═══════════════════════════════════════════════════════════════════════════════

class OrderRepository:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session = session_factory

    async def get(self, order_id: OrderId) -> Result[Order, ShopError]:
        async with self._session() as session:
            row = await locate(session, order_id)
            if row is None:
                return Error(Errors.not_found("Order", order_id))
            return Ok(to_order(row))

    async def for_user(self, user_id: UserId) -> list[Order]:
        async with self._session() as session:
            rows = (
                await session.execute(
                    select(OrderTable)
                    .where(OrderTable.user_id == user_id)
                    .order_by(OrderTable.created_at.desc(), OrderTable.id)
                )
            ).scalars().all()
            return [to_order(r) for r in rows]

    async def all(self, status: OrderStatus | None = None, limit: int = 100) -> list[Order]:
        stmt = select(OrderTable).order_by(OrderTable.created_at.desc(), OrderTable.id).limit(limit)
        if status is not None:
            stmt = stmt.where(OrderTable.status == status.value)
        async with self._session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [to_order(r) for r in rows]


__all__ = ("OrderRepository", "to_order", "to_row", "locate")
