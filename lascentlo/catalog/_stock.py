"""
Stock counters — conditional updates inside the caller's transaction.

The only writer of product_sizes.stock after creation. A decrement touches
the row only while enough stock remains, so two confirmations racing for the
last bottle cannot both win.
"""

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from lascentlo._types import ProductId
from lascentlo.db import ProductSizeTable
from lascentlo.catalog._types import SizeKey


async def take(
    session: AsyncSession, product_id: ProductId, size: SizeKey, quantity: int
) -> bool:
    """Decrement stock by quantity if available. Returns False when nothing was updated."""
    result = await session.execute(
        update(ProductSizeTable)
        .where(
            ProductSizeTable.product_id == product_id,
            ProductSizeTable.value == size.value,
            ProductSizeTable.unit == size.unit,
            ProductSizeTable.stock >= quantity,
        )
        .values(stock=ProductSizeTable.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


__all__ = ("take",)
