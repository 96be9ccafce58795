"""
Catalog store — SQLAlchemy implementation of the Catalog capability.

Reads open their own session. Stock mutation lives in _stock.py because it
must join the caller's transaction.
"""

from __future__ import annotations

import uuid
from typing import Protocol

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from lascentlo._types import Result, Ok, Error, ProductId, UserId, now
from lascentlo.db import SessionFactory, ProductTable, ProductSizeTable, ProductRatingTable
from lascentlo.errors import ShopError, Errors
from lascentlo.catalog._types import (
    Category,
    Product,
    ProductDraft,
    ProductPage,
    ProductQuery,
    Rating,
    SizeVariant,
    Sort,
)

log = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Capability
# ═══════════════════════════════════════════════════════════════════════════════

class Catalog(Protocol):
    async def get(
        self, product_id: ProductId, *, include_inactive: bool = False
    ) -> Result[Product, ShopError]: ...

    async def search(self, query: ProductQuery) -> ProductPage: ...

    async def create(self, draft: ProductDraft) -> Product: ...

    async def replace(
        self, product_id: ProductId, draft: ProductDraft
    ) -> Result[Product, ShopError]: ...

    async def deactivate(self, product_id: ProductId) -> Result[None, ShopError]: ...

    async def review(
        self, product_id: ProductId, user_id: UserId, rating: int, text: str
    ) -> Result[Product, ShopError]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Row → Domain
# ═══════════════════════════════════════════════════════════════════════════════

def to_product(row: ProductTable) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        description=row.description,
        price_cents=row.price_cents,
        sizes=tuple(
            SizeVariant(value=s.value, unit=s.unit, price_cents=s.price_cents, stock=s.stock)
            for s in row.sizes
        ),
        category=Category(row.category),
        images=tuple(row.images or ()),
        ingredients=tuple(row.ingredients or ()),
        features=dict(row.features or {}),
        ratings=tuple(
            Rating(user_id=r.user_id, rating=r.rating, review=r.review, created_at=r.created_at)
            for r in row.ratings
        ),
        average_rating=row.average_rating,
        total_reviews=row.total_reviews,
        is_active=row.is_active,
        created_at=row.created_at,
    )


def _apply_sizes(row: ProductTable, sizes: tuple[SizeVariant, ...]) -> None:
    # Update in place by (value, unit) so the unique constraint never sees a duplicate mid-flush
    existing = {(s.value, s.unit): s for s in row.sizes}
    kept: list[ProductSizeTable] = []
    for position, size in enumerate(sizes):
        current = existing.pop((size.value, size.unit), None)
        if current is None:
            current = ProductSizeTable(value=size.value, unit=size.unit)
        current.position = position
        current.price_cents = size.price_cents
        current.stock = size.stock
        kept.append(current)
    row.sizes = kept


# ═══════════════════════════════════════════════════════════════════════════════
# SqlCatalog
# ═══════════════════════════════════════════════════════════════════════════════

class SqlCatalog:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session = session_factory

    async def get(
        self, product_id: ProductId, *, include_inactive: bool = False
    ) -> Result[Product, ShopError]:
        async with self._session() as session:
            row = await session.get(ProductTable, product_id)
            if row is None or not (row.is_active or include_inactive):
                return Error(Errors.not_found("Product", product_id))
            return Ok(to_product(row))

    async def search(self, query: ProductQuery) -> ProductPage:
        stmt = select(ProductTable).where(ProductTable.is_active.is_(True))

        if query.category is not None:
            stmt = stmt.where(ProductTable.category == query.category.value)
        if query.min_price_cents is not None:
            stmt = stmt.where(ProductTable.price_cents >= query.min_price_cents)
        if query.max_price_cents is not None:
            stmt = stmt.where(ProductTable.price_cents <= query.max_price_cents)
        if query.search:
            pattern = f"%{query.search.strip()}%"
            stmt = stmt.where(
                or_(ProductTable.name.ilike(pattern), ProductTable.description.ilike(pattern))
            )

        match query.sort:
            case Sort.PRICE_ASC:
                ordered = stmt.order_by(ProductTable.price_cents.asc(), ProductTable.id)
            case Sort.PRICE_DESC:
                ordered = stmt.order_by(ProductTable.price_cents.desc(), ProductTable.id)
            case Sort.RATING:
                ordered = stmt.order_by(ProductTable.average_rating.desc(), ProductTable.id)
            case Sort.NEWEST:
                ordered = stmt.order_by(ProductTable.created_at.desc(), ProductTable.id)

        page = max(query.page, 1)
        async with self._session() as session:
            total = (
                await session.execute(select(func.count()).select_from(stmt.subquery()))
            ).scalar_one()
            rows = (
                await session.execute(
                    ordered.offset((page - 1) * query.page_size).limit(query.page_size)
                )
            ).scalars().all()

        return ProductPage(
            products=tuple(to_product(r) for r in rows),
            page=page,
            page_size=query.page_size,
            total=total,
        )

    async def create(self, draft: ProductDraft) -> Product:
        stamp = now()
        row = ProductTable(
            id=f"prd_{uuid.uuid4().hex[:12]}",
            name=draft.name,
            description=draft.description,
            price_cents=draft.price_cents,
            category=draft.category.value,
            images=list(draft.images),
            ingredients=list(draft.ingredients),
            features=dict(draft.features),
            average_rating=0.0,
            total_reviews=0,
            is_active=True,
            created_at=stamp,
            updated_at=stamp,
            sizes=[],
            ratings=[],
        )
        _apply_sizes(row, draft.sizes)

        async with self._session() as session:
            async with session.begin():
                session.add(row)
            await session.refresh(row, ["sizes", "ratings"])
            product = to_product(row)

        log.info("product_created", product_id=product.id, sizes=len(product.sizes))
        return product

    async def replace(
        self, product_id: ProductId, draft: ProductDraft
    ) -> Result[Product, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = await session.get(ProductTable, product_id)
                if row is None or not row.is_active:
                    return Error(Errors.not_found("Product", product_id))

                row.name = draft.name
                row.description = draft.description
                row.price_cents = draft.price_cents
                row.category = draft.category.value
                row.images = list(draft.images)
                row.ingredients = list(draft.ingredients)
                row.features = dict(draft.features)
                row.updated_at = now()
                _apply_sizes(row, draft.sizes)

            await session.refresh(row, ["sizes"])
            product = to_product(row)

        log.info("product_updated", product_id=product_id)
        return Ok(product)

    async def deactivate(self, product_id: ProductId) -> Result[None, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = await session.get(ProductTable, product_id)
                if row is None or not row.is_active:
                    return Error(Errors.not_found("Product", product_id))
                row.is_active = False
                row.updated_at = now()

        log.info("product_deactivated", product_id=product_id)
        return Ok(None)

    async def review(
        self, product_id: ProductId, user_id: UserId, rating: int, text: str
    ) -> Result[Product, ShopError]:
        if not 1 <= rating <= 5:
            return Error(Errors.validation("Rating must be between 1 and 5"))

        async with self._session() as session:
            try:
                async with session.begin():
                    row = await session.get(ProductTable, product_id)
                    if row is None or not row.is_active:
                        return Error(Errors.not_found("Product", product_id))
                    if any(r.user_id == user_id for r in row.ratings):
                        return Error(Errors.validation("Product already reviewed"))

                    row.ratings.append(
                        ProductRatingTable(
                            user_id=user_id, rating=rating, review=text, created_at=now()
                        )
                    )
                    scores = [r.rating for r in row.ratings]
                    row.total_reviews = len(scores)
                    row.average_rating = round(sum(scores) / len(scores), 2)
                    row.updated_at = now()
            except IntegrityError:
                return Error(Errors.validation("Product already reviewed"))

            await session.refresh(row, ["ratings"])
            return Ok(to_product(row))


__all__ = ("Catalog", "SqlCatalog", "to_product")
