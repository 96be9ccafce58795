"""
/api/products — catalog browsing, admin maintenance, reviews.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from lascentlo._types import to_cents
from lascentlo.catalog import Category, ProductQuery, Sort
from lascentlo.api._deps import AdminUser, CurrentUser, ServicesDep, unwrap
from lascentlo.api._schemas import (
    MessageOut,
    ProductIn,
    ProductOut,
    ProductPageOut,
    ReviewIn,
)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductPageOut)
async def list_products(
    svc: ServicesDep,
    category: Category | None = None,
    min_price: Annotated[float | None, Query(alias="minPrice", ge=0)] = None,
    max_price: Annotated[float | None, Query(alias="maxPrice", ge=0)] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    sort: Sort = Sort.NEWEST,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 12,
) -> ProductPageOut:
    query = ProductQuery(
        category=category,
        min_price_cents=to_cents(min_price) if min_price is not None else None,
        max_price_cents=to_cents(max_price) if max_price is not None else None,
        search=search.strip() if search and search.strip() else None,
        sort=sort,
        page=page,
        page_size=limit,
    )
    return ProductPageOut.from_domain(await svc.catalog.search(query))


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: str, svc: ServicesDep) -> ProductOut:
    return ProductOut.from_domain(unwrap(await svc.catalog.get(product_id)))


@router.post("", response_model=ProductOut, status_code=201)
async def create_product(body: ProductIn, _: AdminUser, svc: ServicesDep) -> ProductOut:
    return ProductOut.from_domain(await svc.catalog.create(body.to_domain()))


@router.put("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: str, body: ProductIn, _: AdminUser, svc: ServicesDep
) -> ProductOut:
    return ProductOut.from_domain(unwrap(await svc.catalog.replace(product_id, body.to_domain())))


@router.delete("/{product_id}", response_model=MessageOut)
async def delete_product(product_id: str, _: AdminUser, svc: ServicesDep) -> MessageOut:
    unwrap(await svc.catalog.deactivate(product_id))
    return MessageOut(message="Product removed")


@router.post(
    "/{product_id}/reviews", response_model=ProductOut, status_code=201
)
async def add_review(
    product_id: str, body: ReviewIn, user: CurrentUser, svc: ServicesDep
) -> ProductOut:
    product = unwrap(await svc.catalog.review(product_id, user.id, body.rating, body.review))
    return ProductOut.from_domain(product)
