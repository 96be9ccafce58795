"""
Catalog — products, size variants, stock counters and reviews.

    from lascentlo import catalog

    product = await store.get("prd_...")
    ok = await catalog.take(session, product_id, catalog.SizeKey(50, "ml"), 2)
"""

from lascentlo.catalog._types import (
    Category,
    SizeKey,
    SizeVariant,
    Rating,
    Product,
    ProductDraft,
    Sort,
    ProductQuery,
    ProductPage,
)
from lascentlo.catalog._repo import Catalog, SqlCatalog, to_product
from lascentlo.catalog._stock import take

__all__ = (
    "Category",
    "SizeKey",
    "SizeVariant",
    "Rating",
    "Product",
    "ProductDraft",
    "Sort",
    "ProductQuery",
    "ProductPage",
    "Catalog",
    "SqlCatalog",
    "to_product",
    "take",
)
