"""
Catalog domain — products and their size variants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from lascentlo._types import Cents, ProductId, UserId


class Category(str, Enum):
    FLORAL = "floral"
    WOODY = "woody"
    FRESH = "fresh"
    ORIENTAL = "oriental"
    CITRUS = "citrus"


@dataclass(frozen=True, slots=True)
class SizeKey:
    """A size variant is identified by (value, unit) within its product."""

    value: float
    unit: str = "ml"

    def __str__(self) -> str:
        return f"{self.value:g}{self.unit}"


@dataclass(frozen=True, slots=True)
class SizeVariant:
    value: float
    unit: str
    price_cents: Cents
    stock: int

    @property
    def key(self) -> SizeKey:
        return SizeKey(self.value, self.unit)


@dataclass(frozen=True, slots=True)
class Rating:
    user_id: UserId
    rating: int
    review: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Product:
    id: ProductId
    name: str
    description: str
    price_cents: Cents
    sizes: tuple[SizeVariant, ...]
    category: Category
    images: tuple[str, ...] = ()
    ingredients: tuple[str, ...] = ()
    features: dict[str, Any] = field(default_factory=dict)
    ratings: tuple[Rating, ...] = ()
    average_rating: float = 0.0
    total_reviews: int = 0
    is_active: bool = True
    created_at: datetime | None = None

    def variant(self, key: SizeKey) -> SizeVariant | None:
        for size in self.sizes:
            if size.key == key:
                return size
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Write models & queries
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class ProductDraft:
    """Everything needed to create or fully replace a product."""

    name: str
    description: str
    price_cents: Cents
    sizes: tuple[SizeVariant, ...]
    category: Category
    images: tuple[str, ...] = ()
    ingredients: tuple[str, ...] = ()
    features: dict[str, Any] = field(default_factory=dict)


class Sort(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING = "rating"


@dataclass(frozen=True, slots=True)
class ProductQuery:
    category: Category | None = None
    min_price_cents: Cents | None = None
    max_price_cents: Cents | None = None
    search: str | None = None
    sort: Sort = Sort.NEWEST
    page: int = 1
    page_size: int = 12


@dataclass(frozen=True, slots=True)
class ProductPage:
    products: tuple[Product, ...]
    page: int
    page_size: int
    total: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.page_size) if self.total else 0


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
)
