"""
Wire models — JSON bodies in and out.

Inbound models validate shape and ranges, then to_domain() hands plain
domain objects to the workflows. Outbound models are built with
from_domain(). Field names are camelCase on the wire; amounts are decimal
currency units on the wire and integer cents inside.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from lascentlo._types import from_cents, to_cents
from lascentlo.auth import ProfileChanges, Registration, Session, User
from lascentlo.catalog import (
    Category,
    Product,
    ProductDraft,
    ProductPage,
    SizeKey,
    SizeVariant,
)
from lascentlo.checkout import CartItem, CheckoutRequest, ConfirmPayment, PlacedOrder
from lascentlo.errors import Errors
from lascentlo.orders import Order, OrderStatus, PaymentMethod, ShippingAddress

_ID = r"^[a-z]{3}_[0-9a-f]{12}$"


class Wire(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Shared
# ═══════════════════════════════════════════════════════════════════════════════

class SizeIn(Wire):
    value: float = Field(gt=0)
    unit: str = Field(default="ml", min_length=1, max_length=10)

    def to_domain(self) -> SizeKey:
        return SizeKey(self.value, self.unit)


class AddressIn(Wire):
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(
        min_length=1,
        max_length=20,
        validation_alias=AliasChoices("postalCode", "zipCode", "postal_code"),
    )
    country: str = Field(min_length=1, max_length=100)

    def to_domain(self) -> ShippingAddress:
        return ShippingAddress(
            street=self.street,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
        )


class AddressOut(Wire):
    street: str
    city: str
    state: str
    postal_code: str
    country: str


class MessageOut(Wire):
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════

class CheckoutItemIn(Wire):
    product_id: str = Field(
        pattern=_ID, validation_alias=AliasChoices("productId", "product", "product_id")
    )
    size: SizeIn
    quantity: int = Field(ge=1, le=100)


class CheckoutIn(Wire):
    items: list[CheckoutItemIn] = Field(min_length=1, max_length=50)
    shipping_address: AddressIn
    payment_method: PaymentMethod

    def to_domain(self) -> CheckoutRequest:
        return CheckoutRequest(
            items=tuple(
                CartItem(product_id=i.product_id, size=i.size.to_domain(), quantity=i.quantity)
                for i in self.items
            ),
            shipping_address=self.shipping_address.to_domain(),
            payment_method=self.payment_method,
        )


class ConfirmPaymentIn(Wire):
    order_id: str = Field(pattern=_ID)
    payment_intent_id: str = Field(min_length=1, max_length=100)

    def to_domain(self) -> ConfirmPayment:
        return ConfirmPayment(order_id=self.order_id, intent_id=self.payment_intent_id)


class StatusIn(Wire):
    status: OrderStatus


class LineSizeOut(Wire):
    value: float
    unit: str
    price: float


class LineOut(Wire):
    product: str
    name: str
    size: LineSizeOut
    quantity: int


class PaymentInfoOut(Wire):
    method: PaymentMethod
    transaction_id: str | None
    status: str


class OrderOut(Wire):
    id: str
    user: str
    items: list[LineOut]
    shipping_address: AddressOut
    payment_info: PaymentInfoOut
    status: OrderStatus
    subtotal: float
    shipping_cost: float
    tax: float
    total: float
    tracking_number: str | None
    estimated_delivery: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, order: Order) -> OrderOut:
        address = order.shipping_address
        return cls(
            id=order.id,
            user=order.user_id,
            items=[
                LineOut(
                    product=item.product_id,
                    name=item.product_name,
                    size=LineSizeOut(
                        value=item.size.value,
                        unit=item.size.unit,
                        price=from_cents(item.size.price_cents),
                    ),
                    quantity=item.quantity,
                )
                for item in order.items
            ],
            shipping_address=AddressOut(
                street=address.street,
                city=address.city,
                state=address.state,
                postal_code=address.postal_code,
                country=address.country,
            ),
            payment_info=PaymentInfoOut(
                method=order.payment.method,
                transaction_id=order.payment.transaction_id,
                status=order.payment.status.value,
            ),
            status=order.status,
            subtotal=from_cents(order.totals.subtotal_cents),
            shipping_cost=from_cents(order.totals.shipping_cents),
            tax=from_cents(order.totals.tax_cents),
            total=from_cents(order.total_cents),
            tracking_number=order.tracking_number,
            estimated_delivery=order.estimated_delivery,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PlacedOrderOut(Wire):
    order: OrderOut
    client_secret: str | None

    @classmethod
    def from_domain(cls, placed: PlacedOrder) -> PlacedOrderOut:
        return cls(order=OrderOut.from_domain(placed.order), client_secret=placed.client_secret)


class ConfirmedOut(Wire):
    message: str
    order: OrderOut

    @classmethod
    def from_domain(cls, order: Order) -> ConfirmedOut:
        return cls(message="Payment confirmed", order=OrderOut.from_domain(order))


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════

class SizeVariantIn(Wire):
    value: float = Field(gt=0)
    unit: str = Field(default="ml", min_length=1, max_length=10)
    price: float = Field(gt=0)
    stock: int = Field(ge=0)


class ProductIn(Wire):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    price: float = Field(gt=0)
    sizes: list[SizeVariantIn] = Field(min_length=1)
    category: Category
    images: list[str] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)
    features: dict[str, Any] = Field(default_factory=dict)

    def to_domain(self) -> ProductDraft:
        keys = [(s.value, s.unit) for s in self.sizes]
        if len(set(keys)) != len(keys):
            raise Errors.validation("Each size (value, unit) may appear only once")
        return ProductDraft(
            name=self.name,
            description=self.description,
            price_cents=to_cents(self.price),
            sizes=tuple(
                SizeVariant(value=s.value, unit=s.unit, price_cents=to_cents(s.price), stock=s.stock)
                for s in self.sizes
            ),
            category=self.category,
            images=tuple(self.images),
            ingredients=tuple(self.ingredients),
            features=dict(self.features),
        )


class ReviewIn(Wire):
    rating: int = Field(ge=1, le=5)
    review: str = Field(min_length=1, max_length=2000)


class SizeVariantOut(Wire):
    value: float
    unit: str
    price: float
    stock: int


class RatingOut(Wire):
    user: str
    rating: int
    review: str
    date: datetime


class ProductOut(Wire):
    id: str
    name: str
    description: str
    price: float
    sizes: list[SizeVariantOut]
    category: Category
    images: list[str]
    ingredients: list[str]
    features: dict[str, Any]
    ratings: list[RatingOut]
    average_rating: float
    total_reviews: int
    is_active: bool

    @classmethod
    def from_domain(cls, product: Product) -> ProductOut:
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=from_cents(product.price_cents),
            sizes=[
                SizeVariantOut(
                    value=s.value, unit=s.unit, price=from_cents(s.price_cents), stock=s.stock
                )
                for s in product.sizes
            ],
            category=product.category,
            images=list(product.images),
            ingredients=list(product.ingredients),
            features=dict(product.features),
            ratings=[
                RatingOut(user=r.user_id, rating=r.rating, review=r.review, date=r.created_at)
                for r in product.ratings
            ],
            average_rating=product.average_rating,
            total_reviews=product.total_reviews,
            is_active=product.is_active,
        )


class ProductPageOut(Wire):
    products: list[ProductOut]
    page: int
    pages: int
    total: int

    @classmethod
    def from_domain(cls, page: ProductPage) -> ProductPageOut:
        return cls(
            products=[ProductOut.from_domain(p) for p in page.products],
            page=page.page,
            pages=page.pages,
            total=page.total,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Accounts
# ═══════════════════════════════════════════════════════════════════════════════

class RegisterIn(Wire):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)

    def to_domain(self) -> Registration:
        return Registration(
            email=str(self.email),
            password=self.password,
            first_name=self.first_name,
            last_name=self.last_name,
        )


class LoginIn(Wire):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class ForgotPasswordIn(Wire):
    email: EmailStr


class ResetPasswordIn(Wire):
    token: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=6, max_length=128)


class ProfileIn(Wire):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None

    def to_domain(self) -> ProfileChanges:
        return ProfileChanges(
            first_name=self.first_name,
            last_name=self.last_name,
            email=str(self.email) if self.email is not None else None,
        )


class PasswordChangeIn(Wire):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)


class UserOut(Wire):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    is_verified: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> UserOut:
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role.value,
            is_verified=user.is_verified,
            created_at=user.created_at,
        )


class SessionOut(Wire):
    token: str
    user: UserOut

    @classmethod
    def from_domain(cls, session: Session) -> SessionOut:
        return cls(token=session.token, user=UserOut.from_domain(session.user))


__all__ = (
    "SizeIn",
    "AddressIn",
    "MessageOut",
    "CheckoutIn",
    "ConfirmPaymentIn",
    "StatusIn",
    "OrderOut",
    "PlacedOrderOut",
    "ConfirmedOut",
    "ProductIn",
    "ReviewIn",
    "ProductOut",
    "ProductPageOut",
    "RegisterIn",
    "LoginIn",
    "ForgotPasswordIn",
    "ResetPasswordIn",
    "ProfileIn",
    "PasswordChangeIn",
    "UserOut",
    "SessionOut",
)
