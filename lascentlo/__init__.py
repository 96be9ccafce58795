"""
lascentlo — perfume storefront backend.

    from lascentlo import catalog as K    # Products, sizes, stock
    from lascentlo import checkout as CO  # Quote, place order, confirm payment
    from lascentlo import orders as O     # Order records and status table
    from lascentlo import saga as S       # Steps with compensation
"""

from lascentlo import saga
from lascentlo import catalog
from lascentlo import orders
from lascentlo import checkout
from lascentlo import notify
from lascentlo import payments
from lascentlo import idempotency
from lascentlo.errors import ErrorKind, Errors, ShopError
from lascentlo._types import (
    Lazy,
    Cents,
    ProductId,
    OrderId,
    UserId,
)

__version__ = "0.1.0"

__all__ = (
    "saga",
    "catalog",
    "orders",
    "checkout",
    "notify",
    "payments",
    "idempotency",
    "ErrorKind",
    "Errors",
    "ShopError",
    "Lazy",
    "Cents",
    "ProductId",
    "OrderId",
    "UserId",
)
