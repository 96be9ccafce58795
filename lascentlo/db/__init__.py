"""
Persistence — SQLAlchemy async tables and engine setup.

    from lascentlo.db import create_database

    session_factory, engine = await create_database("sqlite+aiosqlite:///./shop.db")
"""

from lascentlo.db._tables import (
    Base,
    UserTable,
    ProductTable,
    ProductSizeTable,
    ProductRatingTable,
    OrderTable,
    OrderLineTable,
    OutboxTable,
)
from lascentlo.db._engine import SessionFactory, create_database

__all__ = (
    "Base",
    "UserTable",
    "ProductTable",
    "ProductSizeTable",
    "ProductRatingTable",
    "OrderTable",
    "OrderLineTable",
    "OutboxTable",
    "SessionFactory",
    "create_database",
)
