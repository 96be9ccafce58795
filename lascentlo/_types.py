"""
Core types for lascentlo.

Re-exports from kungfu + shop-wide aliases and money helpers.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Identifiers & Money
# ═══════════════════════════════════════════════════════════════════════════════

type ProductId = str
type OrderId = str
type UserId = str

type Cents = int
"""Money in the smallest currency unit. Never a float inside the domain."""

_CENT = Decimal("0.01")


def to_cents(amount: Decimal | float | int | str) -> Cents:
    """Convert a decimal currency amount to cents, rounding half-up."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    return int(value * 100)


def from_cents(cents: Cents) -> float:
    return float(Decimal(cents) / 100)


def now() -> datetime:
    return datetime.now()


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "Lazy",
    "ProductId",
    "OrderId",
    "UserId",
    "Cents",
    # Helpers
    "to_cents",
    "from_cents",
    "now",
)
