"""
Quote graph — validate and price a cart.

    CheckoutRequest, Catalog (injected)
            │
            ▼
       CartLinesNode      (products fetched in parallel, size + stock checked)
            │
            ▼          PricingPolicy (injected)
       TotalsNode ◄─────────┘
            │
            ▼
       QuoteNode          (Result[Quote, ShopError])

Nodes carry a Result instead of raising, so the first failing item is what
the caller sees and no node runs work for a cart that is already invalid.

Note: no 'from __future__ import annotations' here, nodnod reads the
__compose__ signatures at runtime.
"""

from typing import Any

import combinators as C
from kungfu import Error, LazyCoroResult, Ok, Result
from nodnod import EventLoopAgent, Scope, Value, scalar_node as node

from lascentlo.catalog import Catalog
from lascentlo.errors import Errors, ShopError
from lascentlo.orders import LineItem, PricingPolicy, SizeSnapshot, Totals
from lascentlo.checkout._types import CartItem, CheckoutRequest, Quote


def _price_item(catalog: Catalog, item: CartItem) -> LazyCoroResult[LineItem, ShopError]:
    async def impl() -> Result[LineItem, ShopError]:
        match await catalog.get(item.product_id):
            case Error(e):
                return Error(e)
            case Ok(product):
                pass

        variant = product.variant(item.size)
        if variant is None:
            return Error(Errors.invalid_size(product.name, item.size.value, item.size.unit))
        if variant.stock < item.quantity:
            return Error(Errors.insufficient_stock(product.name, variant.stock, item.quantity))

        return Ok(
            LineItem(
                product_id=product.id,
                product_name=product.name,
                size=SizeSnapshot(
                    value=variant.value, unit=variant.unit, price_cents=variant.price_cents
                ),
                quantity=item.quantity,
            )
        )

    return LazyCoroResult(impl)


# ═══════════════════════════════════════════════════════════════════════════════
# Nodes
# ═══════════════════════════════════════════════════════════════════════════════

@node
class CartLinesNode:
    def __init__(self, lines: Result[tuple[LineItem, ...], ShopError]) -> None:
        self.lines = lines

    @classmethod
    async def __compose__(cls, request: CheckoutRequest, catalog: Catalog) -> "CartLinesNode":
        items = request.merged()
        if not items:
            return cls(Error(Errors.validation("Cart is empty")))

        # Read-only lookups, safe to run side by side
        result = await C.traverse_par(items, lambda item: _price_item(catalog, item))()
        match result:
            case Ok(lines):
                return cls(Ok(tuple(lines)))
            case Error(e):
                return cls(Error(e))


@node
class TotalsNode:
    def __init__(self, totals: Result[Totals, ShopError]) -> None:
        self.totals = totals

    @classmethod
    def __compose__(cls, cart: CartLinesNode, pricing: PricingPolicy) -> "TotalsNode":
        match cart.lines:
            case Ok(lines):
                subtotal = sum(line.line_total_cents for line in lines)
                return cls(Ok(pricing.totals(subtotal)))
            case Error(e):
                return cls(Error(e))


@node
class QuoteNode:
    def __init__(self, quote: Result[Quote, ShopError]) -> None:
        self.quote = quote

    @classmethod
    def __compose__(cls, cart: CartLinesNode, totals: TotalsNode) -> "QuoteNode":
        match cart.lines, totals.totals:
            case Ok(lines), Ok(t):
                return cls(Ok(Quote(lines=lines, totals=t)))
            case Error(e), _:
                return cls(Error(e))
            case _, Error(e):
                return cls(Error(e))


# ═══════════════════════════════════════════════════════════════════════════════
# Runner
# ═══════════════════════════════════════════════════════════════════════════════

# Built once, reused for every request
_AGENT = EventLoopAgent.build({QuoteNode})


async def quote(
    request: CheckoutRequest, catalog: Catalog, pricing: PricingPolicy
) -> Result[Quote, ShopError]:
    injections: tuple[tuple[type[Any], Any], ...] = (
        (CheckoutRequest, request),
        (Catalog, catalog),
        (PricingPolicy, pricing),
    )
    scope = Scope(detail="checkout.quote")
    async with scope:
        for typ, value in injections:
            scope.push(Value(typ, value))
        await _AGENT.run(scope, {})
        return scope.get(QuoteNode).value.quote


__all__ = ("CartLinesNode", "TotalsNode", "QuoteNode", "quote")
