"""
Pricing — tax and shipping on top of a cart subtotal.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from lascentlo._types import Cents
from lascentlo.orders._types import Totals


@dataclass(frozen=True, slots=True)
class PricingPolicy:
    """
    Tax is a flat rate rounded half-up to the cent. Shipping is free only
    when the subtotal is strictly above the threshold.
    """

    tax_rate: Decimal = Decimal("0.10")
    free_shipping_over_cents: Cents = 10000
    flat_shipping_cents: Cents = 1000

    def tax(self, subtotal_cents: Cents) -> Cents:
        return int((Decimal(subtotal_cents) * self.tax_rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def shipping(self, subtotal_cents: Cents) -> Cents:
        if subtotal_cents > self.free_shipping_over_cents:
            return 0
        return self.flat_shipping_cents

    def totals(self, subtotal_cents: Cents) -> Totals:
        return Totals(
            subtotal_cents=subtotal_cents,
            shipping_cents=self.shipping(subtotal_cents),
            tax_cents=self.tax(subtotal_cents),
        )


__all__ = ("PricingPolicy",)
