from decimal import Decimal

import pytest

from lascentlo._types import from_cents, to_cents
from lascentlo.orders import PricingPolicy


@pytest.mark.parametrize(
    ("subtotal", "shipping"),
    [
        (9999, 1000),
        (10000, 1000),  # exactly 100.00 still pays shipping
        (10001, 0),
        (15998, 0),
    ],
)
def test_free_shipping_only_above_threshold(subtotal: int, shipping: int) -> None:
    assert PricingPolicy().shipping(subtotal) == shipping


def test_tax_rounds_half_up_to_the_cent() -> None:
    policy = PricingPolicy()
    assert policy.tax(15998) == 1600  # 1599.8
    assert policy.tax(7999) == 800  # 799.9
    assert policy.tax(5) == 1  # 0.5 rounds up
    assert policy.tax(4) == 0


def test_totals_add_up() -> None:
    totals = PricingPolicy().totals(15998)
    assert (totals.subtotal_cents, totals.shipping_cents, totals.tax_cents) == (15998, 0, 1600)
    assert totals.total_cents == 17598


def test_policy_is_configurable() -> None:
    policy = PricingPolicy(
        tax_rate=Decimal("0.20"), free_shipping_over_cents=5000, flat_shipping_cents=499
    )
    totals = policy.totals(5000)
    assert totals.shipping_cents == 499
    assert totals.tax_cents == 1000


def test_money_conversion_at_the_boundary() -> None:
    assert to_cents("79.99") == 7999
    assert to_cents(0.105) == 11
    assert to_cents(175.98) == 17598
    assert from_cents(17598) == 175.98
