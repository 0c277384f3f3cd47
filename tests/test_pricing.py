from dataclasses import dataclass
from decimal import Decimal

import pytest

from storefront.services.pricing import cents_to_major, price_order, subtotal_cents, to_cents


@dataclass
class Line:
    unit_price_cents: int
    quantity: int


LINES = [Line(10000, 2)]


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("5.00")) == 500
    assert to_cents("10.005") == 1001
    assert to_cents(0) == 0


def test_cents_to_major():
    assert cents_to_major(18500) == Decimal("185.00")
    assert cents_to_major(5) == Decimal("0.05")


def test_total_identity():
    pricing = price_order(LINES, discount_cents=2000, quoted_shipping_cents=500)

    assert pricing.subtotal_cents == 20000
    assert pricing.total_cents == 18500
    assert pricing.total_cents == max(
        0, pricing.subtotal_cents - pricing.discount_cents + pricing.shipping_cents
    )


def test_free_shipping_zeroes_quoted_cost():
    pricing = price_order(LINES, discount_cents=0, quoted_shipping_cents=500, free_shipping=True)

    assert pricing.shipping_cents == 0
    assert pricing.total_cents == 20000


def test_total_never_negative():
    pricing = price_order([Line(100, 1)], discount_cents=5000, quoted_shipping_cents=0)

    assert pricing.total_cents == 0


def test_negative_inputs_rejected():
    with pytest.raises(ValueError):
        price_order(LINES, discount_cents=-1, quoted_shipping_cents=0)
    with pytest.raises(ValueError):
        price_order(LINES, discount_cents=0, quoted_shipping_cents=-1)


def test_subtotal():
    assert subtotal_cents([Line(3450, 3), Line(100, 1)]) == 10450
