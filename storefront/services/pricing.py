# storefront/services/pricing.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol

CENTS = Decimal("100")


class PricedLine(Protocol):
    unit_price_cents: int
    quantity: int


@dataclass(frozen=True)
class Pricing:
    subtotal_cents: int
    discount_cents: int
    shipping_cents: int
    total_cents: int


def to_cents(amount: Decimal | int | float | str) -> int:
    """Kwota w jednostkach glownych -> grosze, ROUND_HALF_UP."""
    return int((Decimal(str(amount)) * CENTS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_major(cents: int) -> Decimal:
    # tylko do wyswietlania i pol legacy
    return (Decimal(cents) / CENTS).quantize(Decimal("0.01"))


def subtotal_cents(lines: Iterable[PricedLine]) -> int:
    return sum(line.unit_price_cents * line.quantity for line in lines)


def price_order(
    lines: Iterable[PricedLine],
    discount_cents: int,
    quoted_shipping_cents: int,
    free_shipping: bool = False,
) -> Pricing:
    """
    Koszt dostawy nie jest liczony ponownie, klient placi dokladnie tyle ile mu pokazano.
    Kod FREE_SHIPPING zeruje dostawe.
    """
    if discount_cents < 0 or quoted_shipping_cents < 0:
        raise ValueError("Discount and shipping must not be negative")

    subtotal = subtotal_cents(lines)
    shipping = 0 if free_shipping else quoted_shipping_cents
    total = max(0, subtotal + shipping - discount_cents)

    return Pricing(
        subtotal_cents=subtotal,
        discount_cents=discount_cents,
        shipping_cents=shipping,
        total_cents=total,
    )
