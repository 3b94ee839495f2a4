"""Top-up pricing

Tiered bulk discount applied to the whole quantity.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")


class InvalidQuantity(ValueError):
    """Quantity (or unit price) cannot be priced"""


# (lowest quantity, highest quantity or None, discount in percentage points)
DISCOUNT_TIERS: tuple[tuple[int, Optional[int], Decimal], ...] = (
    (1, 4, Decimal("0")),
    (5, 5, Decimal("12")),
    (6, 10, Decimal("20")),
    (11, 19, Decimal("25")),
    (20, None, Decimal("30")),
)


@dataclass(frozen=True)
class PriceQuote:
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    final_amount: Decimal

    @property
    def gateway_amount(self) -> int:
        """Amount in whole currency units, as the gateway expects it"""
        return int(self.final_amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def discount_percent_for(quantity: int) -> Decimal:
    for low, high, percent in DISCOUNT_TIERS:
        if quantity >= low and (high is None or quantity <= high):
            return percent
    raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity}")


def calculate(quantity: int, unit_price: Decimal) -> PriceQuote:
    """
    Price a top-up of `quantity` units.

    Raises:
        InvalidQuantity: quantity is not a positive integer or unit_price <= 0
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity!r}")

    unit_price = Decimal(str(unit_price))
    if unit_price <= 0:
        raise InvalidQuantity(f"Unit price must be positive, got {unit_price}")

    percent = discount_percent_for(quantity)
    subtotal = (unit_price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
    discount_amount = (subtotal * percent / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)

    return PriceQuote(
        quantity=quantity,
        unit_price=unit_price.quantize(CENT, rounding=ROUND_HALF_UP),
        subtotal=subtotal,
        discount_percent=percent,
        discount_amount=discount_amount,
        final_amount=subtotal - discount_amount,
    )
